"""Maintenance routes: database setup, sample data and vector index builds.

Unlike the read endpoints these fail loudly: any error is returned as a 500
with the error message.
"""

import uuid

from core.logging import logger
from db.session import describe_database, initialize_database
from fastapi import APIRouter, BackgroundTasks
from fastapi.responses import JSONResponse
from schemas.tasks import VectorIndexTaskResponse
from services.programs.sample_data import populate_sample_data
from services.search.indexing import build_vector_index, create_index_task

router = APIRouter(tags=["admin"])


@router.post("/init-db")
async def init_db():
    """Create the vector extension, tables and search indexes."""

    try:
        tables = await initialize_database()
        return {
            "success": True,
            "message": "Database initialized successfully",
            "tables": tables,
        }
    except Exception as error:
        logger.exception("Error initializing database")
        return JSONResponse(
            status_code=500,
            content={"message": "Error initializing database", "error": str(error)},
        )


@router.post("/populate-sample-data")
async def populate_sample_programs():
    """Insert the sample programs with their locations and details."""

    try:
        program_ids = await populate_sample_data()
        return {
            "success": True,
            "message": "Sample data populated successfully",
            "count": len(program_ids),
            "program_ids": program_ids,
        }
    except Exception as error:
        logger.exception("Error populating sample data")
        return JSONResponse(
            status_code=500,
            content={"message": "Error populating sample data", "error": str(error)},
        )


@router.post("/vector-index", response_model=VectorIndexTaskResponse)
async def queue_vector_index(background_tasks: BackgroundTasks):
    """Queue a rebuild of the program vector index and return its task record.

    Progress can be followed with `GET /tasks/{task_id}`.
    """

    task_id = str(uuid.uuid4())
    try:
        task = await create_index_task(task_id)
    except Exception as error:
        logger.exception("Error creating vector index task")
        return JSONResponse(
            status_code=500,
            content={
                "message": "Error creating vector index task",
                "error": str(error),
            },
        )

    background_tasks.add_task(build_vector_index, task_id=task_id)
    logger.info("Queued vector index build task_id={}", task_id)
    return task


@router.get("/db-structure")
async def db_structure():
    """Describe tables, columns, row counts and foreign keys."""

    try:
        return await describe_database()
    except Exception as error:
        logger.exception("Error getting database structure")
        return JSONResponse(
            status_code=500,
            content={
                "message": "Error getting database structure",
                "error": str(error),
            },
        )
