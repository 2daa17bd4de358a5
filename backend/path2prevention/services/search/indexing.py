"""Background job that (re)builds the program vector index.

`build_vector_index` runs in a FastAPI background task and keeps its
`VectorIndexTask` row up to date so the API can report progress.
"""

from datetime import datetime

from core.logging import logger
from db.session import AsyncSessionLocal
from models.tasks import VectorIndexTask
from services.programs.program_store import ProgramStore
from services.search.vector_store import VectorStore
from sqlalchemy import select


async def create_index_task(task_id: str) -> VectorIndexTask:
    """Persist a pending `VectorIndexTask` row for `task_id`."""
    async with AsyncSessionLocal() as db:
        task = VectorIndexTask(task_id=task_id, status="pending")
        db.add(task)
        await db.commit()
        await db.refresh(task)
        return task


async def build_vector_index(
    task_id: str,
    program_store: ProgramStore | None = None,
    vector_store: VectorStore | None = None,
) -> None:
    """Embed every relational program into `programs_vector`.

    Programs that fail to embed are skipped. Any other exception is recorded
    on the task row and the task is marked as `failed`.

    Args:
        task_id: Unique identifier for the background task.
        program_store: Source of relational program rows.
        vector_store: Destination vector store.
    """
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(VectorIndexTask).filter(VectorIndexTask.task_id == task_id)
        )
        task = result.scalars().first()

        if not task:
            logger.warning("Vector index task not found task_id={}", task_id)
            return

        try:
            program_store = program_store or ProgramStore()
            vector_store = vector_store or VectorStore()

            programs = await program_store.list_programs()
            task.status = "processing"
            task.total = len(programs)
            await db.commit()

            logger.info(
                "Starting vector index build for task {} ({} programs)",
                task_id,
                len(programs),
            )

            async def record_progress(processed: int) -> None:
                task.processed = processed
                await db.commit()

            stored = await vector_store.bulk_upsert(
                programs, on_progress=record_progress
            )

            logger.info(
                "Completed vector index build for task {}, stored {}/{} programs",
                task_id,
                len(stored),
                len(programs),
            )
            task.status = "completed"
            task.completed_at = datetime.now()
            await db.commit()

        except Exception as e:
            logger.exception("Error during vector index build for task {}", task_id)
            task.status = "failed"
            task.completed_at = datetime.now()
            task.error = str(e)
            await db.commit()
