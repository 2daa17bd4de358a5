"""Task status routes used to check background job progress."""

from core.logging import logger
from db.session import get_db
from fastapi import APIRouter, Depends, HTTPException
from models.tasks import VectorIndexTask
from schemas.tasks import VectorIndexTaskResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/{task_id}", response_model=VectorIndexTaskResponse)
async def get_task_status(
    task_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Return the status of a background `VectorIndexTask` by `task_id`.

    Args:
        task_id: UUID of the background task to query.
        db: Async database session (dependency-injected).

    Raises:
        HTTPException: 404 if task is not found.
    """

    logger.debug("Fetching task status task_id={}", task_id)
    result = await db.execute(
        select(VectorIndexTask).filter(VectorIndexTask.task_id == task_id)
    )
    task = result.scalars().first()

    if not task:
        logger.warning("Task not found task_id={}", task_id)
        raise HTTPException(status_code=404, detail="Task not found")
    return task
