"""Schemas for background task responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class VectorIndexTaskResponse(BaseModel):
    """Status of a vector index build."""
    task_id: str
    status: str
    processed: int = 0
    total: int = 0
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    class Config:
        from_attributes = True

