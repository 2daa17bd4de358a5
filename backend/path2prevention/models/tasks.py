"""Models for tracking background vector index builds.

`VectorIndexTask` records the progress of a rebuild of `programs_vector` so
the API can report its status.
"""

from db.session import Base
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func


class VectorIndexTask(Base):
    """Represents a background job that embeds programs into the vector store.

    Attributes:
        id: Primary key.
        task_id: UUID for tracking the background job.
        status: Current state (pending, processing, completed, failed).
        processed: Number of programs embedded so far.
        total: Number of programs scheduled for embedding.
        error: Optional error message if the job failed.
        created_at: Job creation timestamp.
        completed_at: Optional completion timestamp.
    """

    __tablename__ = "vector_index_tasks"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(String, index=True, unique=True)
    status = Column(String)
    processed = Column(Integer, default=0)
    total = Column(Integer, default=0)
    error = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
