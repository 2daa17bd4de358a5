"""Schemas for storing risk assessment results."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class AssessmentCreate(BaseModel):
    """A completed risk assessment submitted by the browser."""

    session_id: str
    risk_level: Literal["low", "medium", "high"]
    recommended_program_types: List[str] = []
    assessment_data: dict = {}


class AssessmentResponse(AssessmentCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
