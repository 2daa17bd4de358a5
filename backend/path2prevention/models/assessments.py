"""Database model for stored risk assessment results."""

from db.session import Base
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.sql import func


class AssessmentResult(Base):
    """A completed risk assessment submitted by a browser session.

    Attributes:
        id: Primary key.
        session_id: Client session identifier.
        risk_level: One of `low`, `medium` or `high`.
        recommended_program_types: Delivery modes suggested to the user.
        assessment_data: Raw assessment answers.
        created_at: Record creation timestamp.
    """

    __tablename__ = "assessment_results"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(255))
    risk_level = Column(String(20))
    recommended_program_types = Column(ARRAY(Text))
    assessment_data = Column(JSONB)
    created_at = Column(DateTime, server_default=func.now())
