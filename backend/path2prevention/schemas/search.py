"""Schemas for semantic search requests, intent analysis and responses."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from schemas.programs import RankedProgram


class SemanticSearchRequest(BaseModel):
    """Request body for `POST /programs/semantic-search`.

    `query` is optional here so a missing query can be answered with the
    same 400 envelope as the other endpoints.
    """

    query: Optional[str] = None
    limit: int = Field(default=5, ge=1, le=50)
    conversation_history: List[str] = []
    mode: Literal["vector", "hybrid"] = "hybrid"
    vector_weight: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class IntentPreferences(BaseModel):
    delivery_mode: Optional[str] = None
    location: Optional[str] = None
    cost_sensitive: bool = False
    schedule_flexible: bool = False
    insurance_important: bool = False
    language_preference: Optional[str] = None


class IntentAnalysis(BaseModel):
    """What the user appears to want and which questions to ask next."""

    intent: str = "search_programs"
    preferences: IntentPreferences = IntentPreferences()
    questions_to_ask: List[str] = []
    confidence: float = 0.7


class SemanticSearchResponse(BaseModel):
    success: bool = True
    query: str
    intent_analysis: IntentAnalysis
    results: List[RankedProgram]
    count: int
    pgvector: bool = False
    fallback: bool = False


class VectorStatsResponse(BaseModel):
    total_programs: int
    programs_with_embeddings: int
    delivery_modes: int
    states_covered: int
    avg_cost: Optional[float] = None
    oldest_program: Optional[datetime] = None
    last_updated: Optional[datetime] = None
