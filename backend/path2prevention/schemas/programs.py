"""Schemas for program search requests and responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProgramRecord(BaseModel):
    """A program joined with its location and details.

    Fields missing from a row (e.g. fallback programs) are returned as null.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_name: str
    cdc_recognition_status: Optional[str] = None
    mdpp_supplier: Optional[bool] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    website_url: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    delivery_mode: Optional[str] = None
    language: Optional[str] = None
    class_schedule: Optional[str] = None
    duration_weeks: Optional[int] = None
    cost: Optional[float] = None
    insurance_accepted: Optional[List[str]] = None
    max_participants: Optional[int] = None
    current_participants: Optional[int] = None
    enrollment_status: Optional[str] = None


class RankedProgram(ProgramRecord):
    """A program returned by semantic or hybrid search."""

    program_id: Optional[int] = None
    similarity: Optional[float] = None
    vector_similarity: Optional[float] = None
    text_rank: Optional[float] = None
    combined_score: Optional[float] = None


class SearchCriteria(BaseModel):
    """Echo of the criteria used by a filtered search."""

    model_config = ConfigDict(populate_by_name=True)

    zip_code: Optional[str] = Field(default=None, serialization_alias="zipCode")
    state: Optional[str] = None
    city: Optional[str] = None
    radius: Optional[int] = None
    delivery_mode: Optional[str] = Field(
        default=None, serialization_alias="deliveryMode"
    )
    location_based: bool = Field(serialization_alias="locationBased")


class ProgramListResponse(BaseModel):
    """Envelope for a list of programs."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    count: int
    programs: List[ProgramRecord]
    fallback: bool = False


class ProgramSearchResponse(ProgramListResponse):
    """Envelope for a filtered search, including the criteria used."""

    search_criteria: SearchCriteria = Field(serialization_alias="searchCriteria")


class ProgramNameSearchResponse(ProgramListResponse):
    search_term: str = Field(serialization_alias="searchTerm")


class ProgramResponse(BaseModel):
    """Envelope for a single program."""

    success: bool = True
    program: ProgramRecord
    fallback: bool = False

