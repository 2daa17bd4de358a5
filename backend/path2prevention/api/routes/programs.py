"""Program routes: filtered search, name search, lookup and semantic search.

Read endpoints go through `ProgramSearchService`, which answers from the
static fallback programs when the database is unavailable and flags the
response with `fallback: true`.
"""

import re
from typing import Optional

from config.config import settings
from core.logging import logger
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from schemas.programs import (
    ProgramListResponse,
    ProgramNameSearchResponse,
    ProgramResponse,
    ProgramSearchResponse,
    SearchCriteria,
)
from schemas.search import (
    SemanticSearchRequest,
    SemanticSearchResponse,
    VectorStatsResponse,
)
from services.programs.search_service import ProgramFilter, ProgramSearchService
from services.search.semantic import SemanticSearchService
from services.search.vector_store import VectorStore

router = APIRouter(prefix="/programs", tags=["programs"])

LOCATION_REQUIRED = (
    "At least one location parameter (zipCode, state, or city) is required, "
    "or specify deliveryMode"
)


def get_program_search() -> ProgramSearchService:
    return ProgramSearchService()


def get_semantic_search() -> SemanticSearchService:
    return SemanticSearchService()


def get_vector_store() -> VectorStore:
    return VectorStore()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_radius(value: Optional[str]) -> int:
    """Leading integer of `value`, or the default radius when there is none."""
    match = re.match(r"\s*[-+]?\d+", value or "")
    return (int(match.group()) if match else 0) or settings.DEFAULT_SEARCH_RADIUS


@router.get("/all", response_model=ProgramListResponse)
async def list_all_programs(
    service: ProgramSearchService = Depends(get_program_search),
):
    """Return every program ordered by organization name."""

    result = await service.list_all()
    return ProgramListResponse(
        count=result.count, programs=result.programs, fallback=result.fallback
    )


@router.get("/search", response_model=ProgramSearchResponse)
async def search_programs(
    zip_code: Optional[str] = Query(None, alias="zipCode"),
    state: Optional[str] = None,
    city: Optional[str] = None,
    radius: Optional[str] = None,
    delivery_mode: Optional[str] = Query(None, alias="deliveryMode"),
    service: ProgramSearchService = Depends(get_program_search),
):
    """Search programs by delivery mode, or by location when no mode is given.

    Returns:
        ProgramSearchResponse: Matching programs and the criteria used.
        JSONResponse: 400 when neither a location nor a delivery mode is given.
    """

    program_filter = ProgramFilter(
        zip_code=zip_code, state=state, city=city, delivery_mode=delivery_mode
    )
    logger.info(
        "Search request zipCode={} state={} city={} radius={} deliveryMode={}",
        zip_code,
        state,
        city,
        radius,
        delivery_mode,
    )

    if program_filter.is_delivery_mode_search:
        criteria = SearchCriteria(delivery_mode=delivery_mode, location_based=False)
    elif program_filter.location.is_empty:
        return JSONResponse(status_code=400, content={"message": LOCATION_REQUIRED})
    else:
        criteria = SearchCriteria(
            zip_code=zip_code,
            state=state,
            city=city,
            radius=parse_radius(radius),
            location_based=True,
        )

    result = await service.search(program_filter)
    return ProgramSearchResponse(
        count=result.count,
        programs=result.programs,
        fallback=result.fallback,
        search_criteria=criteria,
    )


@router.get("/search-by-name", response_model=ProgramNameSearchResponse)
async def search_programs_by_name(
    name: Optional[str] = None,
    service: ProgramSearchService = Depends(get_program_search),
):
    """Return programs whose organization name contains `name`."""

    if _blank(name):
        return JSONResponse(
            status_code=400,
            content={"message": "Organization name parameter is required"},
        )

    result = await service.search_by_name(name)
    return ProgramNameSearchResponse(
        count=result.count,
        programs=result.programs,
        fallback=result.fallback,
        search_term=name,
    )


@router.post("/semantic-search", response_model=SemanticSearchResponse)
async def semantic_search(
    request: SemanticSearchRequest,
    service: SemanticSearchService = Depends(get_semantic_search),
):
    """Rank programs against a free-text query and suggest follow-up questions."""

    if _blank(request.query):
        return JSONResponse(
            status_code=400, content={"message": "Search query is required"}
        )

    try:
        return await service.search(
            request.query,
            limit=request.limit,
            conversation_history=request.conversation_history,
            mode=request.mode,
            vector_weight=request.vector_weight,
        )
    except Exception as error:
        logger.exception("Semantic search error for query '{}'", request.query)
        return JSONResponse(
            status_code=500,
            content={
                "message": "Error performing semantic search",
                "error": str(error),
            },
        )


@router.get("/vector-stats", response_model=VectorStatsResponse)
async def vector_stats(vector_store: VectorStore = Depends(get_vector_store)):
    """Return counts and coverage figures for the vector store."""

    try:
        return await vector_store.get_stats()
    except Exception as error:
        logger.exception("Error reading vector statistics")
        return JSONResponse(
            status_code=500,
            content={"message": "Error getting vector statistics", "error": str(error)},
        )


@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(
    program_id: str,
    service: ProgramSearchService = Depends(get_program_search),
):
    """Return a single program by id.

    Returns:
        ProgramResponse: The program.
        JSONResponse: 400 for a non-numeric id, 404 when no program matches.
    """

    try:
        parsed_id = int(program_id)
    except ValueError:
        return JSONResponse(
            status_code=400, content={"message": "Valid program ID is required"}
        )

    result = await service.get_program(parsed_id)
    if not result.programs:
        logger.debug("Program not found id={}", parsed_id)
        return JSONResponse(status_code=404, content={"message": "Program not found"})
    return ProgramResponse(program=result.programs[0], fallback=result.fallback)
