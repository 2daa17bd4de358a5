"""Program search with one fallback policy for every read path.

Routes and the chat assistant call `ProgramSearchService` instead of the
store directly. When the relational store fails, the same filter is applied
to the static fallback programs and the result is flagged as a fallback.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from core.logging import logger
from services.programs.fallback import fallback_programs
from services.programs.filters import (
    LocationFilter,
    matches_delivery_mode,
    matches_name,
)
from services.programs.program_store import ProgramStore, ProgramStoreError


@dataclass
class ProgramFilter:
    """Criteria for a filtered program search.

    A non-empty `delivery_mode` selects the delivery-mode path and the
    location fields are ignored.
    """

    zip_code: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    delivery_mode: Optional[str] = None

    @property
    def location(self) -> LocationFilter:
        return LocationFilter(zip_code=self.zip_code, state=self.state, city=self.city)

    @property
    def is_delivery_mode_search(self) -> bool:
        return bool(self.delivery_mode and self.delivery_mode.strip())


@dataclass
class SearchResult:
    """Programs returned by a search and whether they came from fallback data."""

    programs: list[dict] = field(default_factory=list)
    fallback: bool = False
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.programs)


class ProgramSearchService:
    """Search programs, degrading to static data when the database fails."""

    def __init__(self, store: Optional[ProgramStore] = None) -> None:
        self.store = store or ProgramStore()

    async def _run(self, query, predicate: Callable[[dict], bool], label: str):
        try:
            programs = await query()
            return SearchResult(programs=programs)
        except ProgramStoreError as error:
            logger.warning(
                "Database unavailable for {}, using fallback programs: {}",
                label,
                error,
            )
            programs = [p for p in fallback_programs() if predicate(p)]
            return SearchResult(programs=programs, fallback=True, error=str(error))

    async def search(self, program_filter: ProgramFilter) -> SearchResult:
        """Search by delivery mode when given, otherwise by location."""
        if program_filter.is_delivery_mode_search:
            mode = program_filter.delivery_mode
            return await self._run(
                lambda: self.store.search_by_delivery_mode(mode),
                lambda program: matches_delivery_mode(program, mode),
                "delivery mode search",
            )

        location = program_filter.location
        return await self._run(
            lambda: self.store.search_by_location(location),
            location.matches,
            "location search",
        )

    async def list_all(self) -> SearchResult:
        return await self._run(
            self.store.list_programs, lambda program: True, "program listing"
        )

    async def search_by_name(self, name: str) -> SearchResult:
        return await self._run(
            lambda: self.store.search_by_name(name),
            lambda program: matches_name(program, name),
            "name search",
        )

    async def get_program(self, program_id: int) -> SearchResult:
        """Return a result holding the matching program, or no programs."""

        async def query():
            program = await self.store.get_program(program_id)
            return [program] if program else []

        return await self._run(
            query, lambda program: program["id"] == program_id, "program lookup"
        )
