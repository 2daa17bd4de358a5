"""
Tests for ProgramSearchService and its fallback policy
"""
from unittest.mock import AsyncMock, Mock

import pytest

from services.programs.fallback import FALLBACK_PROGRAMS, fallback_programs
from services.programs.program_store import ProgramStoreError
from services.programs.search_service import ProgramFilter, ProgramSearchService


@pytest.fixture
def store():
    """Program store whose queries are async mocks."""
    store = Mock()
    store.list_programs = AsyncMock(return_value=[])
    store.search_by_location = AsyncMock(return_value=[])
    store.search_by_delivery_mode = AsyncMock(return_value=[])
    store.search_by_name = AsyncMock(return_value=[])
    store.get_program = AsyncMock(return_value=None)
    return store


@pytest.fixture
def failing_store(store):
    """Program store that behaves as if the database were down."""
    error = ProgramStoreError("connection refused")
    for name in (
        "list_programs",
        "search_by_location",
        "search_by_delivery_mode",
        "search_by_name",
        "get_program",
    ):
        getattr(store, name).side_effect = error
    return store


class TestProgramFilter:
    def test_delivery_mode_takes_precedence(self):
        program_filter = ProgramFilter(state="GA", delivery_mode="virtual")

        assert program_filter.is_delivery_mode_search is True

    def test_blank_delivery_mode_is_location_search(self):
        program_filter = ProgramFilter(city="Atlanta", delivery_mode="  ")

        assert program_filter.is_delivery_mode_search is False
        assert program_filter.location.city == "Atlanta"


class TestDatabaseResults:
    """Results come straight from the store when it answers"""

    @pytest.mark.asyncio
    async def test_location_search(self, store, program_rows):
        store.search_by_location.return_value = program_rows
        service = ProgramSearchService(store=store)

        result = await service.search(ProgramFilter(state="ga"))

        assert result.fallback is False
        assert result.count == 2
        location = store.search_by_location.await_args.args[0]
        assert location.state == "GA"
        store.search_by_delivery_mode.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delivery_mode_search_ignores_location(self, store, program_rows):
        store.search_by_delivery_mode.return_value = program_rows[1:]
        service = ProgramSearchService(store=store)

        result = await service.search(ProgramFilter(state="FL", delivery_mode="online"))

        assert result.programs == program_rows[1:]
        store.search_by_delivery_mode.assert_awaited_once_with("online")
        store.search_by_location.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_program_missing(self, store):
        service = ProgramSearchService(store=store)

        result = await service.get_program(42)

        assert result.programs == []
        assert result.fallback is False

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, store):
        """Only store errors trigger the fallback"""
        store.list_programs.side_effect = RuntimeError("bug")
        service = ProgramSearchService(store=store)

        with pytest.raises(RuntimeError):
            await service.list_all()


class TestFallback:
    """Static programs filtered by the same rules when the store fails"""

    @pytest.mark.asyncio
    async def test_location_fallback_filters_by_state(self, failing_store):
        service = ProgramSearchService(store=failing_store)

        result = await service.search(ProgramFilter(state="ga"))

        assert result.fallback is True
        assert result.error == "connection refused"
        assert [p["id"] for p in result.programs] == [1, 3, 2]
        assert all(p["state"] == "GA" for p in result.programs)

    @pytest.mark.asyncio
    async def test_location_fallback_filters_by_city(self, failing_store):
        service = ProgramSearchService(store=failing_store)

        result = await service.search(ProgramFilter(city="savannah", zip_code="00000"))

        assert [p["id"] for p in result.programs] == [3]

    @pytest.mark.asyncio
    async def test_delivery_mode_fallback(self, failing_store):
        service = ProgramSearchService(store=failing_store)

        result = await service.search(ProgramFilter(delivery_mode="virtual"))

        assert result.fallback is True
        assert {p["id"] for p in result.programs} == {2, 4}

    @pytest.mark.asyncio
    async def test_list_all_fallback(self, failing_store):
        service = ProgramSearchService(store=failing_store)

        result = await service.list_all()

        assert result.fallback is True
        assert result.count == len(FALLBACK_PROGRAMS)
        names = [p["organization_name"] for p in result.programs]
        assert names == sorted(names)

    @pytest.mark.asyncio
    async def test_name_search_fallback(self, failing_store):
        service = ProgramSearchService(store=failing_store)

        result = await service.search_by_name("WELLNESS")

        assert [p["organization_name"] for p in result.programs] == [
            "Community Wellness Network"
        ]

    @pytest.mark.asyncio
    async def test_get_program_fallback(self, failing_store):
        service = ProgramSearchService(store=failing_store)

        found = await service.get_program(3)
        missing = await service.get_program(99)

        assert found.fallback is True
        assert found.programs[0]["organization_name"] == "Community Wellness Network"
        assert missing.programs == []


def test_fallback_programs_are_copies():
    """Callers may mutate the returned rows without touching the originals"""
    programs = fallback_programs()
    programs[0]["organization_name"] = "changed"

    assert "changed" not in [p["organization_name"] for p in FALLBACK_PROGRAMS]
