"""Relational program queries against `programs` and its child tables.

The `ProgramStore` encapsulates the parameterized SQL behind program search:
location and delivery-mode filters, organization name lookup, lookup by id
and listing. It also inserts new programs for maintenance tasks.
"""

from typing import Optional

from core.logging import logger
from db.session import AsyncSessionLocal
from models.programs import Program, ProgramDetails, ProgramLocation
from services.programs.filters import (
    LocationFilter,
    delivery_mode_condition,
    normalize_delivery_mode,
)
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

LOCATION_COLUMNS = (
    ProgramLocation.address_line1,
    ProgramLocation.address_line2,
    ProgramLocation.city,
    ProgramLocation.state,
    ProgramLocation.zip_code,
    ProgramLocation.latitude,
    ProgramLocation.longitude,
)

DETAIL_COLUMNS = (
    ProgramDetails.delivery_mode,
    ProgramDetails.language,
    ProgramDetails.class_schedule,
    ProgramDetails.duration_weeks,
    ProgramDetails.cost,
    ProgramDetails.insurance_accepted,
    ProgramDetails.max_participants,
    ProgramDetails.current_participants,
    ProgramDetails.enrollment_status,
)


class ProgramStoreError(Exception):
    """Raised when the relational store cannot answer a query."""


def program_query():
    """Return the base SELECT joining programs with location and details."""
    return (
        select(*Program.__table__.columns, *LOCATION_COLUMNS, *DETAIL_COLUMNS)
        .select_from(Program)
        .outerjoin(ProgramLocation, Program.id == ProgramLocation.program_id)
        .outerjoin(ProgramDetails, Program.id == ProgramDetails.program_id)
    )


class ProgramStore:
    """Run program queries and return plain row dictionaries.

    Every method opens its own session and releases it before returning.
    Database failures are re-raised as `ProgramStoreError` so callers can
    apply a single fallback policy.
    """

    async def _fetch(self, stmt) -> list[dict]:
        try:
            async with AsyncSessionLocal() as db:
                result = await db.execute(stmt)
                return [dict(row) for row in result.mappings().all()]
        except (SQLAlchemyError, OSError) as error:
            logger.error("Program query failed: {}", error)
            raise ProgramStoreError(str(error)) from error

    async def list_programs(self) -> list[dict]:
        """Return every program ordered by organization name."""
        stmt = program_query().order_by(Program.organization_name)
        programs = await self._fetch(stmt)
        logger.debug("Listed {} programs", len(programs))
        return programs

    async def search_by_location(self, location: LocationFilter) -> list[dict]:
        """Return programs matching the branch selected by `location`.

        Args:
            location: Zip code, state and city criteria.

        Returns:
            Matching rows ordered by organization name.
        """
        stmt = (
            program_query()
            .where(*location.sql_conditions())
            .order_by(Program.organization_name)
        )
        programs = await self._fetch(stmt)
        logger.info(
            "Location search branch={} found {} programs",
            location.branch,
            len(programs),
        )
        return programs

    async def search_by_delivery_mode(self, delivery_mode: str) -> list[dict]:
        """Return programs whose delivery mode matches the normalized input."""
        stmt = (
            program_query()
            .where(delivery_mode_condition(delivery_mode))
            .order_by(Program.organization_name)
        )
        programs = await self._fetch(stmt)
        logger.info(
            "Delivery mode search modes={} found {} programs",
            normalize_delivery_mode(delivery_mode),
            len(programs),
        )
        return programs

    async def search_by_name(self, name: str) -> list[dict]:
        """Return programs whose organization name contains `name`."""
        stmt = (
            program_query()
            .where(Program.organization_name.ilike(f"%{name}%"))
            .order_by(Program.organization_name)
        )
        return await self._fetch(stmt)

    async def get_program(self, program_id: int) -> Optional[dict]:
        """Return the program with `program_id`, or None."""
        stmt = program_query().where(Program.id == program_id)
        programs = await self._fetch(stmt)
        if not programs:
            logger.debug("Program not found id={}", program_id)
            return None
        return programs[0]

    async def create_program(
        self, program: dict, location: dict, details: dict
    ) -> int:
        """Insert a program with one location and one details row.

        The three rows are written in a single transaction.

        Returns:
            The id of the new program.
        """
        try:
            async with AsyncSessionLocal() as db:
                db_program = Program(**program)
                db_program.locations.append(ProgramLocation(**location))
                db_program.details.append(ProgramDetails(**details))
                db.add(db_program)
                await db.commit()
                logger.info(
                    "Created program id={} name={}",
                    db_program.id,
                    db_program.organization_name,
                )
                return db_program.id
        except (SQLAlchemyError, OSError) as error:
            logger.exception(
                "Failed to create program {}", program.get("organization_name")
            )
            raise ProgramStoreError(str(error)) from error
