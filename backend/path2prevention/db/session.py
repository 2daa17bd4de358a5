"""Async SQLAlchemy engine and session helpers.

Provides a configured async engine, sessionmaker and helper functions for
initializing the database and yielding sessions for dependency injection.
"""

from config.config import settings
from core.logging import logger
from sqlalchemy import func, inspect, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

engine = create_async_engine(
    settings.DATABASE_URL_ASYNC,
    echo=settings.DATABASE_ECHO,
    pool_size=5,
    max_overflow=10,
)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()

# NOTE: ivfflat and GIN expression indexes are not expressible on the
# declarative models, so they are created here after the tables.
VECTOR_INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS programs_vector_embedding_idx "
    "ON programs_vector USING ivfflat (embedding vector_cosine_ops) "
    "WITH (lists = 100)",
    "CREATE INDEX IF NOT EXISTS programs_vector_search_text_idx "
    "ON programs_vector USING gin(to_tsvector('english', search_text))",
)


def _register_models() -> None:
    # NOTE: imported for their side effect of registering tables on `Base`.
    import models.assessments  # noqa: F401
    import models.programs  # noqa: F401
    import models.tasks  # noqa: F401


async def initialize_database() -> list[str]:
    """Create the vector extension, all metadata tables and search indexes.

    Returns:
        list[str]: Names of the tables known to the metadata.

    Raises:
        Exception: Re-raises any exception encountered while initializing.
    """

    _register_models()
    logger.info("Initializing database (extensions + tables + indexes)")
    async with engine.begin() as conn:
        try:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.run_sync(Base.metadata.create_all)
            for statement in VECTOR_INDEX_STATEMENTS:
                await conn.execute(text(statement))
            logger.info("Database initialization complete")
        except Exception:
            logger.exception("Database initialization failed")
            raise
    return sorted(Base.metadata.tables.keys())


async def get_db():
    """Yield an async database session for FastAPI dependency injection.

    Usage:
        db: AsyncSession = Depends(get_db)

    Yields:
        AsyncSession: an asynchronous SQLAlchemy session.
    """

    async with AsyncSessionLocal() as session:
        yield session


def _inspect_schema(sync_conn) -> dict:
    inspector = inspect(sync_conn)
    tables = {}
    foreign_keys = []
    for table_name in sorted(inspector.get_table_names()):
        tables[table_name] = {
            "columns": [
                {
                    "column_name": column["name"],
                    "data_type": str(column["type"]),
                    "is_nullable": column["nullable"],
                    "column_default": column.get("default"),
                }
                for column in inspector.get_columns(table_name)
            ]
        }
        for fk in inspector.get_foreign_keys(table_name):
            columns = zip(fk["constrained_columns"], fk["referred_columns"])
            for column, referred in columns:
                foreign_keys.append(
                    {
                        "table_name": table_name,
                        "column_name": column,
                        "foreign_table_name": fk["referred_table"],
                        "foreign_column_name": referred,
                    }
                )
    return {"tables": tables, "foreign_keys": foreign_keys}


async def describe_database() -> dict:
    """Return the database name, tables with columns and row counts, and FKs.

    Row counts are only taken for tables known to the metadata; other tables
    report 0.
    """
    _register_models()
    async with engine.connect() as conn:
        info = (
            await conn.execute(
                text("SELECT current_database(), current_user, version()")
            )
        ).one()
        structure = await conn.run_sync(_inspect_schema)
        for table_name, table in structure["tables"].items():
            row_count = 0
            if table_name in Base.metadata.tables:
                row_count = (
                    await conn.execute(
                        select(func.count()).select_from(
                            Base.metadata.tables[table_name]
                        )
                    )
                ).scalar_one()
            table["row_count"] = row_count

    return {
        "database": {
            "name": info[0],
            "user": info[1],
            "version": info[2].split(" ")[1],
        },
        "tables": structure["tables"],
        "foreign_keys": structure["foreign_keys"],
        "summary": {
            "total_tables": len(structure["tables"]),
            "total_foreign_keys": len(structure["foreign_keys"]),
        },
    }
