"""Vector store helpers: embed, upsert and query the `programs_vector` table.

This module wraps embedding generation and pgvector-backed similarity
search for programs. Vector-only search ranks by `1 - cosine_distance`;
hybrid search also ranks `search_text` with Postgres full-text search and
merges both legs into one weighted score.
"""

import asyncio
from typing import Callable, List, Optional

from config.config import settings
from core.logging import logger
from db.session import AsyncSessionLocal
from models.programs import ProgramVector
from services.search.embeddings import EmbeddingGenerator
from sqlalchemy import distinct, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError

# Columns copied from the relational program row into `programs_vector`.
PROGRAM_FIELDS = (
    "organization_name",
    "description",
    "city",
    "state",
    "zip_code",
    "delivery_mode",
    "language",
    "cost",
    "duration_weeks",
    "enrollment_status",
    "cdc_recognition_status",
    "mdpp_supplier",
    "contact_phone",
    "contact_email",
    "website_url",
    "class_schedule",
)

RESULT_COLUMNS = tuple(
    getattr(ProgramVector, name) for name in ("program_id",) + PROGRAM_FIELDS
)


class VectorStoreError(Exception):
    """Raised when the vector store cannot answer a query."""


def create_search_text(program: dict) -> str:
    """Build the human-readable summary that is embedded and text-ranked."""
    cost = program.get("cost")
    duration = program.get("duration_weeks")
    parts = [
        program.get("organization_name") or "",
        program.get("description") or "",
        f"{program.get('delivery_mode') or ''} program",
        f"Located in {program.get('city') or ''}, {program.get('state') or ''}",
        f"CDC recognition: {program.get('cdc_recognition_status') or 'Unknown'}",
        program.get("language") or "English",
        f"Cost: ${cost}" if cost else "",
        f"Duration: {duration} weeks" if duration else "",
        "Currently accepting new participants"
        if program.get("enrollment_status") == "open"
        else "",
        "Medicare Diabetes Prevention Program supplier"
        if program.get("mdpp_supplier")
        else "",
        program.get("class_schedule") or "",
    ]
    return ". ".join(part for part in parts if part)


def combined_score(vector_similarity: float, text_rank: float, weight: float) -> float:
    """Weighted hybrid score: `weight * similarity + (1 - weight) * rank`."""
    return weight * vector_similarity + (1 - weight) * text_rank


def merge_hybrid_results(
    vector_rows: List[dict], text_rows: List[dict], weight: float, limit: int
) -> List[dict]:
    """Full outer join the two legs on `program_id` and rank by combined score.

    A program missing from one leg scores 0 for that leg. Rows with a
    combined score of 0 or less are dropped.
    """
    merged: dict[int, dict] = {}
    for row in vector_rows:
        merged[row["program_id"]] = {**row, "text_rank": 0.0}
    for row in text_rows:
        existing = merged.get(row["program_id"])
        if existing is None:
            merged[row["program_id"]] = {**row, "vector_similarity": 0.0}
        else:
            existing["text_rank"] = row["text_rank"]

    results = []
    for row in merged.values():
        score = combined_score(
            float(row["vector_similarity"] or 0), float(row["text_rank"] or 0), weight
        )
        if score > 0:
            results.append({**row, "combined_score": score, "similarity": score})
    results.sort(key=lambda row: row["combined_score"], reverse=True)
    return [_public_row(row) for row in results[:limit]]


def _public_row(row: dict) -> dict:
    """Drop embedding columns and expose `id` like the relational rows."""
    public = {
        key: value
        for key, value in row.items()
        if key not in ("embedding", "search_text")
    }
    public["id"] = row["program_id"]
    return public


class VectorStore:
    """Encapsulates embedding upserts and similarity search over programs.

    Attributes:
        embeddings: Embedding generator for program text and queries.
        similarity_search_threshold: Minimum similarity for vector-only search.
        hybrid_vector_threshold: Minimum similarity for the hybrid vector leg.
        hybrid_vector_weight: Default weight of the vector leg in hybrid search.
        similarity_search_limit: Default maximum number of results.
        upsert_delay: Pause in seconds between upserts in a bulk build.
    """

    def __init__(self, embeddings: Optional[EmbeddingGenerator] = None) -> None:
        self.embeddings = embeddings or EmbeddingGenerator()
        self.similarity_search_threshold = settings.VECTOR_SIMILARITY_THRESHOLD
        self.hybrid_vector_threshold = settings.HYBRID_VECTOR_THRESHOLD
        self.hybrid_vector_weight = settings.HYBRID_VECTOR_WEIGHT
        self.similarity_search_limit = settings.SEMANTIC_SEARCH_LIMIT
        self.upsert_delay = settings.EMBEDDING_UPSERT_DELAY_SECONDS

    async def upsert_program(self, program: dict) -> int:
        """Regenerate search text and embedding and upsert the whole row.

        Args:
            program: Relational program row (program, location and details).

        Returns:
            The `programs_vector` row id.
        """
        search_text = create_search_text(program)
        embedding = await self.embeddings.embed(search_text)

        values = {name: program.get(name) for name in PROGRAM_FIELDS}
        values.update(
            program_id=program["id"],
            language=program.get("language") or "English",
            search_text=search_text,
            embedding=embedding,
        )
        stmt = insert(ProgramVector).values(**values)
        update_columns = {
            name: stmt.excluded[name] for name in values if name != "program_id"
        }
        update_columns["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=[ProgramVector.program_id], set_=update_columns
        ).returning(ProgramVector.id)

        async with AsyncSessionLocal() as db:
            result = await db.execute(stmt)
            await db.commit()
            return result.scalar_one()

    async def bulk_upsert(
        self,
        programs: List[dict],
        on_progress: Optional[Callable[[int], object]] = None,
    ) -> List[int]:
        """Upsert programs one at a time, skipping the ones that fail.

        Args:
            programs: Relational program rows.
            on_progress: Optional awaitable callback receiving the number of
                programs processed so far.

        Returns:
            Row ids of the programs that were stored.
        """
        logger.info("Processing {} programs for vector storage", len(programs))
        stored = []
        for processed, program in enumerate(programs, start=1):
            try:
                stored.append(await self.upsert_program(program))
            except Exception:
                logger.exception("Error processing program {}", program.get("id"))
            if processed % 10 == 0:
                logger.info("Processed {}/{} programs", processed, len(programs))
            if on_progress is not None:
                await on_progress(processed)
            # NOTE: pacing for the local embedding model.
            await asyncio.sleep(self.upsert_delay)

        logger.info("Stored {}/{} programs", len(stored), len(programs))
        return stored

    async def semantic_search(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[dict]:
        """Find programs whose embedding is similar to the query embedding.

        Similarity is `1 - cosine_distance`; rows at or below the threshold
        are dropped and the rest are ordered by distance.

        Returns:
            Result rows with a float `similarity`.
        """
        limit = limit or self.similarity_search_limit
        threshold = self.similarity_search_threshold if threshold is None else threshold
        query_embedding = await self.embeddings.embed(query)

        distance = ProgramVector.embedding.cosine_distance(query_embedding)
        stmt = (
            select(*RESULT_COLUMNS, (1 - distance).label("similarity"))
            .where((1 - distance) > threshold)
            .order_by(distance)
            .limit(limit)
        )
        try:
            async with AsyncSessionLocal() as db:
                result = await db.execute(stmt)
                rows = result.mappings().all()
        except (SQLAlchemyError, OSError) as error:
            logger.exception("Error performing semantic search")
            raise VectorStoreError(str(error)) from error

        programs = []
        for row in rows:
            program = _public_row(dict(row))
            program["similarity"] = float(row["similarity"])
            programs.append(program)
        logger.debug("Semantic search returned {} programs", len(programs))
        return programs

    async def hybrid_search(
        self,
        query: str,
        limit: Optional[int] = None,
        vector_weight: Optional[float] = None,
    ) -> List[dict]:
        """Rank programs by weighted vector similarity and text rank.

        Falls back to `semantic_search` on any failure.
        """
        limit = limit or self.similarity_search_limit
        weight = self.hybrid_vector_weight if vector_weight is None else vector_weight
        try:
            query_embedding = await self.embeddings.embed(query)

            distance = ProgramVector.embedding.cosine_distance(query_embedding)
            vector_stmt = select(
                *RESULT_COLUMNS, (1 - distance).label("vector_similarity")
            ).where((1 - distance) > self.hybrid_vector_threshold)

            ts_vector = func.to_tsvector("english", ProgramVector.search_text)
            ts_query = func.plainto_tsquery("english", query)
            text_stmt = select(
                *RESULT_COLUMNS, func.ts_rank(ts_vector, ts_query).label("text_rank")
            ).where(ts_vector.op("@@")(ts_query))

            async with AsyncSessionLocal() as db:
                vector_rows = [
                    dict(row) for row in (await db.execute(vector_stmt)).mappings()
                ]
                text_rows = [
                    dict(row) for row in (await db.execute(text_stmt)).mappings()
                ]
            return merge_hybrid_results(vector_rows, text_rows, weight, limit)
        except Exception:
            logger.exception("Error performing hybrid search, using vector search")
            return await self.semantic_search(query, limit)

    async def get_stats(self) -> dict:
        """Return counts and coverage figures for `programs_vector`."""
        stmt = select(
            func.count().label("total_programs"),
            func.count(ProgramVector.embedding).label("programs_with_embeddings"),
            func.count(distinct(ProgramVector.delivery_mode)).label("delivery_modes"),
            func.count(distinct(ProgramVector.state)).label("states_covered"),
            func.avg(ProgramVector.cost).label("avg_cost"),
            func.min(ProgramVector.created_at).label("oldest_program"),
            func.max(ProgramVector.updated_at).label("last_updated"),
        )
        try:
            async with AsyncSessionLocal() as db:
                result = await db.execute(stmt)
                stats = dict(result.mappings().one())
        except (SQLAlchemyError, OSError) as error:
            logger.error("Vector stats query failed: {}", error)
            raise VectorStoreError(str(error)) from error
        if stats["avg_cost"] is not None:
            stats["avg_cost"] = float(stats["avg_cost"])
        return stats
