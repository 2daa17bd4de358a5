"""Semantic program search used by the API and the chat assistant.

`SemanticSearchService.search` checks that the vector store holds
embeddings, analyzes the query intent, runs a hybrid or vector-only search
and attaches follow-up questions. When the vector store is empty or
unreachable it answers with plain program rows. When embedding or vector
queries fail it ranks programs by word overlap instead.
"""

from typing import List, Optional

from core.logging import logger
from schemas.search import IntentAnalysis, SemanticSearchResponse
from services.programs.search_service import ProgramSearchService
from services.search.embeddings import EmbeddingError
from services.search.intent import (
    analyze_user_intent,
    generate_follow_up_questions,
    simple_text_search,
)
from services.search.vector_store import VectorStore, VectorStoreError


class SemanticSearchService:
    """Rank programs against a free-text query."""

    def __init__(
        self,
        vector_store: Optional[VectorStore] = None,
        program_search: Optional[ProgramSearchService] = None,
    ) -> None:
        self.vector_store = vector_store or VectorStore()
        self.program_search = program_search or ProgramSearchService()

    async def vector_index_ready(self) -> bool:
        """Return True when at least one program has an embedding."""
        try:
            stats = await self.vector_store.get_stats()
        except VectorStoreError as error:
            logger.warning("Vector stats unavailable: {}", error)
            return False
        return stats["programs_with_embeddings"] > 0

    async def search(
        self,
        query: str,
        limit: int = 5,
        conversation_history: Optional[List[str]] = None,
        mode: str = "hybrid",
        vector_weight: Optional[float] = None,
    ) -> SemanticSearchResponse:
        if not await self.vector_index_ready():
            logger.info("Vector index not available, returning program listing")
            listing = await self.program_search.list_all()
            results = listing.programs[:limit]
            return SemanticSearchResponse(
                query=query,
                intent_analysis=IntentAnalysis(confidence=0.5),
                results=results,
                count=len(results),
                fallback=True,
            )

        intent = await analyze_user_intent(query, conversation_history or [])

        try:
            if mode == "vector":
                results = await self.vector_store.semantic_search(query, limit)
            else:
                results = await self.vector_store.hybrid_search(
                    query, limit, vector_weight=vector_weight
                )
        except (EmbeddingError, VectorStoreError) as error:
            logger.warning("Vector search failed, using text search: {}", error)
            listing = await self.program_search.list_all()
            results = simple_text_search(query, listing.programs, limit)
            return self._response(query, intent, results, pgvector=False, fallback=True)

        return self._response(query, intent, results, pgvector=True, fallback=False)

    def _response(
        self,
        query: str,
        intent: IntentAnalysis,
        results: List[dict],
        pgvector: bool,
        fallback: bool,
    ) -> SemanticSearchResponse:
        questions = generate_follow_up_questions(results, intent.preferences)
        intent = intent.model_copy(update={"questions_to_ask": questions})
        logger.debug(
            "Semantic search for '{}' returned {} programs", query, len(results)
        )
        return SemanticSearchResponse(
            query=query,
            intent_analysis=intent,
            results=results,
            count=len(results),
            pgvector=pgvector,
            fallback=fallback,
        )
