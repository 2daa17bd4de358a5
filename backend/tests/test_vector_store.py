"""
Tests for vector store helpers and hybrid result merging
"""
from unittest.mock import AsyncMock, Mock, patch

import pytest

from services.search.embeddings import EmbeddingError, cosine_similarity
from services.search.vector_store import (
    VectorStore,
    combined_score,
    create_search_text,
    merge_hybrid_results,
)


class TestCreateSearchText:
    """Test the text that is embedded for each program"""

    def test_minimal_program(self):
        program = {
            "organization_name": "Virtual Health Solutions",
            "delivery_mode": "virtual-live",
            "city": "Remote",
            "state": "GA",
        }

        assert create_search_text(program) == (
            "Virtual Health Solutions. virtual-live program. Located in Remote, GA. "
            "CDC recognition: Unknown. English"
        )

    def test_optional_parts(self, program_rows):
        program = dict(program_rows[0], mdpp_supplier=True, language="Spanish")

        text = create_search_text(program)

        assert "Cost: $100" in text
        assert "Duration: 52 weeks" in text
        assert "Currently accepting new participants" in text
        assert "Medicare Diabetes Prevention Program supplier" in text
        assert "Spanish" in text
        assert "English" not in text

    def test_closed_enrollment_not_mentioned(self, program_rows):
        text = create_search_text(program_rows[1])

        assert "accepting new participants" not in text


class TestHybridMerge:
    """Test the full outer join of the vector and text legs"""

    def test_combined_score(self):
        assert combined_score(0.8, 0.5, 0.7) == pytest.approx(0.71)
        assert combined_score(0.8, 0.5, 1.0) == pytest.approx(0.8)

    def test_merge_orders_by_combined_score(self):
        vector_rows = [
            {"program_id": 1, "vector_similarity": 0.9, "embedding": [0.1]},
            {"program_id": 2, "vector_similarity": 0.3},
        ]
        text_rows = [
            {"program_id": 2, "text_rank": 0.5},
            {"program_id": 3, "text_rank": 0.1},
        ]

        results = merge_hybrid_results(vector_rows, text_rows, weight=0.7, limit=10)

        assert [row["id"] for row in results] == [1, 2, 3]
        assert results[0]["combined_score"] == pytest.approx(0.63)
        assert results[1]["combined_score"] == pytest.approx(0.36)
        assert results[1]["similarity"] == results[1]["combined_score"]
        assert results[2]["vector_similarity"] == 0.0
        assert results[0]["text_rank"] == 0.0
        assert "embedding" not in results[0]

    def test_identical_embedding_ranks_first(self):
        query = [0.6, 0.8]
        embeddings = {1: [0.8, 0.6], 2: [0.6, 0.8], 3: [1.0, 0.0]}
        vector_rows = [
            {"program_id": pid, "vector_similarity": cosine_similarity(query, emb)}
            for pid, emb in embeddings.items()
        ]
        text_rows = [{"program_id": 3, "text_rank": 0.9}]

        results = merge_hybrid_results(vector_rows, text_rows, weight=1.0, limit=5)

        assert [row["id"] for row in results] == [2, 1, 3]
        assert results[0]["similarity"] == pytest.approx(1.0)

    def test_merge_drops_zero_scores_and_limits(self):
        vector_rows = [
            {"program_id": 1, "vector_similarity": 0.9},
            {"program_id": 2, "vector_similarity": 0.5},
            {"program_id": 4, "vector_similarity": 0.0},
        ]

        results = merge_hybrid_results(vector_rows, [], weight=0.7, limit=5)
        limited = merge_hybrid_results(vector_rows, [], weight=0.7, limit=1)

        assert [row["id"] for row in results] == [1, 2]
        assert [row["id"] for row in limited] == [1]


class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([0.3, 0.4], [0.3, 0.4]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)


class TestVectorStore:
    """Test VectorStore behaviour that does not need a database"""

    def setup_method(self):
        self.embeddings = Mock()
        self.embeddings.embed = AsyncMock(side_effect=EmbeddingError("model missing"))
        self.store = VectorStore(embeddings=self.embeddings)

    def test_settings_applied(self):
        with patch("services.search.vector_store.settings") as mock_settings:
            mock_settings.HYBRID_VECTOR_WEIGHT = 0.5
            mock_settings.SEMANTIC_SEARCH_LIMIT = 8

            store = VectorStore(embeddings=self.embeddings)

        assert store.hybrid_vector_weight == 0.5
        assert store.similarity_search_limit == 8

    @pytest.mark.asyncio
    async def test_hybrid_falls_back_to_vector_search(self):
        """A failing hybrid query is retried as a vector-only search"""
        expected = [{"id": 1, "similarity": 0.8}]
        with patch.object(
            self.store, "semantic_search", AsyncMock(return_value=expected)
        ) as semantic_search:
            results = await self.store.hybrid_search("virtual classes", limit=3)

        assert results == expected
        semantic_search.assert_awaited_once_with("virtual classes", 3)

    @pytest.mark.asyncio
    async def test_semantic_search_raises_embedding_error(self):
        with pytest.raises(EmbeddingError):
            await self.store.semantic_search("virtual classes")

    @pytest.mark.asyncio
    async def test_bulk_upsert_skips_failures(self):
        """Failed programs are logged and skipped, progress is still reported"""
        self.store.upsert_delay = 0
        progress = AsyncMock()
        with patch.object(
            self.store,
            "upsert_program",
            AsyncMock(side_effect=[101, RuntimeError("boom"), 103]),
        ):
            stored = await self.store.bulk_upsert(
                [{"id": 1}, {"id": 2}, {"id": 3}], on_progress=progress
            )

        assert stored == [101, 103]
        assert [c.args[0] for c in progress.await_args_list] == [1, 2, 3]
