"""Sentence embeddings for program search text and user queries."""

from functools import lru_cache
from typing import List

import numpy as np
from config.config import settings
from core.logging import logger
from langchain_huggingface import HuggingFaceEmbeddings


class EmbeddingError(Exception):
    """Raised when the embedding model cannot produce a vector."""


@lru_cache(maxsize=1)
def get_embedding_model() -> HuggingFaceEmbeddings:
    """Load the local sentence embedding model once per process."""
    logger.info("Loading local embedding model {}", settings.EMBEDDING_MODEL_NAME)
    # NOTE: normalized vectors make cosine similarity equal to the dot product.
    return HuggingFaceEmbeddings(
        model_name=settings.EMBEDDING_MODEL_NAME,
        encode_kwargs={"normalize_embeddings": True},
    )


def clean_text(text: str) -> str:
    return text.replace("\n", " ").strip()


def cosine_similarity(vec_a: List[float], vec_b: List[float]) -> float:
    """Cosine similarity of two vectors, matching `1 - (a <=> b)` in pgvector."""
    a = np.asarray(vec_a, dtype=float)
    b = np.asarray(vec_b, dtype=float)
    return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))


class EmbeddingGenerator:
    """Turn text into fixed-length, L2-normalized embedding vectors."""

    def __init__(self, model: HuggingFaceEmbeddings | None = None) -> None:
        self._model = model

    @property
    def model(self) -> HuggingFaceEmbeddings:
        if self._model is None:
            self._model = get_embedding_model()
        return self._model

    async def embed(self, text: str) -> List[float]:
        """Return the embedding of a single text."""
        try:
            return await self.model.aembed_query(clean_text(text))
        except Exception as error:
            logger.exception("Failed to generate embedding")
            raise EmbeddingError(str(error)) from error
