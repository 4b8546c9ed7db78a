"""Deterministic token-hashing embedding provider.

A placeholder for a real embedding model that keeps the contract any
replacement must honour: identical text gives a bit-identical vector, the
dimensionality is fixed at construction, and vectors are compared with cosine
similarity.

Vectorization
-------------
1. Split on whitespace, lowercase, keep only alphanumeric characters of each
   token, drop tokens that end up empty.
2. Count token frequencies.
3. Map each distinct token to ``sum(utf8 bytes) % dimension`` and add its
   count to that dimension.
4. L2-normalise (an all-zero vector stays zero).

The index is an exhaustive ``chunk_id -> entry`` dict scanned linearly on
every query.  That is acceptable because the index only produces retrieval
candidates; chunk content of record lives in the context store.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass

import numpy as np
import structlog

from contextkeeper.interfaces.embedding_provider import IEmbeddingProvider
from contextkeeper.models.context import ContextChunk
from contextkeeper.utils.errors import ConfigurationError, ContextValidationError, EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "hashing-embedder"


def tokenize(text: str) -> list[str]:
    """Return the normalised tokens of *text* used for vectorization."""
    tokens: list[str] = []
    for raw in text.split():
        token = "".join(ch for ch in raw.lower() if ch.isalnum())
        if token:
            tokens.append(token)
    return tokens


def compute_embedding(text: str, dimension: int) -> np.ndarray:
    """Vectorize *text* into an L2-normalised float32 array of length *dimension*."""
    vector = np.zeros(dimension, dtype=np.float32)
    for token, count in Counter(tokenize(text)).items():
        vector[sum(token.encode("utf-8")) % dimension] += count

    magnitude = np.linalg.norm(vector)
    if magnitude > 0:
        vector /= magnitude
    return vector


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors; ``0.0`` when either has zero magnitude."""
    magnitude_a = float(np.linalg.norm(a))
    magnitude_b = float(np.linalg.norm(b))
    if magnitude_a > 0 and magnitude_b > 0:
        return float(np.dot(a, b)) / (magnitude_a * magnitude_b)
    return 0.0


@dataclass(frozen=True)
class _IndexEntry:
    chunk: ContextChunk
    vector: np.ndarray
    tags: frozenset[str]


class HashingEmbeddingProvider(IEmbeddingProvider):
    """In-process :class:`IEmbeddingProvider` with a linear-scan vector index.

    Parameters
    ----------
    dimension:
        Length of every produced vector.  Must be positive.
    """

    def __init__(self, dimension: int = 768) -> None:
        if dimension <= 0:
            raise ConfigurationError(
                f"Embedding dimension must be positive (got {dimension})",
                provider_name=_PROVIDER_NAME,
            )
        self._dimension = dimension
        self._index: dict[str, _IndexEntry] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(
        self,
        chunks: list[ContextChunk],
        tags: list[str] | None = None,
    ) -> list[ContextChunk]:
        if not chunks:
            return []

        tag_set = frozenset(tags or ())
        try:
            entries = []
            for chunk in chunks:
                vector = compute_embedding(chunk.content, self._dimension)
                embedded = chunk.model_copy(update={"embedding": vector.tolist()})
                entries.append(_IndexEntry(chunk=embedded, vector=vector, tags=tag_set))
        except Exception as exc:
            raise EmbeddingError(
                message=f"Failed to vectorize chunks: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        with self._lock:
            for entry in entries:
                self._index[entry.chunk.chunk_id] = entry

        logger.debug("chunks_embedded", num_chunks=len(entries), dimension=self._dimension)
        return [entry.chunk.model_copy(deep=True) for entry in entries]

    async def find_similar(self, query: str, limit: int) -> list[tuple[ContextChunk, float]]:
        with self._lock:
            candidates = list(self._index.values())
        return self._score(query, candidates, limit)

    async def find_similar_with_tags(
        self,
        query: str,
        tags: list[str],
        limit: int,
    ) -> list[tuple[ContextChunk, float]]:
        required = set(tags)
        with self._lock:
            candidates = [e for e in self._index.values() if required.issubset(e.tags)]
        return self._score(query, candidates, limit)

    async def delete_by_context_id(self, context_id: str) -> int:
        with self._lock:
            stale = [cid for cid, e in self._index.items() if e.chunk.context_id == context_id]
            for chunk_id in stale:
                del self._index[chunk_id]

        if stale:
            logger.debug("embeddings_deleted", context_id=context_id, num_chunks=len(stale))
        return len(stale)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _score(
        self,
        query: str,
        candidates: list[_IndexEntry],
        limit: int,
    ) -> list[tuple[ContextChunk, float]]:
        if limit < 0:
            raise ContextValidationError(
                f"limit must be non-negative (got {limit})", provider_name=_PROVIDER_NAME
            )

        query_vector = compute_embedding(query, self._dimension)
        scored = [(e.chunk, cosine_similarity(query_vector, e.vector)) for e in candidates]
        # Stable: equal scores keep index order.
        scored.sort(key=lambda pair: pair[1], reverse=True)
        # Index entries stay private; callers get their own copies.
        return [(chunk.model_copy(deep=True), score) for chunk, score in scored[:limit]]

    def __len__(self) -> int:
        with self._lock:
            return len(self._index)
