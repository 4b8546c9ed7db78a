"""Abstract base class for chunk-embedding providers.

Defines the contract for turning chunk text into vectors and for the coarse
similarity pass that generates retrieval candidates.  The embedding score
is a recall signal only: final relevance comes from
:class:`~contextkeeper.services.ranker.RetrievalRanker`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from contextkeeper.models.context import ContextChunk


# Concrete implementation: HashingEmbeddingProvider (contextkeeper/providers/embedding/)
# A real model-backed provider must keep the same contract: deterministic
# output, fixed dimensionality, cosine-comparable vectors.
class IEmbeddingProvider(ABC):
    """Contract for vectorizing chunks and searching the resulting index."""

    @abstractmethod
    async def embed(
        self,
        chunks: list[ContextChunk],
        tags: list[str] | None = None,
    ) -> list[ContextChunk]:
        """Attach an embedding to every chunk and index it by ``chunk_id``.

        Parameters
        ----------
        chunks:
            Chunks to vectorize.  Identical text always yields a
            bit-identical vector, so repeating the call is safe.
        tags:
            Tags of the owning context, recorded alongside each index entry
            for :meth:`find_similar_with_tags`.

        Returns
        -------
        list[ContextChunk]
            Copies of *chunks* with ``embedding`` populated, in input order.

        Raises
        ------
        contextkeeper.utils.errors.EmbeddingError
            If vectorization fails.
        """

    @abstractmethod
    async def find_similar(self, query: str, limit: int) -> list[tuple[ContextChunk, float]]:
        """Return up to *limit* indexed chunks ranked by cosine similarity to *query*.

        Returns
        -------
        list[tuple[ContextChunk, float]]
            ``(chunk, similarity)`` pairs, similarity descending.
        """

    @abstractmethod
    async def find_similar_with_tags(
        self,
        query: str,
        tags: list[str],
        limit: int,
    ) -> list[tuple[ContextChunk, float]]:
        """Like :meth:`find_similar`, restricted to chunks indexed with all of *tags*."""

    @abstractmethod
    async def delete_by_context_id(self, context_id: str) -> int:
        """Drop every index entry belonging to *context_id*.

        Returns
        -------
        int
            The number of entries removed (``0`` if none existed).
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the fixed dimensionality of the produced vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"hashing-embedder"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider can embed right now."""
