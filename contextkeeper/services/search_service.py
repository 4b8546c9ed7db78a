"""Retrieval-side orchestrator: similarity search, tag-scoped search, references.

The embedding index only nominates candidates.  Every candidate is resolved
against the context store (the source of truth) before it is ranked, so index
entries that outlived their context simply drop out of the result.

Resolution is best-effort: a candidate or reference whose context or chunk
set cannot be found is skipped and logged at debug level, never raised.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Literal

import structlog

from contextkeeper.models.context import (
    Context,
    ContextChunk,
    ContextMatch,
    ContextReference,
    ContextSearchResult,
)
from contextkeeper.utils.errors import ConfigurationError, ContextKeeperError, InvalidReferenceError
from contextkeeper.utils.logging import get_logger

if TYPE_CHECKING:
    from contextkeeper.interfaces.context_store import IContextStore
    from contextkeeper.interfaces.embedding_provider import IEmbeddingProvider
    from contextkeeper.services.ranker import RetrievalRanker

TagSearchStrategy = Literal["rank_all", "restrict"]

_STRATEGIES: frozenset[str] = frozenset({"rank_all", "restrict"})


class ContextSearchService:
    """Answers queries by combining the embedding index, the store and the ranker.

    Parameters
    ----------
    context_store:
        Source of truth for contexts and chunk sets.
    embedding_provider:
        Candidate generator for free-text queries.
    ranker:
        Produces the final scores and ordering.
    tag_search_strategy:
        ``"rank_all"`` ranks every tag-matched context without consulting
        the index.  ``"restrict"`` keeps only tag-matched contexts that own
        at least one chunk the index returns for the query.
    tag_candidate_cap:
        Maximum number of tag-matched contexts pulled from the store.
    """

    def __init__(
        self,
        context_store: IContextStore,
        embedding_provider: IEmbeddingProvider,
        ranker: RetrievalRanker,
        tag_search_strategy: TagSearchStrategy = "rank_all",
        tag_candidate_cap: int = 1000,
    ) -> None:
        if tag_search_strategy not in _STRATEGIES:
            raise ConfigurationError(
                f"Unknown tag_search_strategy {tag_search_strategy!r}; "
                f"expected one of {sorted(_STRATEGIES)}"
            )
        if tag_candidate_cap <= 0:
            raise ConfigurationError(
                f"tag_candidate_cap must be positive (got {tag_candidate_cap})"
            )
        self._store = context_store
        self._embedder = embedding_provider
        self._ranker = ranker
        self._strategy = tag_search_strategy
        self._candidate_cap = tag_candidate_cap
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def tag_search_strategy(self) -> str:
        return self._strategy

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search(self, query: str, limit: int) -> ContextSearchResult:
        """Return contexts relevant to *query*, best match first.

        Parameters
        ----------
        query:
            Free-text query.
        limit:
            Number of index candidates (chunks) to consider.  The number of
            matches returned is further capped by the ranker's
            ``max_results``.
        """
        similar = await self._embedder.find_similar(query, limit)
        context_ids = _distinct_context_ids(chunk for chunk, _ in similar)

        contexts: list[Context] = []
        for context_id in context_ids:
            context = await self._resolve_context(context_id)
            if context is not None:
                contexts.append(context)

        result = await self._rank(query, contexts)
        self._logger.info(
            "search_complete",
            query_length=len(query),
            candidates=len(similar),
            total_matches=result.total_matches,
        )
        return result

    async def search_with_tags(self, query: str, tags: list[str], limit: int) -> ContextSearchResult:
        """Return contexts carrying every tag in *tags*, ranked against *query*."""
        tagged = await self._store.find_by_tags(tags, self._candidate_cap, 0)
        if not tagged:
            return ContextSearchResult()

        if self._strategy == "restrict":
            similar = await self._embedder.find_similar_with_tags(query, tags, limit)
            owners = {chunk.context_id for chunk, _ in similar}
            tagged = [context for context in tagged if context.id in owners]

        result = await self._rank(query, tagged)
        self._logger.info(
            "tag_search_complete",
            tags=tags,
            strategy=self._strategy,
            tagged_contexts=len(tagged),
            total_matches=result.total_matches,
        )
        return result

    async def retrieve_by_references(self, references: list[ContextReference]) -> ContextSearchResult:
        """Resolve explicit references into matches, in reference order.

        Each match is scored with the reference's weight (1.0 when absent).
        References whose context or chunks cannot be found are skipped.

        Raises
        ------
        InvalidReferenceError
            If any reference has a blank ``context_id`` or a non-finite
            weight.  Nothing is resolved in that case.
        """
        for reference in references:
            _validate_reference(reference)

        matches: list[ContextMatch] = []
        for reference in references:
            context = await self._resolve_context(reference.context_id)
            if context is None:
                continue
            chunks = await self._resolve_chunks(reference.context_id)
            if chunks is None:
                continue
            if reference.chunk_ids is not None:
                wanted = set(reference.chunk_ids)
                chunks = [chunk for chunk in chunks if chunk.chunk_id in wanted]
            matches.append(
                ContextMatch(context=context, chunks=chunks, score=reference.effective_weight)
            )

        self._logger.info(
            "references_resolved", requested=len(references), resolved=len(matches)
        )
        return ContextSearchResult.from_matches(matches)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _rank(self, query: str, contexts: list[Context]) -> ContextSearchResult:
        """Gather chunk sets for *contexts*, rank, and build the result."""
        chunks_by_context: dict[str, list[ContextChunk]] = {}
        all_chunks: list[ContextChunk] = []
        for context in contexts:
            chunks = await self._resolve_chunks(context.id)
            if chunks is not None:
                chunks_by_context[context.id] = chunks
                all_chunks.extend(chunks)

        ranked = self._ranker.rank(query, contexts, all_chunks)
        matches = [
            ContextMatch(context=context, chunks=chunks_by_context.get(context.id), score=score)
            for context, score in ranked
        ]
        return ContextSearchResult.from_matches(matches)

    async def _resolve_context(self, context_id: str) -> Context | None:
        try:
            return await self._store.find(context_id)
        except ContextKeeperError as exc:
            self._logger.debug("candidate_context_skipped", context_id=context_id, error=str(exc))
            return None

    async def _resolve_chunks(self, context_id: str) -> list[ContextChunk] | None:
        try:
            return await self._store.find_chunks_by_context_id(context_id)
        except ContextKeeperError as exc:
            self._logger.debug("candidate_chunks_skipped", context_id=context_id, error=str(exc))
            return None


def _distinct_context_ids(chunks) -> list[str]:
    seen: dict[str, None] = {}
    for chunk in chunks:
        seen.setdefault(chunk.context_id, None)
    return list(seen)


def _validate_reference(reference: ContextReference) -> None:
    if not reference.context_id.strip():
        raise InvalidReferenceError("Reference context_id must not be blank")
    if reference.weight is not None and not math.isfinite(reference.weight):
        raise InvalidReferenceError(
            f"Reference weight must be finite (got {reference.weight}) "
            f"for context {reference.context_id}"
        )
