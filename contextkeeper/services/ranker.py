"""Exact term-overlap reranking of candidate contexts.

The embedding index narrows the search space; this module produces the score
callers actually see.  A context's score is the fraction of whitespace-split
query terms that occur, case-insensitively, as substrings of its full
content.
"""

from __future__ import annotations

from functools import cmp_to_key

from contextkeeper.models.context import Context, ContextChunk
from contextkeeper.utils.errors import ConfigurationError


def _descending(a: tuple[Context, float], b: tuple[Context, float]) -> int:
    # Incomparable scores (NaN) compare equal so the stable sort keeps input order.
    if b[1] > a[1]:
        return 1
    if a[1] > b[1]:
        return -1
    return 0


def term_overlap_score(query_terms: list[str], content: str) -> float:
    """Return the fraction of *query_terms* found in *content* (0.0 for no terms)."""
    if not query_terms:
        return 0.0
    haystack = content.lower()
    matched = sum(1 for term in query_terms if term.lower() in haystack)
    return matched / len(query_terms)


class RetrievalRanker:
    """Scores and orders candidate contexts against a query.

    Parameters
    ----------
    max_results:
        Maximum number of ``(context, score)`` pairs :meth:`rank` returns.
    """

    def __init__(self, max_results: int = 10) -> None:
        if max_results <= 0:
            raise ConfigurationError(f"max_results must be positive (got {max_results})")
        self._max_results = max_results

    @property
    def max_results(self) -> int:
        return self._max_results

    def rank(
        self,
        query: str,
        contexts: list[Context],
        chunks: list[ContextChunk],
    ) -> list[tuple[Context, float]]:
        """Score every candidate and return the best, highest score first.

        *chunks* is accepted so that chunk-aware scorers can share this
        signature; term overlap is computed over full context content.
        """
        query_terms = query.split()
        scored = [(context, term_overlap_score(query_terms, context.content)) for context in contexts]
        scored.sort(key=cmp_to_key(_descending))
        return scored[: self._max_results]
