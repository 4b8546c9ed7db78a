"""Context, chunk, reference and search-result models.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph, no imports from upper layers).
#
# All models are frozen Pydantic v2 models.  The context store hands out
# these snapshots and never a live alias into its tables; changes are made
# with ``model_copy(update={...})`` and written back through the store.
#
#   Context             a stored unit of text plus metadata (owned by the store)
#   ContextChunk        an overlapping window of a context's text + embedding
#   ContextReference    an explicit pointer used for direct retrieval
#   ContextMatch        one scored result (ephemeral, never persisted)
#   ContextSearchResult  the list of matches returned by a retrieval call
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ContextMetadata(BaseModel):
    """Descriptive metadata attached to a context."""

    model_config = ConfigDict(frozen=True)

    source: str | None = Field(
        default=None, description="Where the content came from (document, conversation, ...)."
    )
    content_type: str | None = Field(
        default=None, description="Kind of content (text, code, ...)."
    )
    content_hash: str | None = Field(
        default=None, description="SHA-256 hex digest of the content, for deduplication."
    )
    # Set-like: order is irrelevant for tag filtering.
    tags: list[str] = Field(default_factory=list, description="User-defined tags.")
    custom: dict[str, str] = Field(
        default_factory=dict, description="Additional arbitrary string metadata."
    )


class Context(BaseModel):
    """A stored unit of text with metadata."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Globally unique identifier (UUID4), immutable once assigned.")
    content: str = Field(description="Arbitrary text content.")
    metadata: ContextMetadata = Field(default_factory=ContextMetadata)
    created_at: datetime = Field(description="Creation timestamp (UTC), set once.")
    # Advisory only: nothing in the core enforces expiry.
    expires_at: datetime | None = Field(default=None, description="Optional expiry time.")


class ContextChunk(BaseModel):
    """A contiguous, possibly overlapping window of a context's text."""

    model_config = ConfigDict(frozen=True)

    context_id: str = Field(description="Id of the owning context (back-reference).")
    chunk_id: str = Field(description="Unique identifier (UUID4) for this chunk.")
    content: str = Field(description="Substring of the owning context's content.")
    embedding: list[float] | None = Field(
        default=None, description="Fixed-length vector, present once embedded."
    )
    position: int = Field(
        default=0, ge=0, description="Offset of this chunk's start within the context content."
    )


class ContextReference(BaseModel):
    """An explicit pointer to a context, optionally narrowed to some chunks."""

    model_config = ConfigDict(frozen=True)

    context_id: str
    chunk_ids: list[str] | None = None
    weight: float | None = None

    @property
    def effective_weight(self) -> float:
        return 1.0 if self.weight is None else self.weight


class ContextMatch(BaseModel):
    """A single scored retrieval result."""

    model_config = ConfigDict(frozen=True)

    context: Context
    chunks: list[ContextChunk] | None = None
    # Snapshot at retrieval time, not stored state.
    score: float = 0.0


class ContextSearchResult(BaseModel):
    """Ordered matches returned by a search or reference lookup."""

    model_config = ConfigDict(frozen=True)

    matches: list[ContextMatch] = Field(default_factory=list)
    # Always equal to len(matches); no separate total-count tracking exists.
    total_matches: int = Field(default=0, ge=0)

    @classmethod
    def from_matches(cls, matches: list[ContextMatch]) -> ContextSearchResult:
        return cls(matches=matches, total_matches=len(matches))
