"""Pydantic request/response schemas for the contextkeeper REST API.

These are the wire shapes only.  Domain models from
``contextkeeper.models.context`` never leave the process directly: route
handlers convert them with the ``from_*`` classmethods below, which flatten
``ContextMetadata`` into top-level fields and expose ``chunk_id`` as ``id``.

Convention: request schemas end with "Request", response schemas end with
"Response", nested items end with "Item".
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from contextkeeper.models.context import (
    Context,
    ContextChunk,
    ContextMatch,
    ContextMetadata,
    ContextReference,
    ContextSearchResult,
)


# ---------------------------------------------------------------------------
# Context management
# ---------------------------------------------------------------------------


class StoreContextRequest(BaseModel):
    """Body of ``POST /contexts``."""

    content: str
    source: str | None = None
    content_type: str | None = None
    tags: list[str] | None = None
    metadata: dict[str, str] | None = Field(
        default=None, description="Arbitrary string key/value pairs."
    )
    expires_at: datetime | None = None

    def to_metadata(self) -> ContextMetadata:
        return ContextMetadata(
            source=self.source,
            content_type=self.content_type,
            tags=self.tags or [],
            custom=self.metadata or {},
        )


class UpdateContextRequest(BaseModel):
    """Body of ``PUT /contexts/{id}``.  Replaces content and metadata wholesale."""

    content: str
    source: str | None = None
    content_type: str | None = None
    tags: list[str] | None = None
    metadata: dict[str, str] | None = None

    def to_metadata(self) -> ContextMetadata:
        return ContextMetadata(
            source=self.source,
            content_type=self.content_type,
            tags=self.tags or [],
            custom=self.metadata or {},
        )


class ContextResponse(BaseModel):
    """A stored context as returned by every context endpoint."""

    id: str
    content: str
    source: str | None = None
    content_type: str | None = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    expires_at: datetime | None = None

    @classmethod
    def from_context(cls, context: Context) -> ContextResponse:
        return cls(
            id=context.id,
            content=context.content,
            source=context.metadata.source,
            content_type=context.metadata.content_type,
            tags=list(context.metadata.tags),
            metadata=dict(context.metadata.custom),
            created_at=context.created_at,
            expires_at=context.expires_at,
        )


class ReprocessResponse(BaseModel):
    """Result of ``POST /contexts/{id}/reprocess``."""

    context_id: str
    num_chunks: int


# ---------------------------------------------------------------------------
# Search / references
# ---------------------------------------------------------------------------


class SearchRequest(BaseModel):
    """Body of ``POST /search``.  Non-empty ``tags`` switch to tag-scoped search."""

    query: str
    tags: list[str] | None = None
    limit: int = Field(default=10, ge=0, description="Index candidates to consider.")


class ReferenceItem(BaseModel):
    context_id: str
    chunk_ids: list[str] | None = None
    weight: float | None = None

    def to_reference(self) -> ContextReference:
        return ContextReference(
            context_id=self.context_id, chunk_ids=self.chunk_ids, weight=self.weight
        )


class ReferenceRequest(BaseModel):
    """Body of ``POST /references``."""

    references: list[ReferenceItem] = Field(default_factory=list)


class ChunkItem(BaseModel):
    id: str
    content: str
    position: int

    @classmethod
    def from_chunk(cls, chunk: ContextChunk) -> ChunkItem:
        return cls(id=chunk.chunk_id, content=chunk.content, position=chunk.position)


class MatchItem(BaseModel):
    context: ContextResponse
    chunks: list[ChunkItem] | None = None
    score: float

    @classmethod
    def from_match(cls, match: ContextMatch) -> MatchItem:
        chunks = None
        if match.chunks is not None:
            chunks = [ChunkItem.from_chunk(chunk) for chunk in match.chunks]
        return cls(
            context=ContextResponse.from_context(match.context),
            chunks=chunks,
            score=match.score,
        )


class SearchResponse(BaseModel):
    """Response of ``POST /search`` and ``POST /references``."""

    matches: list[MatchItem] = Field(default_factory=list)
    total_matches: int = 0

    @classmethod
    def from_result(cls, result: ContextSearchResult) -> SearchResponse:
        return cls(
            matches=[MatchItem.from_match(match) for match in result.matches],
            total_matches=result.total_matches,
        )


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, bool]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    code: str
    detail: str | None = None
