"""FastAPI routes for context management and retrieval.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.  Handlers never catch
``ContextKeeperError``; ``ErrorHandlingMiddleware`` maps it to a status code.

Endpoint                              Method  Description
-------------------------------------------------------------------------
/api/v1/contexts                      POST    Store a context (201)
/api/v1/contexts                      GET     List contexts (tags, limit, offset)
/api/v1/contexts/{id}                 GET     Fetch one context
/api/v1/contexts/{id}                 PUT     Replace content + metadata
/api/v1/contexts/{id}                 DELETE  Delete context and chunks (204)
/api/v1/contexts/{id}/reprocess       POST    Regenerate chunks + index entries
/api/v1/search                        POST    Similarity or tag-scoped search
/api/v1/references                    POST    Resolve explicit references
/api/v1/health                        GET     Health check + provider status
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response

from contextkeeper import __version__
from contextkeeper.api.schemas import (
    ContextResponse,
    ErrorResponse,
    HealthResponse,
    ReferenceRequest,
    ReprocessResponse,
    SearchRequest,
    SearchResponse,
    StoreContextRequest,
    UpdateContextRequest,
)
from contextkeeper.services.context_service import ContextManagementService
from contextkeeper.services.search_service import ContextSearchService
from contextkeeper.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_NOT_FOUND = {404: {"model": ErrorResponse}}


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_context_service(request: Request) -> ContextManagementService:
    """Return the management orchestrator from application state."""
    return request.app.state.context_service


def _get_search_service(request: Request) -> ContextSearchService:
    """Return the retrieval orchestrator from application state."""
    return request.app.state.search_service


ContextServiceDep = Annotated[ContextManagementService, Depends(_get_context_service)]
SearchServiceDep = Annotated[ContextSearchService, Depends(_get_search_service)]


def _split_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


# ---------------------------------------------------------------------------
# Context management endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/contexts",
    response_model=ContextResponse,
    status_code=201,
    summary="Store a new context",
)
async def store_context(body: StoreContextRequest, service: ContextServiceDep) -> ContextResponse:
    """Persist the content, chunk it, and index the chunks."""
    context = await service.store(body.content, body.to_metadata(), expires_at=body.expires_at)
    return ContextResponse.from_context(context)


@router.get(
    "/contexts",
    response_model=list[ContextResponse],
    summary="List stored contexts",
)
async def list_contexts(
    service: ContextServiceDep,
    tags: Annotated[str | None, Query(description="Comma-separated; all must match.")] = None,
    limit: Annotated[int, Query(ge=0)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[ContextResponse]:
    """Return one page of contexts ordered by creation time."""
    contexts = await service.list(tags=_split_tags(tags), limit=limit, offset=offset)
    return [ContextResponse.from_context(context) for context in contexts]


@router.get(
    "/contexts/{context_id}",
    response_model=ContextResponse,
    responses=_NOT_FOUND,
    summary="Get a context by id",
)
async def get_context(context_id: str, service: ContextServiceDep) -> ContextResponse:
    return ContextResponse.from_context(await service.get(context_id))


@router.put(
    "/contexts/{context_id}",
    response_model=ContextResponse,
    responses=_NOT_FOUND,
    summary="Replace a context's content and metadata",
)
async def update_context(
    context_id: str,
    body: UpdateContextRequest,
    service: ContextServiceDep,
) -> ContextResponse:
    """Replace content and metadata; the chunk set is regenerated."""
    context = await service.update(context_id, body.content, body.to_metadata())
    return ContextResponse.from_context(context)


@router.delete(
    "/contexts/{context_id}",
    status_code=204,
    responses=_NOT_FOUND,
    summary="Delete a context",
)
async def delete_context(context_id: str, service: ContextServiceDep) -> Response:
    await service.delete(context_id)
    return Response(status_code=204)


@router.post(
    "/contexts/{context_id}/reprocess",
    response_model=ReprocessResponse,
    responses=_NOT_FOUND,
    summary="Regenerate a context's chunks and index entries",
)
async def reprocess_context(context_id: str, service: ContextServiceDep) -> ReprocessResponse:
    chunks = await service.reprocess(context_id)
    return ReprocessResponse(context_id=context_id, num_chunks=len(chunks))


# ---------------------------------------------------------------------------
# Retrieval endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Search contexts by query, optionally scoped to tags",
)
async def search_contexts(body: SearchRequest, service: SearchServiceDep) -> SearchResponse:
    if body.tags:
        result = await service.search_with_tags(body.query, body.tags, body.limit)
    else:
        result = await service.search(body.query, body.limit)
    return SearchResponse.from_result(result)


@router.post(
    "/references",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Retrieve contexts by explicit reference",
)
async def retrieve_by_references(body: ReferenceRequest, service: SearchServiceDep) -> SearchResponse:
    """Unresolvable references are skipped; malformed ones are rejected with 400."""
    references = [item.to_reference() for item in body.references]
    result = await service.retrieve_by_references(references)
    return SearchResponse.from_result(result)


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, bool] = {}
    for attr in ("context_store", "embedding_provider"):
        provider = getattr(request.app.state, attr, None)
        if provider is not None:
            providers[provider.get_provider_name()] = provider.is_available()

    status = "healthy" if providers and all(providers.values()) else "degraded"
    if status != "healthy":
        _logger.warning("health_degraded", providers=providers)
    return HealthResponse(status=status, version=__version__, providers=providers)
