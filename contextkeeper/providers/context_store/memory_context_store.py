"""In-memory context store backed by two plain dicts.

Suitable for development, tests and single-process deployments.  Contexts
and chunk sets live in separate tables, each guarded by its own
``threading.Lock``.  Every critical section is short and synchronous: no lock
is ever held across an ``await`` and no method holds both locks at once.
"""

from __future__ import annotations

import threading
from typing import TypeVar

import structlog

from contextkeeper.interfaces.context_store import IContextStore
from contextkeeper.models.context import Context, ContextChunk
from contextkeeper.utils.errors import (
    ChunksNotFoundError,
    ContextAlreadyExistsError,
    ContextNotFoundError,
    ContextValidationError,
)

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "memory-context-store"

_T = TypeVar("_T", Context, ContextChunk)


class InMemoryContextStore(IContextStore):
    """Dict-backed :class:`IContextStore`.

    ``frozen=True`` only blocks field reassignment; list and dict fields
    stay mutable.  Every model is therefore deep-copied on the way in and on
    the way out, so neither the caller nor the tables share an object.
    """

    def __init__(self) -> None:
        self._contexts: dict[str, Context] = {}
        self._chunks: dict[str, list[ContextChunk]] = {}
        self._contexts_lock = threading.Lock()
        self._chunks_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------

    async def save(self, context: Context) -> Context:
        with self._contexts_lock:
            if context.id in self._contexts:
                raise ContextAlreadyExistsError(context.id, provider_name=_PROVIDER_NAME)
            self._contexts[context.id] = _snapshot(context)

        logger.debug("context_saved", context_id=context.id)
        return _snapshot(context)

    async def find(self, context_id: str) -> Context:
        with self._contexts_lock:
            context = self._contexts.get(context_id)
        if context is None:
            raise ContextNotFoundError(context_id, provider_name=_PROVIDER_NAME)
        return _snapshot(context)

    async def update(self, context: Context) -> Context:
        with self._contexts_lock:
            if context.id not in self._contexts:
                raise ContextNotFoundError(context.id, provider_name=_PROVIDER_NAME)
            self._contexts[context.id] = _snapshot(context)

        logger.debug("context_updated", context_id=context.id)
        return _snapshot(context)

    async def delete(self, context_id: str) -> None:
        with self._contexts_lock:
            if self._contexts.pop(context_id, None) is None:
                raise ContextNotFoundError(context_id, provider_name=_PROVIDER_NAME)

        logger.debug("context_deleted", context_id=context_id)

    async def find_by_tags(self, tags: list[str], limit: int, offset: int) -> list[Context]:
        _check_page(limit, offset)
        required = set(tags)
        with self._contexts_lock:
            matching = [c for c in self._contexts.values() if required.issubset(c.metadata.tags)]
        return _paginate(matching, limit, offset)

    async def list_all(self, limit: int, offset: int) -> list[Context]:
        _check_page(limit, offset)
        with self._contexts_lock:
            contexts = list(self._contexts.values())
        return _paginate(contexts, limit, offset)

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def save_chunks(
        self,
        chunks: list[ContextChunk],
        context_id: str | None = None,
    ) -> list[ContextChunk]:
        if not chunks and context_id is None:
            return []

        owner = context_id if context_id is not None else chunks[0].context_id
        strays = {c.context_id for c in chunks if c.context_id != owner}
        if strays:
            raise ContextValidationError(
                f"Chunk batch for context {owner} contains chunks of {sorted(strays)}",
                provider_name=_PROVIDER_NAME,
            )

        stored = sorted((_snapshot(c) for c in chunks), key=lambda c: c.position)
        with self._chunks_lock:
            self._chunks[owner] = stored

        logger.debug("chunks_saved", context_id=owner, num_chunks=len(stored))
        return [_snapshot(c) for c in stored]

    async def find_chunks_by_context_id(self, context_id: str) -> list[ContextChunk]:
        with self._chunks_lock:
            chunks = self._chunks.get(context_id)
        if chunks is None:
            raise ChunksNotFoundError(context_id, provider_name=_PROVIDER_NAME)
        return [_snapshot(c) for c in chunks]

    async def delete_chunks_by_context_id(self, context_id: str) -> None:
        with self._chunks_lock:
            removed = self._chunks.pop(context_id, None)
        if removed is not None:
            logger.debug("chunks_deleted", context_id=context_id, num_chunks=len(removed))

    # ------------------------------------------------------------------
    # Provider metadata
    # ------------------------------------------------------------------

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return True


# ------------------------------------------------------------------
# Pagination helpers
# ------------------------------------------------------------------

def _check_page(limit: int, offset: int) -> None:
    if limit < 0 or offset < 0:
        raise ContextValidationError(
            f"limit and offset must be non-negative (got limit={limit}, offset={offset})",
            provider_name=_PROVIDER_NAME,
        )


def _paginate(contexts: list[Context], limit: int, offset: int) -> list[Context]:
    # Dict order is insertion order, which is not a contract; sort explicitly.
    contexts.sort(key=lambda c: (c.created_at, c.id))
    return [_snapshot(c) for c in contexts[offset : offset + limit]]


def _snapshot(model: _T) -> _T:
    return model.model_copy(deep=True)
