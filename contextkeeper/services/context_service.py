"""Ingest-side orchestrator: store, update, delete, list and reprocess contexts.

Pipeline for every write: **persist context -> chunk -> embed -> save chunks**.

:class:`ContextManagementService` coordinates four collaborators (context
store, embedding provider, chunker, keyed lock) without any of them knowing
about each other.  The multi-call pipelines are made safe two ways:

* **Serialised per context id** -- every mutating pipeline runs inside
  ``KeyedLock.hold(context_id)``, so a concurrent update and delete of the same
  context cannot interleave their store calls.
* **Transactional** -- if a step fails after the first mutation, a
  compensating rollback returns the store and the embedding index to their
  state before the call, then the original error propagates unchanged.

:meth:`ContextManagementService.reprocess` re-runs chunk + embed + save for an
existing context.  It is idempotent and convergent, so it can heal a context
left without chunks by an earlier crash.
"""

from __future__ import annotations

import hashlib
import uuid
from collections.abc import Awaitable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from contextkeeper.models.context import Context, ContextChunk, ContextMetadata
from contextkeeper.utils.errors import ChunksNotFoundError
from contextkeeper.utils.logging import get_logger

if TYPE_CHECKING:
    from contextkeeper.interfaces.context_store import IContextStore
    from contextkeeper.interfaces.embedding_provider import IEmbeddingProvider
    from contextkeeper.services.chunker import ContextChunker
    from contextkeeper.utils.concurrency import KeyedLock


def content_hash(content: str) -> str:
    """Return the SHA-256 hex digest used for ``ContextMetadata.content_hash``."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class ContextManagementService:
    """Implements the management use cases over injected store and embedder.

    Parameters
    ----------
    context_store:
        Persistence for contexts and chunk sets.
    embedding_provider:
        Vectorizes chunks and maintains the candidate index.
    chunker:
        Splits context content into overlapping windows.
    locks:
        Per-context-id serialisation shared with any other writer.
    """

    def __init__(
        self,
        context_store: IContextStore,
        embedding_provider: IEmbeddingProvider,
        chunker: ContextChunker,
        locks: KeyedLock,
    ) -> None:
        self._store = context_store
        self._embedder = embedding_provider
        self._chunker = chunker
        self._locks = locks
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def store(
        self,
        content: str,
        metadata: ContextMetadata | None = None,
        expires_at: datetime | None = None,
    ) -> Context:
        """Create a context, persist it, and index its chunks.

        Raises
        ------
        ContextKeeperError
            Whatever the store or embedder raised.  The context is not left
            behind when chunking or embedding fails.
        """
        context = Context(
            id=str(uuid.uuid4()),
            content=content,
            metadata=_with_content_hash(metadata or ContextMetadata(), content),
            created_at=datetime.now(tz=timezone.utc),
            expires_at=expires_at,
        )

        async with self._locks.hold(context.id):
            saved = await self._store.save(context)
            try:
                chunks = await self._process(saved)
            except Exception as exc:
                self._logger.warning(
                    "context_store_rolled_back", context_id=saved.id, error=str(exc)
                )
                await self._compensate("delete_chunks", self._store.delete_chunks_by_context_id(saved.id))
                await self._compensate("delete_embeddings", self._embedder.delete_by_context_id(saved.id))
                await self._compensate("delete_context", self._store.delete(saved.id))
                raise

        self._logger.info(
            "context_stored",
            context_id=saved.id,
            num_chunks=len(chunks),
            tags=saved.metadata.tags,
        )
        return saved

    async def get(self, context_id: str) -> Context:
        """Return the context with *context_id* (``ContextNotFoundError`` if absent)."""
        return await self._store.find(context_id)

    async def update(
        self,
        context_id: str,
        content: str,
        metadata: ContextMetadata | None = None,
    ) -> Context:
        """Replace a context's content and metadata and regenerate its chunks.

        ``id``, ``created_at`` and ``expires_at`` are preserved.  On failure the
        previous context and chunk set are restored before the error propagates.
        """
        async with self._locks.hold(context_id):
            previous = await self._store.find(context_id)
            previous_chunks = await self._find_chunks_or_none(context_id)

            updated = previous.model_copy(
                update={
                    "content": content,
                    "metadata": _with_content_hash(metadata or ContextMetadata(), content),
                }
            )

            try:
                await self._store.delete_chunks_by_context_id(context_id)
                await self._embedder.delete_by_context_id(context_id)
                await self._store.update(updated)
                chunks = await self._process(updated)
            except Exception as exc:
                self._logger.warning(
                    "context_update_rolled_back", context_id=context_id, error=str(exc)
                )
                await self._restore(previous, previous_chunks)
                raise

        self._logger.info("context_updated", context_id=context_id, num_chunks=len(chunks))
        return updated

    async def delete(self, context_id: str) -> None:
        """Delete a context together with its chunks and index entries.

        Raises
        ------
        ContextNotFoundError
            If no such context exists.  Chunk removal is idempotent, so an
            unknown id leaves nothing behind either way.
        """
        async with self._locks.hold(context_id):
            await self._store.delete_chunks_by_context_id(context_id)
            await self._embedder.delete_by_context_id(context_id)
            await self._store.delete(context_id)

        self._logger.info("context_deleted", context_id=context_id)

    async def list(
        self,
        tags: list[str] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Context]:
        """List contexts, filtered to those carrying all *tags* when given."""
        if tags:
            return await self._store.find_by_tags(tags, limit, offset)
        return await self._store.list_all(limit, offset)

    async def reprocess(self, context_id: str) -> list[ContextChunk]:
        """Regenerate the chunk set and index entries of an existing context.

        Safe to repeat: every run replaces the previous chunk set and index
        entries wholesale, so retries converge on the same state.
        """
        async with self._locks.hold(context_id):
            context = await self._store.find(context_id)
            await self._embedder.delete_by_context_id(context_id)
            chunks = await self._process(context)

        self._logger.info("context_reprocessed", context_id=context_id, num_chunks=len(chunks))
        return chunks

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    async def _process(self, context: Context) -> list[ContextChunk]:
        """Chunk, embed and persist the chunk set of *context*."""
        chunks = self._chunker.chunk(context)
        embedded = await self._embedder.embed(chunks, tags=context.metadata.tags)
        # Passing the id stores an explicit empty set for empty content.
        return await self._store.save_chunks(embedded, context_id=context.id)

    async def _find_chunks_or_none(self, context_id: str) -> list[ContextChunk] | None:
        try:
            return await self._store.find_chunks_by_context_id(context_id)
        except ChunksNotFoundError:
            return None

    async def _restore(self, previous: Context, previous_chunks: list[ContextChunk] | None) -> None:
        context_id = previous.id
        await self._compensate("restore_context", self._store.update(previous))
        await self._compensate("delete_embeddings", self._embedder.delete_by_context_id(context_id))
        if previous_chunks is None:
            await self._compensate("delete_chunks", self._store.delete_chunks_by_context_id(context_id))
            return
        await self._compensate(
            "restore_chunks", self._store.save_chunks(previous_chunks, context_id=context_id)
        )
        await self._compensate(
            "restore_embeddings",
            self._embedder.embed(previous_chunks, tags=previous.metadata.tags),
        )

    async def _compensate(self, step: str, action: Awaitable[object]) -> None:
        """Run one rollback step; a failure is logged so the original error still surfaces."""
        try:
            await action
        except Exception as exc:
            self._logger.error("rollback_step_failed", step=step, error=str(exc))


def _with_content_hash(metadata: ContextMetadata, content: str) -> ContextMetadata:
    if metadata.content_hash is not None:
        return metadata
    return metadata.model_copy(update={"content_hash": content_hash(content)})
