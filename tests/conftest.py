"""Shared pytest fixtures for the contextkeeper test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from contextkeeper.config.loader import AppConfig
from contextkeeper.models.context import Context, ContextMetadata
from contextkeeper.providers.context_store.memory_context_store import InMemoryContextStore
from contextkeeper.providers.embedding.hashing_embedding_provider import HashingEmbeddingProvider
from contextkeeper.services.chunker import ContextChunker
from contextkeeper.services.context_service import ContextManagementService
from contextkeeper.services.ranker import RetrievalRanker
from contextkeeper.services.search_service import ContextSearchService
from contextkeeper.utils.concurrency import KeyedLock


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_context():
    """Factory for Context snapshots with predictable defaults."""

    def _make(
        context_id: str = "ctx-1",
        content: str = "hello world",
        tags: list[str] | None = None,
        created_at: datetime | None = None,
    ) -> Context:
        return Context(
            id=context_id,
            content=content,
            metadata=ContextMetadata(tags=tags or []),
            created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    return _make


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


@pytest.fixture
def context_store() -> InMemoryContextStore:
    return InMemoryContextStore()


@pytest.fixture
def embedder() -> HashingEmbeddingProvider:
    # Small dimension keeps vectors readable in assertion output.
    return HashingEmbeddingProvider(dimension=64)


@pytest.fixture
def chunker() -> ContextChunker:
    return ContextChunker(max_chunk_size=100, overlap=20)


@pytest.fixture
def ranker() -> RetrievalRanker:
    return RetrievalRanker(max_results=10)


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def context_service(
    context_store: InMemoryContextStore,
    embedder: HashingEmbeddingProvider,
    chunker: ContextChunker,
    locks: KeyedLock,
) -> ContextManagementService:
    return ContextManagementService(
        context_store=context_store,
        embedding_provider=embedder,
        chunker=chunker,
        locks=locks,
    )


@pytest.fixture
def search_service(
    context_store: InMemoryContextStore,
    embedder: HashingEmbeddingProvider,
    ranker: RetrievalRanker,
) -> ContextSearchService:
    return ContextSearchService(
        context_store=context_store,
        embedding_provider=embedder,
        ranker=ranker,
    )


@pytest.fixture
def app_config() -> AppConfig:
    """Built-in defaults with a small chunk size so tests produce several chunks."""
    return AppConfig.model_validate(
        {
            "context": {"max_chunk_size": 100, "chunk_overlap": 20},
            "embedding": {"dimension": 64},
        }
    )
