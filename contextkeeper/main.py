"""contextkeeper FastAPI application entry point.

Wires the store, embedder, chunker, ranker and both orchestrators together
via constructor injection, then exposes them to the routes on ``app.state``.
Configuration comes from ``config/default.yaml`` overlaid with environment
variables (see ``contextkeeper.config.loader``).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from contextkeeper import __version__
from contextkeeper.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from contextkeeper.api.routes import router as api_router
from contextkeeper.config.loader import AppConfig, load_config
from contextkeeper.providers.context_store.memory_context_store import InMemoryContextStore
from contextkeeper.providers.embedding.hashing_embedding_provider import HashingEmbeddingProvider
from contextkeeper.services.chunker import ContextChunker
from contextkeeper.services.context_service import ContextManagementService
from contextkeeper.services.ranker import RetrievalRanker
from contextkeeper.services.search_service import ContextSearchService
from contextkeeper.utils.concurrency import KeyedLock
from contextkeeper.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Composition root
# ---------------------------------------------------------------------------


def build_services(config: AppConfig) -> dict[str, Any]:
    """Instantiate every component from *config*.

    Returns a flat dict of named components to be stored on ``app.state``.
    The two orchestrators share one store, one embedder and one
    :class:`KeyedLock`.
    """
    context_store = InMemoryContextStore()
    embedding_provider = HashingEmbeddingProvider(dimension=config.embedding.dimension)
    chunker = ContextChunker(
        max_chunk_size=config.context.max_chunk_size,
        overlap=config.context.chunk_overlap,
    )
    ranker = RetrievalRanker(max_results=config.search.max_results)
    locks = KeyedLock()

    return {
        "config": config,
        "context_store": context_store,
        "embedding_provider": embedding_provider,
        "context_service": ContextManagementService(
            context_store=context_store,
            embedding_provider=embedding_provider,
            chunker=chunker,
            locks=locks,
        ),
        "search_service": ContextSearchService(
            context_store=context_store,
            embedding_provider=embedding_provider,
            ranker=ranker,
            tag_search_strategy=config.search.tag_search_strategy,
            tag_candidate_cap=config.search.tag_candidate_cap,
        ),
    }


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Components are built inside the lifespan, so every ``TestClient`` (or
    server process) starts from an empty store.
    """
    app_config = config if config is not None else load_config()

    configure_logging(
        log_level=app_config.server.log_level,
        json_output=(app_config.server.env == "production"),
    )

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        components = build_services(app_config)
        for key, value in components.items():
            setattr(application.state, key, value)

        _logger.info(
            "app_startup",
            version=__version__,
            environment=app_config.server.env,
            max_chunk_size=app_config.context.max_chunk_size,
            chunk_overlap=app_config.context.chunk_overlap,
            embedding_dimension=app_config.embedding.dimension,
            tag_search_strategy=app_config.search.tag_search_strategy,
        )
        yield
        _logger.info("app_shutdown")

    application = FastAPI(
        title="contextkeeper API",
        version=__version__,
        description=(
            "Store text contexts with metadata, split them into overlapping "
            "chunks, and retrieve the most relevant ones by query, tags, or "
            "explicit reference."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


def run(config: AppConfig | None = None) -> None:
    """Serve the API with uvicorn on the configured host and port."""
    app_config = config if config is not None else load_config()
    uvicorn.run(
        create_app(app_config),
        host=app_config.server.host,
        port=app_config.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
