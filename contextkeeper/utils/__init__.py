"""Utility modules for contextkeeper.

- **errors** -- Domain exception hierarchy rooted at ContextKeeperError; the
  REST adapter maps each branch onto an HTTP status code.
- **concurrency** -- KeyedLock, per-context-id serialisation of the
  multi-step write pipelines.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from contextkeeper.utils.errors import (
    ChunksNotFoundError,
    ConfigurationError,
    ContextAlreadyExistsError,
    ContextKeeperError,
    ContextNotFoundError,
    ContextValidationError,
    EmbeddingError,
    ExternalServiceError,
    InvalidReferenceError,
    NotFoundError,
    StorageError,
    UnknownError,
)

# -- Per-key async locking -------------------------------------------------
from contextkeeper.utils.concurrency import KeyedLock

# -- Structured logging setup ----------------------------------------------
from contextkeeper.utils.logging import configure_logging, get_logger

__all__ = [
    "ChunksNotFoundError",
    "ConfigurationError",
    "ContextAlreadyExistsError",
    "ContextKeeperError",
    "ContextNotFoundError",
    "ContextValidationError",
    "EmbeddingError",
    "ExternalServiceError",
    "InvalidReferenceError",
    "KeyedLock",
    "NotFoundError",
    "StorageError",
    "UnknownError",
    "configure_logging",
    "get_logger",
]
