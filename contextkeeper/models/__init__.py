"""contextkeeper domain models: re-exports all public model classes.

Import from ``contextkeeper.models`` when several model classes are needed.
"""

from contextkeeper.models.context import (
    Context,
    ContextChunk,
    ContextMatch,
    ContextMetadata,
    ContextReference,
    ContextSearchResult,
)

__all__ = [
    "Context",
    "ContextChunk",
    "ContextMatch",
    "ContextMetadata",
    "ContextReference",
    "ContextSearchResult",
]
