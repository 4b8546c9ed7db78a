"""Context store implementations.

    InMemoryContextStore: dict-backed, two independently locked tables
    (contexts and chunk sets).  Default backend; no persistence.
"""

from contextkeeper.providers.context_store.memory_context_store import InMemoryContextStore

__all__ = ["InMemoryContextStore"]
