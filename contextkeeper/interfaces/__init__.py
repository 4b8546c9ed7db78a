"""Public interface definitions for the core's outbound collaborators.

The services layer talks to storage and vectorization exclusively through
the abstract base classes defined here.  Concrete adapters implement them and
are injected in ``contextkeeper/main.py``, so a persistent store or a real
embedding model can replace the in-memory variants without touching the
services.

CONCRETE PROVIDER MAP:
    Interface             ->  Concrete implementations (in contextkeeper/providers/)
    ---------------------------------------------------------------------
    IContextStore         ->  InMemoryContextStore
    IEmbeddingProvider    ->  HashingEmbeddingProvider
"""

from contextkeeper.interfaces.context_store import IContextStore
from contextkeeper.interfaces.embedding_provider import IEmbeddingProvider

__all__ = [
    "IContextStore",
    "IEmbeddingProvider",
]
