"""Abstract base class for context-store providers.

Defines the contract for persisting contexts and their chunk sets.  The
in-memory store is the only concrete backend today; a SQL or document-store
backend can be dropped in behind this interface without touching the
services layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from contextkeeper.models.context import Context, ContextChunk


# Concrete implementation: InMemoryContextStore (contextkeeper/providers/context_store/)
class IContextStore(ABC):
    """Contract for context and chunk persistence.

    The store owns entity lifetime.  Every method returns deep copies in
    fresh lists and stores copies of what it is given; callers never share a
    model (or its tags, custom fields or embedding) with the backing tables.

    Invariants every implementation must enforce:

    * a context id is unique at save time;
    * update and delete require an existing id;
    * :meth:`save_chunks` replaces the whole chunk set of a context;
    * listing is paginated over a stable ``(created_at, id)`` ordering.
    """

    @abstractmethod
    async def save(self, context: Context) -> Context:
        """Persist a new context and return it unchanged.

        Raises
        ------
        contextkeeper.utils.errors.ContextAlreadyExistsError
            If ``context.id`` is already stored.  The stored record is left
            untouched.
        """

    @abstractmethod
    async def find(self, context_id: str) -> Context:
        """Return the context with *context_id*.

        Raises
        ------
        contextkeeper.utils.errors.ContextNotFoundError
            If no such context exists.
        """

    @abstractmethod
    async def update(self, context: Context) -> Context:
        """Overwrite an existing context in place.

        Raises
        ------
        contextkeeper.utils.errors.ContextNotFoundError
            If ``context.id`` is not stored.
        """

    @abstractmethod
    async def delete(self, context_id: str) -> None:
        """Remove a context.  Chunk removal is the caller's responsibility.

        Raises
        ------
        contextkeeper.utils.errors.ContextNotFoundError
            If no such context exists.
        """

    @abstractmethod
    async def find_by_tags(self, tags: list[str], limit: int, offset: int) -> list[Context]:
        """Return contexts carrying *all* of *tags*, paginated.

        Parameters
        ----------
        tags:
            Required tags (AND semantics).  A context matches when its tag
            set is a superset of *tags*.
        limit:
            Maximum number of contexts to return.
        offset:
            Number of matching contexts to skip, counted over the stable
            ``(created_at, id)`` ordering.
        """

    @abstractmethod
    async def list_all(self, limit: int, offset: int) -> list[Context]:
        """Return all contexts, paginated like :meth:`find_by_tags`."""

    @abstractmethod
    async def save_chunks(
        self,
        chunks: list[ContextChunk],
        context_id: str | None = None,
    ) -> list[ContextChunk]:
        """Replace the full chunk set of one context.

        Parameters
        ----------
        chunks:
            Chunks that all share the same ``context_id``.
        context_id:
            Optional explicit owner.  When given, an empty *chunks* list
            records an empty chunk set for that context; without it an empty
            list is a no-op.

        Returns
        -------
        list[ContextChunk]
            The stored chunks.

        Raises
        ------
        contextkeeper.utils.errors.ContextValidationError
            If the batch mixes context ids or disagrees with *context_id*.
        """

    @abstractmethod
    async def find_chunks_by_context_id(self, context_id: str) -> list[ContextChunk]:
        """Return the stored chunk set for *context_id*, ordered by position.

        Raises
        ------
        contextkeeper.utils.errors.ChunksNotFoundError
            If no chunk set was ever stored for the id.  An explicitly
            stored empty set returns ``[]``.
        """

    @abstractmethod
    async def delete_chunks_by_context_id(self, context_id: str) -> None:
        """Remove the chunk set for *context_id*.  Absent entries are not an error."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"memory-context-store"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backend is ready to serve requests."""
