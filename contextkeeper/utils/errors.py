"""Custom exception hierarchy for contextkeeper.

All application exceptions inherit from :class:`ContextKeeperError`, which
carries an optional ``provider_name`` so error handlers can identify which
backend (e.g. "memory-context-store", "hashing-embedder") raised the failure.

The hierarchy is organized by concern:

    ContextKeeperError  (base -- catch-all for any contextkeeper error)
    +-- NotFoundError               (a context or chunk set is missing)
    |   +-- ContextNotFoundError
    |   +-- ChunksNotFoundError
    +-- ContextAlreadyExistsError   (duplicate context id on save)
    +-- InvalidReferenceError       (malformed context reference)
    +-- ContextValidationError      (bad arguments to a store/service call)
    +-- StorageError                (context store backend failure)
    +-- ExternalServiceError        (a backing collaborator failed)
    |   +-- EmbeddingError          (embedding backend failure)
    +-- ConfigurationError          (startup / construction-time config)
    +-- UnknownError                (wraps exceptions outside this hierarchy)

The REST adapter maps each branch onto an HTTP status code (see
``contextkeeper.api.middleware``); the core itself never retries.
"""


class ContextKeeperError(Exception):
    """Base exception for all contextkeeper errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which backend triggered the error.  The
    ``__str__`` method prefixes the provider name in brackets for structured
    log output, e.g. ``[memory-context-store] Context not found: ...``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Lookup errors
# ---------------------------------------------------------------------------

class NotFoundError(ContextKeeperError):
    """Raised when a requested entity does not exist."""

    def __init__(
        self,
        message: str = "Requested entity not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ContextNotFoundError(NotFoundError):
    """Raised when no context with the given id is stored."""

    def __init__(self, context_id: str, provider_name: str | None = None) -> None:
        self.context_id = context_id
        super().__init__(message=f"Context not found: {context_id}", provider_name=provider_name)


class ChunksNotFoundError(NotFoundError):
    """Raised when no chunk set has ever been stored for a context id.

    Distinct from a context whose chunk set is empty, which is returned as
    an empty list.
    """

    def __init__(self, context_id: str, provider_name: str | None = None) -> None:
        self.context_id = context_id
        super().__init__(
            message=f"No chunks stored for context: {context_id}",
            provider_name=provider_name,
        )


class ContextAlreadyExistsError(ContextKeeperError):
    """Raised when saving a context whose id is already present."""

    def __init__(self, context_id: str, provider_name: str | None = None) -> None:
        self.context_id = context_id
        super().__init__(
            message=f"Context already exists: {context_id}",
            provider_name=provider_name,
        )


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------

class InvalidReferenceError(ContextKeeperError):
    """Raised when a context reference is malformed (blank id, bad weight)."""

    def __init__(
        self,
        message: str = "Invalid context reference",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ContextValidationError(ContextKeeperError):
    """Raised when arguments to a store or service call are invalid."""

    def __init__(
        self,
        message: str = "Request validation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Backend errors
# ---------------------------------------------------------------------------

class StorageError(ContextKeeperError):
    """Raised when the context store backend fails."""

    def __init__(
        self,
        message: str = "Context storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExternalServiceError(ContextKeeperError):
    """Raised when a backing collaborator fails or is unreachable."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(ExternalServiceError):
    """Raised when vectorization or similarity search fails."""

    def __init__(
        self,
        message: str = "Embedding operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration / catch-all
# ---------------------------------------------------------------------------

class ConfigurationError(ContextKeeperError):
    """Raised when configuration is invalid or missing at construction time."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnknownError(ContextKeeperError):
    """Raised for failures that fit no other category.

    The REST adapter wraps any exception from outside this hierarchy in an
    ``UnknownError`` before mapping it to a response.
    """

    def __init__(
        self,
        message: str = "Unknown error",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
