"""Unit tests for the contextkeeper exception hierarchy and HTTP status mapping."""

from __future__ import annotations

import pytest

from contextkeeper.api.middleware import status_for
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


class TestHierarchy:
    def test_not_found_branch(self) -> None:
        assert issubclass(ContextNotFoundError, NotFoundError)
        assert issubclass(ChunksNotFoundError, NotFoundError)
        assert issubclass(NotFoundError, ContextKeeperError)

    @pytest.mark.parametrize(
        "error_type",
        [InvalidReferenceError, ContextValidationError, StorageError, ExternalServiceError, ConfigurationError, UnknownError],
    )
    def test_all_errors_share_base(self, error_type: type[ContextKeeperError]) -> None:
        assert issubclass(error_type, ContextKeeperError)

    def test_embedding_error_is_an_external_service_error(self) -> None:
        assert issubclass(EmbeddingError, ExternalServiceError)

    def test_str_prefixes_provider_name(self) -> None:
        error = ContextNotFoundError("ctx-1", provider_name="memory-context-store")

        assert str(error) == "[memory-context-store] Context not found: ctx-1"
        assert error.message == "Context not found: ctx-1"
        assert error.context_id == "ctx-1"

    def test_str_without_provider(self) -> None:
        assert str(StorageError("disk full")) == "disk full"

    def test_default_message(self) -> None:
        assert ContextKeeperError().message == "An unexpected error occurred"


class TestStatusMapping:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (ContextNotFoundError("x"), (404, "CONTEXT_NOT_FOUND")),
            (ChunksNotFoundError("x"), (404, "CHUNK_NOT_FOUND")),
            (ContextAlreadyExistsError("x"), (409, "CONTEXT_EXISTS")),
            (InvalidReferenceError(), (400, "INVALID_REFERENCE")),
            (ContextValidationError(), (400, "VALIDATION_ERROR")),
            (StorageError(), (500, "INTERNAL_ERROR")),
            (EmbeddingError(), (500, "INTERNAL_ERROR")),
            (UnknownError(), (500, "INTERNAL_ERROR")),
        ],
    )
    def test_status_for(self, error: ContextKeeperError, expected: tuple[int, str]) -> None:
        assert status_for(error) == expected
