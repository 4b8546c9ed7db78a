"""API middleware: CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  ``main.py``
adds ``ErrorHandlingMiddleware`` first and ``RequestLoggingMiddleware``
second, so the request flow is::

    Client -> RequestLogging -> ErrorHandling -> route handler

and RequestLoggingMiddleware sees the *final* status code, including the
ones ErrorHandlingMiddleware produced from an exception.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from contextkeeper.api.schemas import ErrorResponse
from contextkeeper.utils.errors import (
    ChunksNotFoundError,
    ContextAlreadyExistsError,
    ContextKeeperError,
    ContextNotFoundError,
    ContextValidationError,
    InvalidReferenceError,
    NotFoundError,
    UnknownError,
)
from contextkeeper.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Checked in order; the first isinstance match wins, so subclasses come first.
_ERROR_STATUS: list[tuple[type[ContextKeeperError], int, str]] = [
    (ContextNotFoundError, 404, "CONTEXT_NOT_FOUND"),
    (ChunksNotFoundError, 404, "CHUNK_NOT_FOUND"),
    (NotFoundError, 404, "NOT_FOUND"),
    (ContextAlreadyExistsError, 409, "CONTEXT_EXISTS"),
    (InvalidReferenceError, 400, "INVALID_REFERENCE"),
    (ContextValidationError, 400, "VALIDATION_ERROR"),
]

_INTERNAL_ERROR = (500, "INTERNAL_ERROR")


def status_for(exc: ContextKeeperError) -> tuple[int, str]:
    """Return the ``(http_status, error_code)`` pair for an application error."""
    for error_type, status_code, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, code
    return _INTERNAL_ERROR


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert exceptions raised by route handlers into JSON ``ErrorResponse`` bodies.

    ``ContextKeeperError`` subclasses map to 4xx codes via
    :func:`status_for`; their message is safe to show the caller.  Any other
    exception is wrapped in ``UnknownError`` and becomes a 500 whose detail
    is a generic message; the real error stays in the server log.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ContextKeeperError as exc:
            status_code, code = status_for(exc)
            log = _logger.warning if status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                code=code,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            detail = exc.message if status_code < 500 else "Internal server error"
            return _error_response(status_code, type(exc).__name__, code, detail)
        except Exception as exc:
            _logger.exception(
                "unhandled_error",
                error_type=type(exc).__name__,
                path=str(request.url.path),
            )
            wrapped = UnknownError(str(exc) or type(exc).__name__)
            status_code, code = status_for(wrapped)
            return _error_response(status_code, type(wrapped).__name__, code, "Internal server error")


def _error_response(status_code: int, error: str, code: str, detail: str) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())
