"""contextkeeper API layer -- routes, schemas, and middleware."""

from contextkeeper.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from contextkeeper.api.routes import router
from contextkeeper.api.schemas import (
    ContextResponse,
    ErrorResponse,
    HealthResponse,
    ReferenceRequest,
    SearchRequest,
    SearchResponse,
    StoreContextRequest,
    UpdateContextRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ContextResponse",
    "ErrorResponse",
    "HealthResponse",
    "ReferenceRequest",
    "SearchRequest",
    "SearchResponse",
    "StoreContextRequest",
    "UpdateContextRequest",
]
