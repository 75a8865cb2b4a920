"""
Shared API Utilities

Common error responses, exceptions, middleware and routers for the
HTTP surface.
"""

from .responses import (
    ErrorDetail,
    ErrorBody,
    ErrorResponse,
)

from .error_codes import (
    ErrorCode,
    get_status_code,
    is_server_error,
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    DatabaseError,
)

from .middleware import (
    register_error_handlers,
    TraceMiddleware,
    TracingMiddleware,
    get_trace_id,
    get_correlation_id,
    get_operator_id,
)

__all__ = [
    # Responses
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
    # Error codes
    "ErrorCode",
    "get_status_code",
    "is_server_error",
    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "DatabaseError",
    # Middleware
    "register_error_handlers",
    "TraceMiddleware",
    "TracingMiddleware",
    "get_trace_id",
    "get_correlation_id",
    "get_operator_id",
]
