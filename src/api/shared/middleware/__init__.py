"""
Shared API Middleware

Provides cross-cutting concerns for all API endpoints:
- Error handling with standardized responses
- Trace ID and correlation ID propagation
- OpenTelemetry request spans and HTTP metrics
"""

from .error_handler import register_error_handlers
from .trace import (
    TraceMiddleware,
    get_trace_id,
    get_correlation_id,
    get_operator_id,
)
from .tracing import TracingMiddleware

__all__ = [
    # Error handling
    "register_error_handlers",
    # Trace
    "TraceMiddleware",
    "get_trace_id",
    "get_correlation_id",
    "get_operator_id",
    # OpenTelemetry Tracing
    "TracingMiddleware",
]
