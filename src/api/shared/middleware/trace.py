"""
Trace ID Middleware

Binds per-request ids to context variables so logs and dead-letter
audit entries can be tied back to the request that caused them.

Headers:
    X-Trace-ID        echoed back; generated when absent
    X-Correlation-ID  echoed back when sent (e.g. a mission id)
    X-Operator-ID     who asked for a reprocess; audit logging only
"""

import contextvars
from uuid import uuid4
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware


trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")
operator_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("operator_id", default="")


def get_trace_id() -> str:
    """Trace id of the current request; a fresh one outside a request."""
    return trace_id_var.get() or str(uuid4())


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get() or None


def get_operator_id() -> Optional[str]:
    return operator_id_var.get() or None


class TraceMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        headers = request.headers
        trace_id = headers.get("X-Trace-ID") or str(uuid4())
        correlation_id = headers.get("X-Correlation-ID", "")

        trace_id_var.set(trace_id)
        correlation_id_var.set(correlation_id)
        operator_id_var.set(headers.get("X-Operator-ID", ""))
        request.state.trace_id = trace_id

        response = await call_next(request)

        response.headers["X-Trace-ID"] = trace_id
        if correlation_id:
            response.headers["X-Correlation-ID"] = correlation_id
        return response
