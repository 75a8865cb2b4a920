"""
OpenTelemetry Tracing Middleware

One server span per request plus request count/duration metrics.
Health probes are skipped so they don't drown out admin traffic.
"""

import time
import logging
from typing import Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from opentelemetry import trace

from ....core.observability.tracing import get_tracer, extract_trace_context
from ....core.observability.metrics import record_counter, record_histogram

logger = logging.getLogger(__name__)

UNTRACED_PATHS = frozenset(["/health", "/health/live", "/health/ready"])


def _route_template(request: Request) -> str:
    # "/api/outbox/dead-letters/{message_id}/reprocess" rather than one
    # label value per message id
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _labels(request: Request, status: int) -> Dict[str, str]:
    return {"method": request.method, "path": _route_template(request), "status": str(status)}


class TracingMiddleware(BaseHTTPMiddleware):
    """Server spans continue any W3C trace context sent by the caller."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in UNTRACED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        attributes = {
            "http.method": request.method,
            "http.target": request.url.path,
            "http.user_agent": request.headers.get("user-agent", ""),
        }
        operator_id = request.headers.get("X-Operator-ID")
        if operator_id:
            attributes["outbox.operator_id"] = operator_id

        with get_tracer().start_as_current_span(
            f"{request.method} {request.url.path}",
            context=extract_trace_context(dict(request.headers)),
            kind=trace.SpanKind.SERVER,
            attributes=attributes
        ) as span:
            try:
                response = await call_next(request)
            except Exception as e:
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                span.record_exception(e)
                record_counter("http_requests_total", 1, _labels(request, 500))
                raise

            span.set_attribute("http.route", _route_template(request))
            span.set_attribute("http.status_code", response.status_code)
            record_counter("http_requests_total", 1, _labels(request, response.status_code))
            record_histogram(
                "http_request_duration_seconds",
                time.perf_counter() - started,
                {"method": request.method, "path": _route_template(request)}
            )
            return response
