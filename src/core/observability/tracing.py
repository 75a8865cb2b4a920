"""
OpenTelemetry Tracing

Spans for HTTP requests and outbox deliveries, plus the trace/span ids
that structured logs carry.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.propagate import extract, set_global_textmap
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Span, Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "bud-outbox"

_tracer: Optional[trace.Tracer] = None


def init_tracing(
    service_name: str = DEFAULT_SERVICE_NAME,
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    console_export: bool = False
) -> trace.Tracer:
    """
    Install a tracer provider for this process.

    Without an OTLP endpoint or console export spans are still created
    (trace ids show up in logs) but nothing is exported.
    """
    global _tracer

    provider = TracerProvider(resource=Resource.create({
        SERVICE_NAME: service_name,
        SERVICE_VERSION: service_version,
    }))

    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        logger.info(f"OTel tracing: OTLP exporter configured -> {otlp_endpoint}")
    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    set_global_textmap(TraceContextTextMapPropagator())

    _tracer = trace.get_tracer(service_name, service_version)
    logger.info(f"OTel tracing initialized: {service_name} v{service_version}")
    return _tracer


def get_tracer() -> trace.Tracer:
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(DEFAULT_SERVICE_NAME)
    return _tracer


def get_current_span() -> Span:
    return trace.get_current_span()


def get_trace_id() -> Optional[str]:
    """Current trace id as 32 hex chars, or None outside a span."""
    context = get_current_span().get_span_context()
    return format(context.trace_id, '032x') if context.is_valid else None


def get_span_id() -> Optional[str]:
    """Current span id as 16 hex chars, or None outside a span."""
    context = get_current_span().get_span_context()
    return format(context.span_id, '016x') if context.is_valid else None


@contextmanager
def create_span(
    name: str,
    attributes: Dict[str, Any] = None,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL
) -> Iterator[Span]:
    """
    Run a block inside a new span; exceptions mark the span as failed
    and propagate.

    Usage:
        with create_span("outbox.deliver", {"outbox.event_type": event_type}):
            await handler(event_type, payload)
    """
    with get_tracer().start_as_current_span(name, kind=kind, attributes=attributes or {}) as span:
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def extract_trace_context(carrier: Dict[str, str]):
    """Parent context from W3C traceparent headers."""
    return extract(carrier)
