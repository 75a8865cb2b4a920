"""
OpenTelemetry Metrics

Counters and histograms for outbox dispatch, dead-letter reprocessing
and the admin API. Instruments are created on first use; names not
declared in INSTRUMENTS are ignored.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

logger = logging.getLogger(__name__)

# name -> (kind, description, unit)
INSTRUMENTS: Dict[str, Tuple[str, str, str]] = {
    "http_requests_total": ("counter", "Total HTTP requests", "1"),
    "http_request_duration_seconds": ("histogram", "HTTP request duration", "s"),
    "outbox_processed_total": ("counter", "Outbox messages delivered successfully", "1"),
    "outbox_failed_total": ("counter", "Outbox delivery failures scheduled for retry", "1"),
    "outbox_dead_lettered_total": ("counter", "Outbox messages moved to dead letter", "1"),
    "outbox_claim_conflicts_total": ("counter", "Claims lost to another dispatcher worker", "1"),
    "outbox_reprocessed_total": ("counter", "Dead letters reset for reprocessing", "1"),
    "outbox_processing_duration_seconds": ("histogram", "Outbox handler duration", "s"),
}

_meter: Optional[metrics.Meter] = None
_instruments: Dict[str, Any] = {}


def init_metrics(
    service_name: str = "bud-outbox",
    otlp_endpoint: Optional[str] = None,
    console_export: bool = False,
    export_interval_ms: int = 60000
) -> metrics.Meter:
    """
    Install a meter provider for this process.

    Args:
        service_name: Reported as the service.name resource attribute
        otlp_endpoint: OTLP collector (gRPC); no export when unset
        console_export: Also dump metrics to stdout
        export_interval_ms: Export period for every reader
    """
    global _meter

    exporters = []
    if otlp_endpoint:
        exporters.append(OTLPMetricExporter(endpoint=otlp_endpoint, insecure=True))
        logger.info(f"OTel metrics: OTLP exporter configured -> {otlp_endpoint}")
    if console_export:
        exporters.append(ConsoleMetricExporter())

    provider = MeterProvider(
        resource=Resource.create({SERVICE_NAME: service_name}),
        metric_readers=[
            PeriodicExportingMetricReader(exporter, export_interval_millis=export_interval_ms)
            for exporter in exporters
        ],
    )
    metrics.set_meter_provider(provider)
    _meter = metrics.get_meter(service_name)

    # Instruments created before init belong to the previous provider
    _instruments.clear()

    logger.info(f"OTel metrics initialized: {service_name}")
    return _meter


def get_meter() -> metrics.Meter:
    global _meter
    if _meter is None:
        _meter = metrics.get_meter("bud-outbox")
    return _meter


def _instrument(name: str, kind: str):
    declared = INSTRUMENTS.get(name)
    if declared is None or declared[0] != kind:
        return None
    if name not in _instruments:
        _, description, unit = declared
        create = get_meter().create_counter if kind == "counter" else get_meter().create_histogram
        _instruments[name] = create(name, description=description, unit=unit)
    return _instruments[name]


def record_counter(name: str, value: int = 1, attributes: Dict[str, Any] = None):
    counter = _instrument(name, "counter")
    if counter is not None:
        counter.add(value, attributes or {})


def record_histogram(name: str, value: float, attributes: Dict[str, Any] = None):
    histogram = _instrument(name, "histogram")
    if histogram is not None:
        histogram.record(value, attributes or {})
