"""
Structured Logging with Trace Correlation

One JSON object per line with trace_id/span_id, plus any outbox fields
(message_id, event_type, worker_id, retry_count) passed via ``extra=``.
"""

import logging
import json
import sys
from datetime import datetime, timezone

from .tracing import get_span_id, get_trace_id

# LogRecord attributes that never go into the JSON body
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName", "trace_id",
))

NOISY_LOGGERS = ("uvicorn.access", "httpx", "aiosqlite", "opentelemetry")


def _json_safe(value):
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class StructuredFormatter(logging.Formatter):
    """JSON log lines carrying the active trace context."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": get_trace_id(),
            "span_id": get_span_id(),
        }
        entry.update(
            (key, _json_safe(value))
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class TraceContextFilter(logging.Filter):
    """Sets ``record.trace_id`` for the plain-text format."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id() or "no-trace"
        return True


def configure_logging(
    level: str = "INFO",
    structured: bool = True,
    service_name: str = "bud-outbox"
):
    """
    Replace root handlers with a single stdout handler.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (unknown names fall back to INFO)
        structured: JSON lines when true, plain text otherwise
        service_name: Only used in the startup log line
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(TraceContextFilter())
    handler.setFormatter(StructuredFormatter() if structured else logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [%(trace_id)s] %(message)s"
    ))

    root = logging.getLogger()
    root.setLevel(log_level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging configured: {service_name}, level={level}, structured={structured}")
