"""
Tests for JSON structured logging.
"""

import json
import logging

from src.core.observability.logging import StructuredFormatter


class TestStructuredFormatter:
    """Test JSON log output."""

    def test_extra_fields_are_included(self):
        record = logging.LogRecord(
            "src.core.outbox.processor", logging.WARNING, __file__, 1,
            "Outbox message failed", None, None
        )
        record.message_id = "abc"
        record.retry_count = 2

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["level"] == "WARNING"
        assert entry["message"] == "Outbox message failed"
        assert entry["message_id"] == "abc"
        assert entry["retry_count"] == 2
        assert entry["timestamp"].endswith("Z")

    def test_unserializable_extra_is_stringified(self):
        record = logging.LogRecord(
            "src.core.outbox.dlq", logging.INFO, __file__, 1, "reset", None, None
        )
        record.worker_id = object()

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["worker_id"].startswith("<object object")
        assert entry["trace_id"] is None
