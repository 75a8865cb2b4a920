"""
Tests for the API error envelope models.
"""

from datetime import datetime, timezone

from src.api.shared.responses import ErrorBody, ErrorDetail, ErrorResponse


class TestErrorBody:
    """Test error body serialization."""

    def test_timestamp_serializes_as_utc_z(self):
        body = ErrorBody(
            code="OUTBOX_MESSAGE_NOT_FOUND",
            message="Outbox message not found",
            trace_id="abc",
            timestamp=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        )

        dumped = ErrorResponse(error=body).model_dump(mode="json")

        assert dumped["error"]["timestamp"] == "2026-03-01T12:00:00Z"
        assert dumped["error"]["trace_id"] == "abc"

    def test_python_dump_keeps_datetime(self):
        body = ErrorBody.internal_error(trace_id="abc")

        assert isinstance(body.model_dump()["timestamp"], datetime)

    def test_configured_without_json_encoders(self):
        assert "json_encoders" not in ErrorBody.model_config

    def test_validation_error_carries_details(self):
        details = [ErrorDetail(field="page_size", message="must be between 1 and 100")]

        body = ErrorBody.validation_error("Invalid paging", details=details)

        assert body.code == "VALIDATION_ERROR"
        assert body.details == details
        assert body.trace_id
