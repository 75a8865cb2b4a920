"""
Standard API Response Models

Error envelope returned by every endpoint:

    {
        "error": {
            "code": "OUTBOX_MESSAGE_NOT_DEAD_LETTERED",
            "message": "Message ... is not dead-lettered",
            "details": [{"field": "state", "message": "processed", "code": "invalid_state"}],
            "trace_id": "4bf92f3577b34da6a3ce929d0e0e4736",
            "timestamp": "2026-03-01T12:00:00Z"
        }
    }
"""

from datetime import datetime, timezone
from typing import Optional, List
from uuid import uuid4

from pydantic import BaseModel, Field, field_serializer

from .error_codes import ErrorCode


class ErrorDetail(BaseModel):
    """One offending field, or the id/state of the message involved."""

    field: Optional[str] = None
    message: str
    code: Optional[str] = None


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[List[ErrorDetail]] = None
    # Falls back to a random id when the request has no trace context
    trace_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("timestamp", when_used="json")
    def serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat().replace("+00:00", "Z")

    @classmethod
    def _build(cls, code: ErrorCode, message: str, details=None, trace_id=None) -> "ErrorBody":
        fields = {"code": code.value, "message": message, "details": details}
        if trace_id:
            fields["trace_id"] = trace_id
        return cls(**fields)

    @classmethod
    def validation_error(
        cls,
        message: str,
        details: Optional[List[ErrorDetail]] = None,
        trace_id: Optional[str] = None
    ) -> "ErrorBody":
        return cls._build(ErrorCode.VALIDATION_ERROR, message, details, trace_id)

    @classmethod
    def internal_error(
        cls,
        message: str = "An internal error occurred",
        trace_id: Optional[str] = None
    ) -> "ErrorBody":
        return cls._build(ErrorCode.INTERNAL_ERROR, message, trace_id=trace_id)


class ErrorResponse(BaseModel):
    error: ErrorBody
