"""
API Exception Classes

Raised by routers; the error handler turns them into the standard
error envelope.
"""

from typing import Optional, List

from .error_codes import ErrorCode, get_status_code
from .responses import ErrorDetail


class APIException(Exception):
    """Base exception for API errors. Status comes from the error code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[List[ErrorDetail]] = None,
        trace_id: Optional[str] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        self.trace_id = trace_id
        self.status_code = get_status_code(code)


class ValidationError(APIException):
    """
    Bad paging, bad filter, or a reprocess request against a message
    in the wrong state (pass OUTBOX_MESSAGE_NOT_DEAD_LETTERED as code).
    """

    def __init__(
        self,
        message: str,
        details: Optional[List[ErrorDetail]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        trace_id: Optional[str] = None
    ):
        super().__init__(code, message, details=details, trace_id=trace_id)


# Resources with a dedicated not-found code
_NOT_FOUND_CODES = {
    "Outbox message": ErrorCode.OUTBOX_MESSAGE_NOT_FOUND,
}


class NotFoundError(APIException):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        resource_id: Optional[str] = None,
        trace_id: Optional[str] = None
    ):
        if resource_id:
            message = f"{resource} with ID '{resource_id}' not found"
        else:
            message = f"{resource} not found"

        super().__init__(
            _NOT_FOUND_CODES.get(resource, ErrorCode.NOT_FOUND),
            message,
            details=[ErrorDetail(field="id", message=resource_id)] if resource_id else None,
            trace_id=trace_id,
        )
        self.resource = resource
        self.resource_id = resource_id


class DatabaseError(APIException):
    """The outbox store failed (500). Driver details stay in the logs."""

    def __init__(
        self,
        message: str = "A database error occurred",
        trace_id: Optional[str] = None
    ):
        super().__init__(ErrorCode.DATABASE_ERROR, message, trace_id=trace_id)
