"""
Standard Error Codes

Error codes returned in the ``error.code`` field of every error
envelope, with the HTTP status each one maps to.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """API error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    OUTBOX_MESSAGE_NOT_FOUND = "OUTBOX_MESSAGE_NOT_FOUND"
    # Reprocess requested for a message that is pending or processed
    OUTBOX_MESSAGE_NOT_DEAD_LETTERED = "OUTBOX_MESSAGE_NOT_DEAD_LETTERED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


ERROR_STATUS_CODES = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.OUTBOX_MESSAGE_NOT_DEAD_LETTERED: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.OUTBOX_MESSAGE_NOT_FOUND: 404,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.DATABASE_ERROR: 500,
}


def get_status_code(error_code: ErrorCode) -> int:
    """HTTP status for an error code; unmapped codes are 500."""
    return ERROR_STATUS_CODES.get(error_code, 500)


def is_server_error(error_code: ErrorCode) -> bool:
    return get_status_code(error_code) >= 500
