"""
Outbox Errors

Failure taxonomy shared by the dispatcher, the handlers and
dead-letter administration.
"""

from typing import Optional
from uuid import UUID


class OutboxError(Exception):
    """Base class for outbox errors."""


class MessageNotFoundError(OutboxError):
    """The requested outbox message does not exist."""

    def __init__(self, message_id: UUID):
        super().__init__(f"Outbox message '{message_id}' not found")
        self.message_id = message_id


class OutboxValidationError(OutboxError):
    """
    Invalid input or a state mismatch.

    Carries the offending field and, for state mismatches, the
    message id and its current state so callers can act on it.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        message_id: Optional[UUID] = None,
        state: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.message_id = message_id
        self.state = state


class HandlerFailure(OutboxError):
    """
    A handler could not complete its side effect.

    Transient: the failure is recorded on the message and retried
    according to the retry policy. Handlers may raise any exception;
    this class exists for handlers that want to be explicit.
    """


class PermanentFailure(OutboxError):
    """
    A failure that retrying cannot fix.

    Raised when no handler is registered for an event type or the
    payload cannot be decoded. The message is dead-lettered at once.
    """
