"""
Outbox Models

Rows of the outbox_messages table and the read models served
by dead-letter administration.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Dict, Any, List
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Injected "now" for the dispatcher, policy and administration
Clock = Callable[[], datetime]

MAX_ERROR_LENGTH = 2000


def _utcnow() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


class MessageState(str, Enum):
    """Lifecycle state of an outbox message."""
    ACTIVE = "active"
    PROCESSED = "processed"
    DEAD_LETTERED = "dead_lettered"


class OutboxMessage(BaseModel):
    """A row in the outbox table."""

    id: UUID = Field(default_factory=uuid4)
    event_type: str
    payload: bytes = b""
    occurred_on_utc: datetime = Field(default_factory=_utcnow)

    processed_on_utc: Optional[datetime] = None
    dead_lettered_on_utc: Optional[datetime] = None
    next_attempt_on_utc: Optional[datetime] = None
    retry_count: int = 0
    error: Optional[str] = None
    claimed_by: Optional[str] = None

    def model_post_init(self, __context: Any) -> None:
        if self.next_attempt_on_utc is None:
            self.next_attempt_on_utc = self.occurred_on_utc

    @property
    def state(self) -> MessageState:
        if self.processed_on_utc is not None:
            return MessageState.PROCESSED
        if self.dead_lettered_on_utc is not None:
            return MessageState.DEAD_LETTERED
        return MessageState.ACTIVE

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "OutboxMessage":
        data = dict(row)
        if isinstance(data.get("payload"), memoryview):
            data["payload"] = bytes(data["payload"])
        return cls(**data)


class DeadLetterItem(BaseModel):
    """Dead-letter listing entry."""

    id: UUID
    occurred_on_utc: datetime
    event_type: str
    retry_count: int
    dead_lettered_on_utc: Optional[datetime] = None
    error: Optional[str] = None


class DeadLetterPage(BaseModel):
    """A page of dead letters, most recently failed first."""

    items: List[DeadLetterItem]
    total: int
    page: int
    page_size: int


class DeadLetterFilter(BaseModel):
    """
    Selection for bulk reprocessing.

    Field names accept both snake_case and camelCase
    (eventType, deadLetteredFromUtc, deadLetteredToUtc, maxItems).
    Range checks happen in DeadLetterAdministration so that the same
    rules apply whether the filter comes from HTTP or from code.
    """

    model_config = ConfigDict(populate_by_name=True)

    event_type: Optional[str] = Field(default=None, alias="eventType")
    dead_lettered_from_utc: Optional[datetime] = Field(default=None, alias="deadLetteredFromUtc")
    dead_lettered_to_utc: Optional[datetime] = Field(default=None, alias="deadLetteredToUtc")
    max_items: int = Field(default=100, alias="maxItems")

    @field_validator("dead_lettered_from_utc", "dead_lettered_to_utc")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
