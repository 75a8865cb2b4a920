"""
Outbox Writer

Writes events to the outbox table within the same transaction
as the business change they describe. If that transaction rolls back,
the event is gone with it.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from ..database.adapter import Transaction
from .errors import OutboxError, OutboxValidationError
from .models import OutboxMessage, Clock, _utcnow
from .serialization import EventSerializer
from .store import OutboxStore

logger = logging.getLogger(__name__)

Payload = Union[bytes, str, Dict[str, Any]]


def encode_payload(payload: Payload) -> bytes:
    """Normalize a payload to bytes."""
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, dict):
        return json.dumps(payload, default=str, separators=(",", ":")).encode("utf-8")
    raise OutboxValidationError(
        f"Unsupported payload type: {type(payload).__name__}", field="payload"
    )


class OutboxWriter:
    """
    Writes events to the outbox for reliable delivery.

    Usage:
        writer = OutboxWriter(store)

        async with db.transaction() as tx:
            await tx.execute("UPDATE missions SET name = $1 WHERE id = $2", name, mission_id)
            await writer.enqueue(tx, "MissionUpdated|v1", {"missionId": str(mission_id)})
        # Both commit together or neither does
    """

    def __init__(
        self,
        store: OutboxStore,
        serializer: Optional[EventSerializer] = None,
        clock: Optional[Clock] = None
    ):
        self.store = store
        self.serializer = serializer
        self._clock = clock or _utcnow

    async def enqueue(
        self,
        tx: Transaction,
        event_type: str,
        payload: Payload,
        occurred_on_utc: Optional[datetime] = None
    ) -> OutboxMessage:
        """
        Append one event to the outbox.

        Args:
            tx: The unit of work that also persists the business change
            event_type: Event type discriminator (e.g., "MissionUpdated|v1")
            payload: Event body as bytes, text or a JSON-serializable dict
            occurred_on_utc: Business time of the change (defaults to now)

        Returns:
            The created OutboxMessage

        Raises:
            OutboxError: If called outside a unit of work
            OutboxValidationError: If the event type is blank or the payload unsupported
        """
        if not isinstance(tx, Transaction):
            raise OutboxError("enqueue must be called inside a unit of work (db.transaction())")

        et = (event_type or "").strip()
        if not et:
            raise OutboxValidationError("Event type is required", field="event_type")

        occurred = occurred_on_utc or self._clock()
        if occurred.tzinfo is None:
            occurred = occurred.replace(tzinfo=timezone.utc)

        message = OutboxMessage(
            event_type=et,
            payload=encode_payload(payload),
            occurred_on_utc=occurred,
            next_attempt_on_utc=occurred
        )

        await self.store.insert(tx, message)

        logger.debug(
            "Wrote event to outbox: id=%s type=%s",
            message.id, message.event_type
        )

        return message

    async def enqueue_event(
        self,
        tx: Transaction,
        event: BaseModel,
        occurred_on_utc: Optional[datetime] = None
    ) -> OutboxMessage:
        """Serialize a registered domain event and enqueue it."""
        if self.serializer is None:
            raise OutboxError("OutboxWriter has no EventSerializer configured")
        event_type, payload = self.serializer.serialize(event)
        return await self.enqueue(tx, event_type, payload, occurred_on_utc)
