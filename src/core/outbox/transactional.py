"""
Transactional Event Publisher

Combines business operations with event publishing in a single transaction
to guarantee atomicity: either both succeed or both fail.
"""

from typing import List, Optional
from contextlib import asynccontextmanager

from pydantic import BaseModel

from ..database.adapter import DatabaseAdapter, Transaction, get_database
from .models import Clock, OutboxMessage
from .serialization import EventSerializer
from .store import OutboxStore
from .writer import OutboxWriter, Payload


class TransactionalPublisher:
    """
    Publishes events transactionally with business operations.

    Usage:
        async with TransactionalPublisher(db) as txn:
            # Your business logic
            await txn.tx.execute("UPDATE missions SET ...")

            # Emit event (same transaction)
            await txn.emit("MissionUpdated|v1", {"missionId": str(mission_id)})
        # Both commit together or both rollback
    """

    def __init__(
        self,
        db: Optional[DatabaseAdapter] = None,
        serializer: Optional[EventSerializer] = None,
        clock: Optional[Clock] = None
    ):
        self.db = db
        self.serializer = serializer
        self.clock = clock
        self.tx: Optional[Transaction] = None
        self._writer: Optional[OutboxWriter] = None
        self._transaction_cm = None
        self._events: List[OutboxMessage] = []

    async def __aenter__(self):
        if self.db is None:
            self.db = await get_database()
        self._writer = OutboxWriter(OutboxStore(self.db), self.serializer, self.clock)
        self._events = []
        self._transaction_cm = self.db.transaction()
        self.tx = await self._transaction_cm.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        try:
            return await self._transaction_cm.__aexit__(exc_type, exc_val, exc_tb)
        finally:
            if exc_type is not None:
                # Rolled back, nothing was published
                self._events = []
            self.tx = None
            self._transaction_cm = None

    async def emit(self, event_type: str, payload: Payload) -> OutboxMessage:
        """Write an event to the outbox in the current transaction."""
        message = await self._writer.enqueue(self.tx, event_type, payload)
        self._events.append(message)
        return message

    async def emit_event(self, event: BaseModel) -> OutboxMessage:
        """Serialize a registered domain event and write it in the current transaction."""
        message = await self._writer.enqueue_event(self.tx, event)
        self._events.append(message)
        return message

    @property
    def emitted_events(self) -> List[OutboxMessage]:
        """Get list of events emitted in this transaction."""
        return self._events.copy()


@asynccontextmanager
async def transactional_publish(
    db: Optional[DatabaseAdapter] = None,
    serializer: Optional[EventSerializer] = None,
    clock: Optional[Clock] = None
):
    """
    Context manager for transactional event publishing.

    Usage:
        async with transactional_publish(db) as txn:
            await txn.tx.execute("INSERT INTO missions ...")
            await txn.emit("MissionCreated|v1", {...})
    """
    publisher = TransactionalPublisher(db, serializer, clock)
    async with publisher:
        yield publisher
