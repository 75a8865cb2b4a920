"""
Outbox Pattern Implementation

Provides transactional event publishing with at-least-once delivery,
retry/backoff and dead-letter recovery.

Usage:
    from src.core.outbox import OutboxStore, OutboxWriter

    writer = OutboxWriter(OutboxStore(db))

    async with db.transaction() as tx:
        # This is atomic with your business transaction
        await tx.execute("UPDATE missions SET name = $1 WHERE id = $2", name, mission_id)
        await writer.enqueue(tx, "MissionUpdated|v1", {"mission_id": str(mission_id)})
"""

from .errors import (
    OutboxError,
    MessageNotFoundError,
    OutboxValidationError,
    HandlerFailure,
    PermanentFailure,
)
from .models import (
    OutboxMessage,
    MessageState,
    DeadLetterItem,
    DeadLetterPage,
    DeadLetterFilter,
)
from .config import OutboxSettings
from .policy import RetryPolicy, RetryDecision
from .registry import HandlerRegistry, OutboxHandler
from .serialization import EventSerializer, base_event_type
from .store import OutboxStore
from .schema import create_outbox_schema
from .writer import OutboxWriter
from .transactional import TransactionalPublisher, transactional_publish
from .processor import OutboxProcessor, start_outbox_processor, stop_outbox_processor
from .dlq import DeadLetterAdministration, get_dead_letter_administration
from .health import OutboxHealthCheck, OutboxHealthReport, HealthStatus

__all__ = [
    "OutboxError",
    "MessageNotFoundError",
    "OutboxValidationError",
    "HandlerFailure",
    "PermanentFailure",
    "OutboxMessage",
    "MessageState",
    "DeadLetterItem",
    "DeadLetterPage",
    "DeadLetterFilter",
    "OutboxSettings",
    "RetryPolicy",
    "RetryDecision",
    "HandlerRegistry",
    "OutboxHandler",
    "EventSerializer",
    "base_event_type",
    "OutboxStore",
    "create_outbox_schema",
    "OutboxWriter",
    "TransactionalPublisher",
    "transactional_publish",
    "OutboxProcessor",
    "start_outbox_processor",
    "stop_outbox_processor",
    "DeadLetterAdministration",
    "get_dead_letter_administration",
    "OutboxHealthCheck",
    "OutboxHealthReport",
    "HealthStatus",
]
