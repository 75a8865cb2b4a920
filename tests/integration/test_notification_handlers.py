"""
Tests for the notification handlers driven through the dispatcher.
"""

from datetime import timedelta
from uuid import uuid4

from src.core.notifications import (
    MetricCheckinCreated,
    MissionCreated,
    MissionDeleted,
    MissionUpdated,
    build_event_serializer,
    build_notification_registry,
)
from src.core.outbox.models import MessageState
from src.core.outbox.policy import RetryPolicy
from src.core.outbox.processor import OutboxProcessor
from src.core.outbox.transactional import TransactionalPublisher


class FakeOrchestrator:
    """Records notification calls; fails while `failures` > 0."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = []

    async def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("notification service unavailable")

    async def notify_mission_created(self, mission_id, organization_id):
        await self._record("created", mission_id, organization_id)

    async def notify_mission_updated(self, mission_id, organization_id):
        await self._record("updated", mission_id, organization_id)

    async def notify_mission_deleted(self, mission_id, organization_id):
        await self._record("deleted", mission_id, organization_id)

    async def notify_metric_checkin_created(self, checkin_id, metric_id, organization_id, exclude_collaborator_id):
        await self._record("checkin", checkin_id, metric_id, organization_id, exclude_collaborator_id)


async def publish(db, clock, *events):
    async with TransactionalPublisher(db, build_event_serializer(), clock) as txn:
        for event in events:
            await txn.emit_event(event)
    return txn.emitted_events


class TestNotificationHandlers:
    """Test event fan-out to the orchestrator."""

    async def test_each_event_reaches_its_orchestrator_method(self, db, clock):
        orchestrator = FakeOrchestrator()
        org = uuid4()
        created = MissionCreated(mission_id=uuid4(), organization_id=org)
        deleted = MissionDeleted(mission_id=uuid4(), organization_id=org)
        checkin = MetricCheckinCreated(
            checkin_id=uuid4(), metric_id=uuid4(), organization_id=org,
            exclude_collaborator_id=uuid4()
        )
        await publish(db, clock, created, deleted, checkin)

        processor = OutboxProcessor(build_notification_registry(orchestrator), db=db, clock=clock)
        assert await processor.process_batch() == 3

        assert sorted(orchestrator.calls, key=lambda c: c[0]) == [
            ("checkin", checkin.checkin_id, checkin.metric_id, org, checkin.exclude_collaborator_id),
            ("created", created.mission_id, org),
            ("deleted", deleted.mission_id, org),
        ]

    async def test_mission_updated_retried_after_transient_failure(self, db, store, clock):
        """
        A MissionUpdated event whose first delivery fails is retried after
        the base delay and processed on the second attempt.
        """
        orchestrator = FakeOrchestrator(failures=1)
        event = MissionUpdated(mission_id=uuid4(), organization_id=uuid4())
        [message] = await publish(db, clock, event)

        processor = OutboxProcessor(
            build_notification_registry(orchestrator), db=db, clock=clock, policy=RetryPolicy()
        )
        await processor.process_batch()

        stored = await store.get(message.id)
        assert stored.retry_count == 1
        assert stored.error == "ConnectionError: notification service unavailable"
        assert stored.next_attempt_on_utc == clock.now + timedelta(seconds=5)

        clock.advance(seconds=5)
        await processor.process_batch()

        stored = await store.get(message.id)
        assert stored.state == MessageState.PROCESSED
        assert orchestrator.calls == [
            ("updated", event.mission_id, event.organization_id),
            ("updated", event.mission_id, event.organization_id),
        ]

    async def test_undecodable_payload_is_dead_lettered_at_once(self, db, store, writer, clock):
        orchestrator = FakeOrchestrator()
        async with db.transaction() as tx:
            message = await writer.enqueue(tx, "MissionCreated|v1", b'{"mission_id": "not-a-uuid"}')

        processor = OutboxProcessor(build_notification_registry(orchestrator), db=db, clock=clock)
        await processor.process_batch()

        stored = await store.get(message.id)
        assert stored.state == MessageState.DEAD_LETTERED
        assert stored.retry_count == 1
        assert stored.error.startswith("PermanentFailure: Invalid payload for 'MissionCreated|v1'")
        assert orchestrator.calls == []
