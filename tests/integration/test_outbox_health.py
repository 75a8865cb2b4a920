"""
Tests for the outbox health check.
"""

from datetime import timedelta

from src.core.outbox.health import HealthStatus, OutboxHealthCheck
from src.core.outbox.models import OutboxMessage


async def insert(db, store, **fields):
    message = OutboxMessage(payload=b"{}", **fields)
    async with db.transaction() as tx:
        await store.insert(tx, message)
    return message


class TestOutboxHealthCheck:
    """Test status thresholds."""

    async def test_empty_outbox_is_healthy(self, db, clock):
        report = await OutboxHealthCheck(db, clock=clock).check()

        assert report.status == HealthStatus.HEALTHY
        assert report.dead_letters == 0
        assert report.active == 0
        assert report.oldest_pending_age_seconds == 0.0

    async def test_recent_pending_work_is_healthy(self, db, store, clock):
        await insert(db, store, event_type="A|v1", occurred_on_utc=clock.now - timedelta(minutes=2))

        report = await OutboxHealthCheck(db, clock=clock).check()

        assert report.status == HealthStatus.HEALTHY
        assert report.active == 1
        assert report.oldest_pending_age_seconds == 120.0

    async def test_old_pending_work_is_degraded(self, db, store, clock):
        await insert(db, store, event_type="A|v1", occurred_on_utc=clock.now - timedelta(minutes=20))

        report = await OutboxHealthCheck(db, clock=clock).check()

        assert report.status == HealthStatus.DEGRADED
        assert report.max_oldest_pending_age_seconds == 900.0

    async def test_dead_letters_over_limit_are_unhealthy(self, db, store, clock):
        await insert(
            db, store, event_type="A|v1", occurred_on_utc=clock.now,
            dead_lettered_on_utc=clock.now, retry_count=6
        )

        report = await OutboxHealthCheck(db, clock=clock).check()
        assert report.status == HealthStatus.UNHEALTHY
        assert report.dead_letters == 1

        tolerant = await OutboxHealthCheck(db, max_dead_letters=1, clock=clock).check()
        assert tolerant.status == HealthStatus.HEALTHY

    async def test_processed_messages_do_not_count(self, db, store, clock):
        await insert(
            db, store, event_type="A|v1", occurred_on_utc=clock.now - timedelta(days=2),
            processed_on_utc=clock.now - timedelta(days=1)
        )

        report = await OutboxHealthCheck(db, clock=clock).check()
        assert report.status == HealthStatus.HEALTHY
        assert report.active == 0
