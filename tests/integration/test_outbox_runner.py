"""
Tests for the in-process lifespan and the standalone runner.
"""

import asyncio

from src.core.outbox.config import OutboxSettings
from src.core.outbox.lifecycle import outbox_lifespan
from src.core.outbox.processor import get_outbox_processors
from src.core.outbox.registry import HandlerRegistry
from src.core.outbox.runner import OutboxRunner


class TestOutboxLifespan:
    """Test outbox_lifespan."""

    async def test_disabled_processor_starts_nothing(self, db, monkeypatch):
        monkeypatch.setenv("OUTBOX_PROCESSOR_ENABLED", "false")

        async with outbox_lifespan(HandlerRegistry(), db=db, settings=OutboxSettings()) as processors:
            assert processors == []
            assert get_outbox_processors() == []

    async def test_enabled_processor_runs_for_the_lifespan(self, db, monkeypatch):
        monkeypatch.setenv("OUTBOX_PROCESSOR_ENABLED", "true")
        monkeypatch.setenv("OUTBOX_POLL_INTERVAL", "30")

        async with outbox_lifespan(HandlerRegistry(), db=db, settings=OutboxSettings()) as processors:
            assert len(processors) == 1
            assert processors[0].is_running

        assert not processors[0].is_running
        assert get_outbox_processors() == []


class TestOutboxRunner:
    """Test the standalone runner."""

    async def test_run_until_shutdown_requested(self, db, monkeypatch):
        monkeypatch.setenv("OUTBOX_POLL_INTERVAL", "30")
        monkeypatch.setenv("OUTBOX_WORKERS", "2")
        runner = OutboxRunner(HandlerRegistry(), db=db, settings=OutboxSettings())

        task = asyncio.create_task(runner.run(install_signal_handlers=False))
        for _ in range(100):
            if runner.processors:
                break
            await asyncio.sleep(0.01)

        health = await runner.health_check()
        assert health["status"] == "healthy"
        assert len(health["workers"]) == 2

        runner.request_shutdown()
        await asyncio.wait_for(task, timeout=5)

        health = await runner.health_check()
        assert health["status"] == "unhealthy"
        assert health["shutdown_requested"] is True
        assert get_outbox_processors() == []
