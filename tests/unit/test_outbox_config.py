"""
Tests for environment-driven outbox settings.
"""

import logging
from datetime import timedelta

from src.core.outbox.config import OutboxSettings


class TestOutboxSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in (
            "OUTBOX_PROCESSOR_ENABLED", "OUTBOX_WORKERS", "OUTBOX_BATCH_SIZE",
            "OUTBOX_POLL_INTERVAL", "OUTBOX_MAX_RETRIES", "OUTBOX_BASE_RETRY_DELAY",
            "OUTBOX_MAX_RETRY_DELAY", "OUTBOX_HEALTH_MAX_DEAD_LETTERS",
            "OUTBOX_HEALTH_MAX_OLDEST_PENDING_AGE", "OUTBOX_CLAIM_TIMEOUT",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = OutboxSettings()

        assert settings.processor_enabled is True
        assert settings.workers == 1
        assert settings.batch_size == 100
        assert settings.poll_interval == 5.0
        assert settings.claim_timeout == 300.0
        assert settings.max_retries == 5
        assert settings.base_retry_delay == timedelta(seconds=5)
        assert settings.max_retry_delay == timedelta(minutes=5)
        assert settings.health_max_dead_letters == 0
        assert settings.health_max_oldest_pending_age == timedelta(minutes=15)

    def test_invalid_values_fall_back(self, monkeypatch, caplog):
        monkeypatch.setenv("OUTBOX_BATCH_SIZE", "lots")
        monkeypatch.setenv("OUTBOX_WORKERS", "0")
        monkeypatch.setenv("OUTBOX_POLL_INTERVAL", "-1")

        with caplog.at_level(logging.WARNING):
            settings = OutboxSettings()

        assert settings.batch_size == 100
        assert settings.workers == 1
        assert settings.poll_interval == 5.0
        assert "OUTBOX_BATCH_SIZE" in caplog.text

    def test_processor_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("OUTBOX_PROCESSOR_ENABLED", "false")
        assert OutboxSettings().processor_enabled is False
