"""
Tests for the retry/backoff policy.
"""

import pytest
from datetime import datetime, timedelta, timezone

from src.core.outbox.config import OutboxSettings
from src.core.outbox.policy import RetryPolicy, RetryDecision

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestBackoff:
    """Test delay computation."""

    def test_default_schedule_doubles_from_base(self):
        """Defaults give 5s, 10s, 20s, 40s, 80s."""
        policy = RetryPolicy()
        delays = [policy.backoff(n).total_seconds() for n in range(1, 6)]
        assert delays == [5, 10, 20, 40, 80]

    def test_delay_is_capped(self):
        """Delays never exceed max_delay."""
        policy = RetryPolicy(max_retries=20)
        assert policy.backoff(7) == timedelta(minutes=5)
        assert policy.backoff(12) == timedelta(minutes=5)

    def test_huge_retry_count_does_not_overflow(self):
        """Very large counts stay at the cap."""
        policy = RetryPolicy(max_retries=10_000)
        assert policy.backoff(5000) == timedelta(minutes=5)

    def test_delays_are_non_decreasing(self):
        policy = RetryPolicy(
            max_retries=50,
            base_delay=timedelta(seconds=3),
            max_delay=timedelta(seconds=100)
        )
        delays = [policy.backoff(n) for n in range(1, 40)]
        assert delays == sorted(delays)
        assert all(d <= timedelta(seconds=100) for d in delays)


class TestDecide:
    """Test retry vs dead-letter decisions."""

    def test_retry_scheduled_from_failure_time(self):
        decision = RetryPolicy().decide(1, NOW)
        assert decision == RetryDecision.retry_at(NOW + timedelta(seconds=5))
        assert decision.dead_letter is False

    def test_last_retry_still_scheduled(self):
        """retry_count == max_retries is still retried."""
        decision = RetryPolicy(max_retries=5).decide(5, NOW)
        assert decision.dead_letter is False
        assert decision.next_attempt_on_utc == NOW + timedelta(seconds=80)

    def test_dead_letter_after_max_retries(self):
        """The failure after the last retry dead-letters the message."""
        decision = RetryPolicy(max_retries=5).decide(6, NOW)
        assert decision.dead_letter is True
        assert decision.next_attempt_on_utc is None

    def test_zero_retries_dead_letters_first_failure(self):
        assert RetryPolicy(max_retries=0).decide(1, NOW).dead_letter is True


class TestValidation:
    """Test construction checks."""

    @pytest.mark.parametrize("kwargs", [
        {"max_retries": -1},
        {"base_delay": timedelta(0)},
        {"base_delay": timedelta(seconds=10), "max_delay": timedelta(seconds=5)},
    ])
    def test_invalid_parameters_rejected(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)

    def test_from_settings(self, monkeypatch):
        """Policy picks up the OUTBOX_* retry settings."""
        monkeypatch.setenv("OUTBOX_MAX_RETRIES", "3")
        monkeypatch.setenv("OUTBOX_BASE_RETRY_DELAY", "2")
        monkeypatch.setenv("OUTBOX_MAX_RETRY_DELAY", "60")

        policy = RetryPolicy.from_settings(OutboxSettings())

        assert policy.max_retries == 3
        assert policy.base_delay == timedelta(seconds=2)
        assert policy.max_delay == timedelta(seconds=60)
