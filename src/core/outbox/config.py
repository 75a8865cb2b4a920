"""
Outbox Configuration

Environment-driven settings for the dispatcher, retry policy
and health check.

Environment Variables:
    OUTBOX_PROCESSOR_ENABLED: Run dispatcher workers in this process (default: true)
    OUTBOX_WORKERS: Independent dispatcher loops (default: 1)
    OUTBOX_BATCH_SIZE: Messages claimed per cycle (default: 100)
    OUTBOX_POLL_INTERVAL: Seconds between idle polls (default: 5.0)
    OUTBOX_CLAIM_TIMEOUT: Seconds a claim is held before it expires (default: 300)
    OUTBOX_MAX_RETRIES: Retries after the first attempt (default: 5)
    OUTBOX_BASE_RETRY_DELAY: First backoff delay in seconds (default: 5)
    OUTBOX_MAX_RETRY_DELAY: Backoff cap in seconds (default: 300)
    OUTBOX_HEALTH_MAX_DEAD_LETTERS: Dead letters tolerated by /health/outbox (default: 0)
    OUTBOX_HEALTH_MAX_OLDEST_PENDING_AGE: Seconds before pending work is degraded (default: 900)
"""

import os
import logging
from datetime import timedelta

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using {default}")
        return default
    if value < minimum:
        logger.warning(f"{name}={value} below minimum {minimum}, using {default}")
        return default
    return value


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using {default}")
        return default
    if value <= minimum:
        logger.warning(f"{name}={value} must be greater than {minimum}, using {default}")
        return default
    return value


class OutboxSettings:
    """Outbox configuration from environment variables."""

    def __init__(self):
        self.processor_enabled = _env_bool("OUTBOX_PROCESSOR_ENABLED", True)
        self.workers = _env_int("OUTBOX_WORKERS", 1, minimum=1)
        self.batch_size = _env_int("OUTBOX_BATCH_SIZE", 100, minimum=1)
        self.poll_interval = _env_float("OUTBOX_POLL_INTERVAL", 5.0)
        self.claim_timeout = _env_float("OUTBOX_CLAIM_TIMEOUT", 300.0)

        self.max_retries = _env_int("OUTBOX_MAX_RETRIES", 5)
        self.base_retry_delay = timedelta(seconds=_env_float("OUTBOX_BASE_RETRY_DELAY", 5.0))
        self.max_retry_delay = timedelta(seconds=_env_float("OUTBOX_MAX_RETRY_DELAY", 300.0))

        self.health_max_dead_letters = _env_int("OUTBOX_HEALTH_MAX_DEAD_LETTERS", 0)
        self.health_max_oldest_pending_age = timedelta(
            seconds=_env_float("OUTBOX_HEALTH_MAX_OLDEST_PENDING_AGE", 900.0)
        )

    def __repr__(self) -> str:
        return (
            f"OutboxSettings(workers={self.workers}, batch_size={self.batch_size}, "
            f"poll_interval={self.poll_interval}, max_retries={self.max_retries})"
        )
