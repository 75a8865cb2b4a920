"""
Retry/Backoff Policy

Maps a failed message's retry count to its next attempt time,
or to the decision to dead-letter it. No I/O, no clock of its own.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of a failed attempt."""
    next_attempt_on_utc: Optional[datetime] = None
    dead_letter: bool = False

    @classmethod
    def retry_at(cls, when: datetime) -> "RetryDecision":
        return cls(next_attempt_on_utc=when)

    @classmethod
    def give_up(cls) -> "RetryDecision":
        return cls(dead_letter=True)


class RetryPolicy:
    """
    Exponential backoff with a cap and a retry ceiling.

    The first attempt is not a retry: with max_retries=5 a message gets
    six attempts and is dead-lettered on the sixth failure.

    Delays for base_delay=5s, max_delay=300s:
        failure 1 -> 5s, 2 -> 10s, 3 -> 20s, 4 -> 40s, 5 -> 80s, 6 -> dead letter
    """

    def __init__(
        self,
        max_retries: int = 5,
        base_delay: timedelta = timedelta(seconds=5),
        max_delay: timedelta = timedelta(minutes=5)
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if base_delay <= timedelta(0):
            raise ValueError("base_delay must be positive")
        if max_delay < base_delay:
            raise ValueError("max_delay must be >= base_delay")

        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.base_retry_delay,
            max_delay=max(settings.max_retry_delay, settings.base_retry_delay)
        )

    def backoff(self, retry_count: int) -> timedelta:
        """Delay before the next attempt after `retry_count` failures."""
        exponent = max(0, retry_count - 1)
        # Bound the exponent so huge counts cannot overflow timedelta
        if exponent >= 32:
            return self.max_delay
        return min(self.base_delay * (2 ** exponent), self.max_delay)

    def decide(self, retry_count: int, now: datetime) -> RetryDecision:
        """
        Decide what happens after a failure.

        Args:
            retry_count: Failed attempts so far, including this one
            now: Time of the failure

        Returns:
            RetryDecision with a next attempt time or dead_letter=True
        """
        if retry_count > self.max_retries:
            return RetryDecision.give_up()
        return RetryDecision.retry_at(now + self.backoff(retry_count))

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_retries={self.max_retries}, "
            f"base_delay={self.base_delay}, max_delay={self.max_delay})"
        )
