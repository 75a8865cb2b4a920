"""
Outbox Health Check

Reports whether dead letters are piling up or active messages are
waiting longer than expected.
"""

from datetime import timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..database.adapter import DatabaseAdapter
from .config import OutboxSettings
from .models import Clock, MessageState, _utcnow
from .store import OutboxStore


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class OutboxHealthReport(BaseModel):
    status: HealthStatus
    description: str
    dead_letters: int
    active: int
    oldest_pending_age_seconds: float
    max_dead_letters: int
    max_oldest_pending_age_seconds: float


class OutboxHealthCheck:
    """
    Outbox health.

    - unhealthy: more dead letters than max_dead_letters
    - degraded: the oldest active message is older than max_oldest_pending_age
    - healthy: otherwise
    """

    def __init__(
        self,
        db: DatabaseAdapter,
        max_dead_letters: int = 0,
        max_oldest_pending_age: timedelta = timedelta(minutes=15),
        clock: Optional[Clock] = None
    ):
        self.store = OutboxStore(db)
        self.max_dead_letters = max_dead_letters
        self.max_oldest_pending_age = max_oldest_pending_age
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, db: DatabaseAdapter, settings: Optional[OutboxSettings] = None) -> "OutboxHealthCheck":
        settings = settings or OutboxSettings()
        return cls(
            db,
            max_dead_letters=settings.health_max_dead_letters,
            max_oldest_pending_age=settings.health_max_oldest_pending_age
        )

    async def check(self) -> OutboxHealthReport:
        stats = await self.store.stats()
        now = self._clock()

        dead_letters = stats[MessageState.DEAD_LETTERED.value]
        oldest_pending = stats["oldest_pending"]
        age = now - oldest_pending if oldest_pending else timedelta(0)

        if dead_letters > self.max_dead_letters:
            status = HealthStatus.UNHEALTHY
            description = "Outbox has more dead letters than the configured limit."
        elif age > self.max_oldest_pending_age:
            status = HealthStatus.DEGRADED
            description = "Outbox has pending messages older than the expected maximum age."
        else:
            status = HealthStatus.HEALTHY
            description = "Outbox is healthy."

        return OutboxHealthReport(
            status=status,
            description=description,
            dead_letters=dead_letters,
            active=stats[MessageState.ACTIVE.value],
            oldest_pending_age_seconds=round(max(age.total_seconds(), 0.0), 2),
            max_dead_letters=self.max_dead_letters,
            max_oldest_pending_age_seconds=round(self.max_oldest_pending_age.total_seconds(), 2)
        )
