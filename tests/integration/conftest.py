"""
Integration Test Fixtures

Each test gets its own SQLite database file with the outbox schema and a
fixed clock that only moves when the test advances it.
"""

import pytest
from datetime import datetime, timedelta, timezone

from src.core.database.adapter import DatabaseAdapter, DatabaseConfig
from src.core.outbox.schema import create_outbox_schema
from src.core.outbox.store import OutboxStore
from src.core.outbox.writer import OutboxWriter


class FakeClock:
    """Deterministic UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
async def db(tmp_path, monkeypatch):
    """Connected adapter on a fresh SQLite file."""
    monkeypatch.setenv("DATABASE_BACKEND", "sqlite")
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "outbox.db"))

    adapter = DatabaseAdapter(DatabaseConfig())
    await adapter.connect()
    await create_outbox_schema(adapter)
    await adapter.execute("CREATE TABLE missions (id TEXT PRIMARY KEY, name TEXT NOT NULL)")

    yield adapter

    await adapter.disconnect()


@pytest.fixture
def store(db):
    return OutboxStore(db)


@pytest.fixture
def writer(store, clock):
    return OutboxWriter(store, clock=clock)
