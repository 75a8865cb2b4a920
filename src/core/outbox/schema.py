"""
Outbox Schema

DDL for the outbox_messages table. The statements are valid on both
PostgreSQL and SQLite; db/migrations/001_outbox_messages.sql carries the
same table for PostgreSQL deployments.
"""

from typing import List, Union

from ..database.adapter import DatabaseAdapter, Transaction

OUTBOX_TABLE = "outbox_messages"

OUTBOX_SCHEMA_STATEMENTS: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS outbox_messages (
        id UUID PRIMARY KEY,
        event_type TEXT NOT NULL,
        payload BYTEA NOT NULL,
        occurred_on_utc TIMESTAMPTZ NOT NULL,
        processed_on_utc TIMESTAMPTZ NULL,
        dead_lettered_on_utc TIMESTAMPTZ NULL,
        next_attempt_on_utc TIMESTAMPTZ NOT NULL,
        retry_count INTEGER NOT NULL DEFAULT 0,
        error TEXT NULL,
        claimed_by TEXT NULL,
        CONSTRAINT ck_outbox_messages_retry_count CHECK (retry_count >= 0),
        CONSTRAINT ck_outbox_messages_single_terminal_state
            CHECK (processed_on_utc IS NULL OR dead_lettered_on_utc IS NULL)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_outbox_messages_dispatch
        ON outbox_messages (processed_on_utc, dead_lettered_on_utc, next_attempt_on_utc, occurred_on_utc)
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_outbox_messages_dead_lettered
        ON outbox_messages (dead_lettered_on_utc)
    """,
]


async def create_outbox_schema(db: Union[DatabaseAdapter, Transaction]) -> None:
    """Create the outbox table and its indexes if they do not exist."""
    for statement in OUTBOX_SCHEMA_STATEMENTS:
        await db.execute(statement)
