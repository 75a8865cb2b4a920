"""
Outbox Store

All reads and writes against the outbox_messages table.

Every mutation is a single-row conditional UPDATE whose WHERE clause
encodes the state it expects; callers learn whether they won from the
returned bool. No statement spans more than one message.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..database.adapter import DatabaseAdapter, DatabaseBackend, Transaction, affected_rows
from .models import OutboxMessage, DeadLetterItem, MessageState, MAX_ERROR_LENGTH

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, event_type, payload, occurred_on_utc, processed_on_utc,
    dead_lettered_on_utc, next_attempt_on_utc, retry_count, error, claimed_by
"""

_ACTIVE = "processed_on_utc IS NULL AND dead_lettered_on_utc IS NULL"


def _truncate(error: Optional[str]) -> Optional[str]:
    if error is None:
        return None
    return error[:MAX_ERROR_LENGTH]


class OutboxStore:
    """Data access for outbox messages."""

    def __init__(self, db: DatabaseAdapter):
        self.db = db

    # Enqueue

    async def insert(self, tx: Transaction, message: OutboxMessage) -> None:
        """Insert a message inside the caller's unit of work."""
        await tx.execute(
            f"""
            INSERT INTO outbox_messages ({_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            """,
            message.id,
            message.event_type,
            message.payload,
            message.occurred_on_utc,
            message.processed_on_utc,
            message.dead_lettered_on_utc,
            message.next_attempt_on_utc,
            message.retry_count,
            message.error,
            message.claimed_by
        )

    # Reads

    async def get(self, message_id: UUID) -> Optional[OutboxMessage]:
        row = await self.db.fetchrow(
            f"SELECT {_COLUMNS} FROM outbox_messages WHERE id = $1",
            message_id
        )
        return OutboxMessage.from_row(row) if row else None

    async def fetch_due(self, now: datetime, limit: int) -> List[OutboxMessage]:
        """Active messages whose next attempt is due, oldest first."""
        rows = await self.db.fetch(
            f"""
            SELECT {_COLUMNS}
            FROM outbox_messages
            WHERE {_ACTIVE} AND next_attempt_on_utc <= $1
            ORDER BY occurred_on_utc ASC
            LIMIT $2
            """,
            now,
            limit
        )
        return [OutboxMessage.from_row(row) for row in rows]

    # Dispatcher transitions

    async def claim(
        self,
        message_id: UUID,
        worker_id: str,
        now: datetime,
        lease_until: datetime
    ) -> bool:
        """
        Claim a due message for one worker.

        Pushing next_attempt_on_utc to the lease end makes the message
        not due for everyone else; if the worker dies the lease runs out
        and the message becomes due again with its retry count unchanged.
        """
        status = await self.db.execute(
            f"""
            UPDATE outbox_messages
            SET next_attempt_on_utc = $1, claimed_by = $2
            WHERE id = $3 AND {_ACTIVE} AND next_attempt_on_utc <= $4
            """,
            lease_until,
            worker_id,
            message_id,
            now
        )
        return affected_rows(status) == 1

    async def mark_processed(self, message_id: UUID, worker_id: str, now: datetime) -> bool:
        status = await self.db.execute(
            f"""
            UPDATE outbox_messages
            SET processed_on_utc = $1, error = NULL, claimed_by = NULL
            WHERE id = $2 AND claimed_by = $3 AND {_ACTIVE}
            """,
            now,
            message_id,
            worker_id
        )
        return affected_rows(status) == 1

    async def schedule_retry(
        self,
        message_id: UUID,
        worker_id: str,
        retry_count: int,
        error: str,
        next_attempt_on_utc: datetime
    ) -> bool:
        status = await self.db.execute(
            f"""
            UPDATE outbox_messages
            SET retry_count = $1, error = $2, next_attempt_on_utc = $3, claimed_by = NULL
            WHERE id = $4 AND claimed_by = $5 AND {_ACTIVE}
            """,
            retry_count,
            _truncate(error),
            next_attempt_on_utc,
            message_id,
            worker_id
        )
        return affected_rows(status) == 1

    async def dead_letter(
        self,
        message_id: UUID,
        worker_id: str,
        retry_count: int,
        error: str,
        now: datetime
    ) -> bool:
        status = await self.db.execute(
            f"""
            UPDATE outbox_messages
            SET retry_count = $1, error = $2, dead_lettered_on_utc = $3, claimed_by = NULL
            WHERE id = $4 AND claimed_by = $5 AND {_ACTIVE}
            """,
            retry_count,
            _truncate(error),
            now,
            message_id,
            worker_id
        )
        return affected_rows(status) == 1

    # Dead-letter administration

    async def count_dead_letters(self) -> int:
        count = await self.db.fetchval(
            "SELECT COUNT(*) AS count FROM outbox_messages WHERE dead_lettered_on_utc IS NOT NULL"
        )
        return int(count or 0)

    async def list_dead_letters(self, offset: int, limit: int) -> List[DeadLetterItem]:
        rows = await self.db.fetch(
            """
            SELECT id, occurred_on_utc, event_type, retry_count, dead_lettered_on_utc, error
            FROM outbox_messages
            WHERE dead_lettered_on_utc IS NOT NULL
            ORDER BY dead_lettered_on_utc DESC, occurred_on_utc DESC
            LIMIT $1 OFFSET $2
            """,
            limit,
            offset
        )
        return [DeadLetterItem(**row) for row in rows]

    async def find_dead_letters(
        self,
        limit: int,
        event_type_contains: Optional[str] = None,
        dead_lettered_from: Optional[datetime] = None,
        dead_lettered_to: Optional[datetime] = None
    ) -> List[UUID]:
        """Ids of matching dead letters, oldest dead letter first."""
        conditions = ["dead_lettered_on_utc IS NOT NULL"]
        args: List[Any] = []

        if event_type_contains:
            args.append(event_type_contains)
            conditions.append(self._contains("event_type", len(args)))
        if dead_lettered_from is not None:
            args.append(dead_lettered_from)
            conditions.append(f"dead_lettered_on_utc >= ${len(args)}")
        if dead_lettered_to is not None:
            args.append(dead_lettered_to)
            conditions.append(f"dead_lettered_on_utc <= ${len(args)}")

        args.append(limit)
        rows = await self.db.fetch(
            f"""
            SELECT id FROM outbox_messages
            WHERE {" AND ".join(conditions)}
            ORDER BY dead_lettered_on_utc ASC, occurred_on_utc ASC
            LIMIT ${len(args)}
            """,
            *args
        )
        return [row["id"] for row in rows]

    async def reset(self, message_id: UUID, now: datetime) -> bool:
        """Move a dead letter back into the active pipeline, due now."""
        status = await self.db.execute(
            """
            UPDATE outbox_messages
            SET retry_count = 0,
                dead_lettered_on_utc = NULL,
                processed_on_utc = NULL,
                error = NULL,
                claimed_by = NULL,
                next_attempt_on_utc = $1
            WHERE id = $2 AND dead_lettered_on_utc IS NOT NULL
            """,
            now,
            message_id
        )
        return affected_rows(status) == 1

    # Reporting

    async def stats(self) -> Dict[str, Any]:
        """Counts per state, dead letters per event type, oldest entries."""
        counts = await self.db.fetchrow(
            f"""
            SELECT
                SUM(CASE WHEN {_ACTIVE} THEN 1 ELSE 0 END) AS active,
                SUM(CASE WHEN processed_on_utc IS NOT NULL THEN 1 ELSE 0 END) AS processed,
                SUM(CASE WHEN dead_lettered_on_utc IS NOT NULL THEN 1 ELSE 0 END) AS dead_lettered
            FROM outbox_messages
            """
        ) or {}

        oldest_pending = await self.db.fetchval(
            f"""
            SELECT occurred_on_utc FROM outbox_messages
            WHERE {_ACTIVE}
            ORDER BY occurred_on_utc ASC
            LIMIT 1
            """
        )

        oldest_dead_letter = await self.db.fetchval(
            """
            SELECT dead_lettered_on_utc FROM outbox_messages
            WHERE dead_lettered_on_utc IS NOT NULL
            ORDER BY dead_lettered_on_utc ASC
            LIMIT 1
            """
        )

        by_type = await self.db.fetch(
            """
            SELECT event_type, COUNT(*) AS count
            FROM outbox_messages
            WHERE dead_lettered_on_utc IS NOT NULL
            GROUP BY event_type
            ORDER BY count DESC, event_type ASC
            """
        )

        return {
            MessageState.ACTIVE.value: int(counts.get("active") or 0),
            MessageState.PROCESSED.value: int(counts.get("processed") or 0),
            MessageState.DEAD_LETTERED.value: int(counts.get("dead_lettered") or 0),
            "oldest_pending": oldest_pending,
            "oldest_dead_letter": oldest_dead_letter,
            "dead_letters_by_event_type": {row["event_type"]: int(row["count"]) for row in by_type},
        }

    def _contains(self, column: str, position: int) -> str:
        # Case-sensitive substring match without LIKE wildcards
        if self.db.backend == DatabaseBackend.POSTGRESQL:
            return f"strpos({column}, ${position}) > 0"
        return f"instr({column}, ${position}) > 0"
