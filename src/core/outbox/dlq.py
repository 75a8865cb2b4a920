"""
Dead Letter Queue (DLQ) Administration

Inspects dead-lettered outbox messages and puts them back into the
active pipeline, one at a time or in filtered batches.
"""

import logging
from typing import Optional, Dict, Any
from uuid import UUID

from ..database.adapter import DatabaseAdapter, get_database
from ..observability.metrics import record_counter
from .errors import MessageNotFoundError, OutboxValidationError
from .models import Clock, DeadLetterFilter, DeadLetterPage, MessageState, _utcnow
from .store import OutboxStore

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
MAX_REPROCESS_ITEMS = 500


class DeadLetterAdministration:
    """
    Manages the Dead Letter Queue.

    Responsibilities:
    - List dead letters, most recently failed first
    - Reprocess a single dead letter
    - Reprocess dead letters in bulk by event type and time window
    - Report DLQ statistics
    """

    def __init__(self, db: DatabaseAdapter, clock: Optional[Clock] = None):
        self.store = OutboxStore(db)
        self._clock = clock or _utcnow

    async def list_dead_letters(self, page: int = 1, page_size: int = 20) -> DeadLetterPage:
        """
        Get a page of dead letters.

        Ordered by dead_lettered_on_utc descending, then occurred_on_utc
        descending.

        Raises:
            OutboxValidationError: page < 1 or page_size outside 1..100
        """
        if page < 1:
            raise OutboxValidationError("'page' must be greater than or equal to 1", field="page")
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise OutboxValidationError(
                f"'page_size' must be between 1 and {MAX_PAGE_SIZE}", field="page_size"
            )

        total = await self.store.count_dead_letters()
        items = await self.store.list_dead_letters(offset=(page - 1) * page_size, limit=page_size)

        return DeadLetterPage(items=items, total=total, page=page, page_size=page_size)

    async def reprocess(self, message_id: UUID, operator_id: Optional[str] = None) -> None:
        """
        Reset a dead letter so the dispatcher picks it up on its next cycle.

        Args:
            message_id: The outbox message ID
            operator_id: ID of operator performing the action

        Raises:
            MessageNotFoundError: The message does not exist
            OutboxValidationError: The message is not dead-lettered
        """
        message = await self.store.get(message_id)
        if message is None:
            raise MessageNotFoundError(message_id)

        if message.state != MessageState.DEAD_LETTERED:
            raise OutboxValidationError(
                f"Outbox message '{message_id}' is not dead-lettered (state: {message.state.value})",
                message_id=message_id,
                state=message.state.value
            )

        if not await self.store.reset(message_id, self._clock()):
            # Reset by a concurrent operator between the read and the update
            current = await self.store.get(message_id)
            state = current.state.value if current else "missing"
            raise OutboxValidationError(
                f"Outbox message '{message_id}' is no longer dead-lettered (state: {state})",
                message_id=message_id,
                state=state
            )

        record_counter("outbox_reprocessed_total", 1)
        logger.info(f"DLQ message {message_id} reset for reprocessing by {operator_id}")

    async def reprocess_many(
        self,
        criteria: DeadLetterFilter,
        operator_id: Optional[str] = None
    ) -> int:
        """
        Reset matching dead letters, oldest dead letter first.

        Args:
            criteria: Event type substring, dead-lettered time window, max_items
            operator_id: ID of operator performing the action

        Returns:
            Number of messages actually reset

        Raises:
            OutboxValidationError: max_items outside 1..500 or from > to
        """
        if criteria.max_items < 1 or criteria.max_items > MAX_REPROCESS_ITEMS:
            raise OutboxValidationError(
                f"'max_items' must be between 1 and {MAX_REPROCESS_ITEMS}", field="max_items"
            )

        if (
            criteria.dead_lettered_from_utc is not None
            and criteria.dead_lettered_to_utc is not None
            and criteria.dead_lettered_from_utc > criteria.dead_lettered_to_utc
        ):
            raise OutboxValidationError(
                "'dead_lettered_from_utc' must not be after 'dead_lettered_to_utc'",
                field="dead_lettered_from_utc"
            )

        event_type = (criteria.event_type or "").strip() or None

        message_ids = await self.store.find_dead_letters(
            limit=criteria.max_items,
            event_type_contains=event_type,
            dead_lettered_from=criteria.dead_lettered_from_utc,
            dead_lettered_to=criteria.dead_lettered_to_utc
        )

        now = self._clock()
        count = 0
        for message_id in message_ids:
            if await self.store.reset(message_id, now):
                count += 1

        if count:
            record_counter("outbox_reprocessed_total", count)
        logger.info(
            f"DLQ bulk reprocess: reset {count} of {len(message_ids)} matching messages "
            f"(event_type={event_type!r}) by {operator_id}"
        )

        return count

    async def get_stats(self) -> Dict[str, Any]:
        """Get DLQ statistics."""
        stats = await self.store.stats()
        oldest = stats["oldest_dead_letter"]

        return {
            "total_count": stats[MessageState.DEAD_LETTERED.value],
            "by_event_type": stats["dead_letters_by_event_type"],
            "oldest_entry": oldest.isoformat() if oldest else None
        }


# Convenience function
async def get_dead_letter_administration() -> DeadLetterAdministration:
    """Get a DeadLetterAdministration bound to the global database."""
    db = await get_database()
    return DeadLetterAdministration(db)
