"""
Outbox Processor

Background worker that polls the outbox, claims due messages, runs the
handler registered for each event type and records the outcome with
retry/backoff and dead-lettering.
"""

import os
import asyncio
import logging
import socket
import time
from datetime import timedelta
from typing import Optional, List
from uuid import uuid4

from ..database.adapter import DatabaseAdapter, get_database
from ..observability.metrics import record_counter, record_histogram
from ..observability.tracing import create_span
from .config import OutboxSettings
from .errors import PermanentFailure
from .models import OutboxMessage, Clock, _utcnow
from .policy import RetryPolicy
from .registry import HandlerRegistry
from .store import OutboxStore

logger = logging.getLogger(__name__)


def _default_worker_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid4().hex[:8]}"


def _describe(error: BaseException) -> str:
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__


class OutboxProcessor:
    """
    Processes outbox messages and delivers them to their handlers.

    Features:
    - Polls for active messages whose next attempt is due, oldest first
    - Claims each message with a conditional update so concurrent
      workers never run the same message at the same time
    - Retries failed deliveries with exponential backoff
    - Dead-letters messages that exhaust their retries or have no handler
    - Stops cooperatively: the in-flight batch finishes, handlers are
      never cancelled mid-call
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        db: Optional[DatabaseAdapter] = None,
        policy: Optional[RetryPolicy] = None,
        batch_size: int = 100,
        poll_interval: float = 5.0,
        claim_timeout: float = 300.0,
        worker_id: Optional[str] = None,
        clock: Optional[Clock] = None
    ):
        self.registry = registry
        self.policy = policy or RetryPolicy()
        self.batch_size = max(1, batch_size)
        self.poll_interval = poll_interval if poll_interval > 0 else 5.0
        self.claim_timeout = timedelta(seconds=claim_timeout)
        self.worker_id = worker_id or _default_worker_id()
        self._db = db
        self._store: Optional[OutboxStore] = None
        self._clock = clock or _utcnow
        self._running = False
        self._stop_requested = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def _get_store(self) -> OutboxStore:
        if self._store is None:
            if self._db is None:
                self._db = await get_database()
            self._store = OutboxStore(self._db)
        return self._store

    async def start(self):
        """Start the processor."""
        if self._running:
            return

        self._running = True
        self._stop_requested.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"OutboxProcessor {self.worker_id} started")

    async def stop(self, timeout: Optional[float] = None):
        """
        Stop the processor after the in-flight batch.

        Args:
            timeout: Seconds to wait for the batch before cancelling the
                loop. None waits for as long as the batch takes.
        """
        self._stop_requested.set()
        if self._task:
            try:
                await asyncio.wait_for(asyncio.shield(self._task), timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"OutboxProcessor {self.worker_id} did not finish within {timeout}s, cancelling"
                )
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
            self._task = None
        self._running = False
        logger.info(f"OutboxProcessor {self.worker_id} stopped")

    async def _run(self):
        """Main processing loop."""
        while not self._stop_requested.is_set():
            processed = 0
            try:
                processed = await self.process_batch()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Store unavailable or similar; nothing was recorded for this cycle
                logger.error(f"OutboxProcessor error: {e}", exc_info=True)

            if self._stop_requested.is_set():
                break
            if processed >= self.batch_size:
                # Full batch, more work is likely waiting
                continue

            try:
                await asyncio.wait_for(self._stop_requested.wait(), self.poll_interval)
            except asyncio.TimeoutError:
                pass

        self._running = False

    async def process_batch(self) -> int:
        """
        Run one poll-claim-process-update cycle.

        Returns:
            Number of messages whose outcome was recorded

        Raises:
            Any store error. Handler errors never escape.
        """
        store = await self._get_store()

        messages = await store.fetch_due(self._clock(), self.batch_size)
        if not messages:
            return 0

        recorded = 0
        for message in messages:
            # Earlier handlers may have run for a while; the lease starts now
            claimed_at = self._clock()
            lease_until = claimed_at + self.claim_timeout
            if not await store.claim(message.id, self.worker_id, claimed_at, lease_until):
                record_counter("outbox_claim_conflicts_total")
                logger.debug(f"Outbox message {message.id} claimed by another worker, skipping")
                continue

            if await self._deliver(store, message):
                recorded += 1

        return recorded

    async def _deliver(self, store: OutboxStore, message: OutboxMessage) -> bool:
        """Deliver a single claimed message and record the outcome."""
        started = time.monotonic()
        attributes = {"event_type": message.event_type}

        try:
            handler = self.registry.resolve(message.event_type)
            with create_span("outbox.deliver", {
                "outbox.message_id": str(message.id),
                "outbox.event_type": message.event_type,
                "outbox.retry_count": message.retry_count,
            }):
                await handler(message.event_type, message.payload)
        except asyncio.CancelledError:
            raise
        except PermanentFailure as e:
            return await self._dead_letter(store, message, _describe(e))
        except Exception as e:
            return await self._record_failure(store, message, e)
        finally:
            record_histogram(
                "outbox_processing_duration_seconds",
                time.monotonic() - started,
                attributes
            )

        recorded = await store.mark_processed(message.id, self.worker_id, self._clock())
        if recorded:
            record_counter("outbox_processed_total", 1, attributes)
            logger.debug(f"Delivered outbox message {message.id}")
        else:
            logger.warning(
                f"Outbox message {message.id} delivered but its claim was lost; "
                f"another attempt may follow"
            )
        return recorded

    async def _record_failure(
        self,
        store: OutboxStore,
        message: OutboxMessage,
        error: Exception
    ) -> bool:
        retry_count = message.retry_count + 1
        now = self._clock()
        decision = self.policy.decide(retry_count, now)

        if decision.dead_letter:
            return await self._dead_letter(store, message, _describe(error), retry_count)

        recorded = await store.schedule_retry(
            message.id,
            self.worker_id,
            retry_count,
            _describe(error),
            decision.next_attempt_on_utc
        )
        if recorded:
            record_counter("outbox_failed_total", 1, {"event_type": message.event_type})
            logger.warning(
                f"Outbox message {message.id} failed (attempt {retry_count}), "
                f"retry at {decision.next_attempt_on_utc.isoformat()}: {error}"
            )
        return recorded

    async def _dead_letter(
        self,
        store: OutboxStore,
        message: OutboxMessage,
        error: str,
        retry_count: Optional[int] = None
    ) -> bool:
        retry_count = retry_count if retry_count is not None else message.retry_count + 1
        recorded = await store.dead_letter(
            message.id,
            self.worker_id,
            retry_count,
            error,
            self._clock()
        )
        if recorded:
            record_counter("outbox_dead_lettered_total", 1, {"event_type": message.event_type})
            logger.error(
                f"Outbox message {message.id} ({message.event_type}) moved to dead letter "
                f"after {retry_count} attempt(s): {error}"
            )
        return recorded


# Global processor instances
_processors: List[OutboxProcessor] = []


async def start_outbox_processor(
    registry: HandlerRegistry,
    db: Optional[DatabaseAdapter] = None,
    settings: Optional[OutboxSettings] = None,
    clock: Optional[Clock] = None
) -> List[OutboxProcessor]:
    """Start OUTBOX_WORKERS independent processor loops."""
    settings = settings or OutboxSettings()

    if not _processors:
        policy = RetryPolicy.from_settings(settings)
        for _ in range(settings.workers):
            _processors.append(OutboxProcessor(
                registry,
                db=db,
                policy=policy,
                batch_size=settings.batch_size,
                poll_interval=settings.poll_interval,
                claim_timeout=settings.claim_timeout,
                clock=clock
            ))

    for processor in _processors:
        await processor.start()
    return list(_processors)


async def stop_outbox_processor(timeout: Optional[float] = None):
    """Stop all global processors."""
    while _processors:
        processor = _processors.pop()
        await processor.stop(timeout)


def get_outbox_processors() -> List[OutboxProcessor]:
    """Get the running global processor instances."""
    return list(_processors)
