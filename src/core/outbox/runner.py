"""
Outbox Processor Runner

Standalone entry point that runs the outbox dispatcher as a background
service, separate from the API.

Usage:
    python -m src.core.outbox.runner

Environment Variables:
    DATABASE_BACKEND: sqlite or postgresql (default: sqlite)
    DATABASE_URL: PostgreSQL connection string (required for postgresql)
    OUTBOX_WORKERS, OUTBOX_BATCH_SIZE, OUTBOX_POLL_INTERVAL,
    OUTBOX_MAX_RETRIES, ...: see src.core.outbox.config
    LOG_LEVEL: Logging level (default: INFO)
    LOG_STRUCTURED: JSON logs (default: true)
"""

import os
import sys
import signal
import asyncio
import logging
from typing import List, Optional

from ..database.adapter import DatabaseAdapter, DatabaseBackend, close_database, get_database
from ..notifications import LoggingNotificationOrchestrator, build_notification_registry
from ..observability import configure_logging, init_metrics, init_tracing
from .config import OutboxSettings
from .processor import OutboxProcessor, start_outbox_processor, stop_outbox_processor
from .registry import HandlerRegistry

logger = logging.getLogger(__name__)


class OutboxRunner:
    """
    Manages the outbox processor lifecycle with graceful shutdown.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        db: Optional[DatabaseAdapter] = None,
        settings: Optional[OutboxSettings] = None
    ):
        self.registry = registry
        self.db = db
        self.settings = settings or OutboxSettings()
        self.processors: List[OutboxProcessor] = []
        self._shutdown_event = asyncio.Event()
        self._shutdown_requested = False

    def _setup_signal_handlers(self):
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_shutdown_signal, sig)

    def _handle_shutdown_signal(self, sig: signal.Signals):
        """Handle shutdown signal."""
        if self._shutdown_requested:
            logger.warning(f"Received {sig.name} again, forcing exit")
            sys.exit(1)

        logger.info(f"Received {sig.name}, finishing in-flight batches before shutdown")
        self._shutdown_requested = True
        self._shutdown_event.set()

    def request_shutdown(self):
        self._shutdown_requested = True
        self._shutdown_event.set()

    async def run(self, install_signal_handlers: bool = True):
        """Run the outbox processors until shutdown is requested."""
        logger.info("Starting Outbox Processor Runner")
        logger.info(f"  Workers: {self.settings.workers}")
        logger.info(f"  Poll interval: {self.settings.poll_interval}s")
        logger.info(f"  Batch size: {self.settings.batch_size}")
        logger.info(f"  Max retries: {self.settings.max_retries}")
        logger.info(f"  Handlers: {', '.join(self.registry.event_types()) or '(none)'}")

        if install_signal_handlers:
            self._setup_signal_handlers()

        try:
            self.processors = await start_outbox_processor(
                self.registry, db=self.db, settings=self.settings
            )
            logger.info("Outbox Processor is running")

            await self._shutdown_event.wait()

        except Exception as e:
            logger.error(f"Outbox Processor error: {e}", exc_info=True)
            raise
        finally:
            logger.info("Stopping Outbox Processor")
            await stop_outbox_processor()
            self.processors = []
            logger.info("Outbox Processor stopped")

    async def health_check(self) -> dict:
        """Return health status for monitoring."""
        running = bool(self.processors) and all(p.is_running for p in self.processors)
        return {
            "status": "healthy" if running else "unhealthy",
            "running": running,
            "workers": [p.worker_id for p in self.processors],
            "shutdown_requested": self._shutdown_requested
        }


async def main():
    """Main entry point."""
    configure_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        structured=os.getenv("LOG_STRUCTURED", "true").lower() == "true",
        service_name="bud-outbox-runner"
    )
    otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    init_tracing(service_name="bud-outbox-runner", otlp_endpoint=otlp_endpoint)
    init_metrics(service_name="bud-outbox-runner", otlp_endpoint=otlp_endpoint)

    if os.getenv("DATABASE_BACKEND", "sqlite").lower() == DatabaseBackend.POSTGRESQL.value \
            and not os.getenv("DATABASE_URL"):
        logger.error("DATABASE_URL environment variable is required")
        sys.exit(1)

    db = await get_database()
    registry = build_notification_registry(LoggingNotificationOrchestrator())

    runner = OutboxRunner(registry, db=db)
    try:
        await runner.run()
    finally:
        await close_database()


if __name__ == "__main__":
    asyncio.run(main())
