"""
Outbox Lifecycle Management

Integrates the outbox processor with the FastAPI application lifecycle.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from ..database.adapter import DatabaseAdapter
from .config import OutboxSettings
from .processor import start_outbox_processor, stop_outbox_processor
from .registry import HandlerRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def outbox_lifespan(
    registry: HandlerRegistry,
    db: Optional[DatabaseAdapter] = None,
    settings: Optional[OutboxSettings] = None
):
    """
    Lifespan context manager for the outbox processor.

    Usage in FastAPI:
        from src.core.outbox.lifecycle import outbox_lifespan

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with outbox_lifespan(registry):
                yield

        app = FastAPI(lifespan=lifespan)

    In deployments that run the dispatcher as its own container
    (python -m src.core.outbox.runner), set OUTBOX_PROCESSOR_ENABLED=false
    on the API instances.
    """
    settings = settings or OutboxSettings()

    if not settings.processor_enabled:
        logger.info("Outbox processor disabled: OUTBOX_PROCESSOR_ENABLED=false")
        yield []
        return

    logger.info(f"Starting outbox processor: {settings}")
    processors = await start_outbox_processor(registry, db=db, settings=settings)
    try:
        yield processors
    finally:
        logger.info("Stopping outbox processor...")
        await stop_outbox_processor()
