#!/usr/bin/env python3
"""
Bud Outbox API
==============

FastAPI app exposing dead-letter administration and health endpoints.
Runs the outbox dispatcher in-process unless OUTBOX_PROCESSOR_ENABLED=false.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..shared.middleware import register_error_handlers, TraceMiddleware, TracingMiddleware
from ..shared.routers.health import router as health_router
from .routers.dead_letters import router as dead_letters_router
from ...core.database.adapter import DatabaseBackend, close_database, get_database
from ...core.notifications import LoggingNotificationOrchestrator, build_notification_registry
from ...core.observability import configure_logging, init_metrics, init_tracing
from ...core.outbox.lifecycle import outbox_lifespan
from ...core.outbox.schema import create_outbox_schema

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "9300"))

logger = logging.getLogger(__name__)


def init_observability():
    configure_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        structured=os.getenv("LOG_STRUCTURED", "true").lower() == "true",
        service_name="bud-outbox-api"
    )
    otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    init_tracing(service_name="bud-outbox-api", otlp_endpoint=otlp_endpoint)
    init_metrics(service_name="bud-outbox-api", otlp_endpoint=otlp_endpoint)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    init_observability()

    db = await get_database()
    if db.backend == DatabaseBackend.SQLITE:
        # PostgreSQL schemas are managed by db/migrate.py
        await create_outbox_schema(db)

    registry = build_notification_registry(LoggingNotificationOrchestrator())

    try:
        async with outbox_lifespan(registry, db=db):
            yield
    finally:
        await close_database()
        logger.info("Database connection closed")


app = FastAPI(
    title="Bud Outbox API",
    description="Dead-letter administration for the transactional outbox",
    version="1.0.0",
    lifespan=lifespan
)

register_error_handlers(app)
app.add_middleware(TraceMiddleware)
app.add_middleware(TracingMiddleware)

app.include_router(health_router)
app.include_router(dead_letters_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.api.outbox.main:app",
        host=API_HOST,
        port=API_PORT
    )
