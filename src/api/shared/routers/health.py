"""
Health Check Endpoints

Provides health, readiness, liveness and outbox endpoints for container
orchestration and alerting.
"""

from datetime import datetime, timezone
from typing import Dict, Any
import logging
import os

from fastapi import APIRouter, Depends, Response

from ....core.database.adapter import DatabaseAdapter, get_database
from ....core.outbox.config import OutboxSettings
from ....core.outbox.health import HealthStatus, OutboxHealthCheck, OutboxHealthReport
from ....core.outbox.processor import get_outbox_processors

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def get_outbox_health_check() -> OutboxHealthCheck:
    """Outbox health check bound to the global database and env thresholds."""
    db = await get_database()
    return OutboxHealthCheck.from_settings(db, OutboxSettings())


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check.

    Returns 200 if the service is running.
    """
    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "version": os.getenv("APP_VERSION", "1.0.0")
    }


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness probe.

    Returns 200 if the process is alive.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(
    response: Response,
    db: DatabaseAdapter = Depends(get_database)
) -> Dict[str, Any]:
    """
    Kubernetes readiness probe.

    Returns 200 if the database answers. Dispatcher workers are reported
    but do not affect readiness, since they may run in a separate process.
    """
    checks = {}
    all_healthy = True

    try:
        await db.fetchval("SELECT 1")
        checks["database"] = "healthy"
    except Exception as e:
        logger.warning(f"Readiness database check failed: {e}")
        checks["database"] = f"unhealthy: {str(e)[:100]}"
        all_healthy = False

    processors = get_outbox_processors()
    if not processors:
        checks["outbox_processor"] = "not running"
    else:
        running = sum(1 for p in processors if p.is_running)
        checks["outbox_processor"] = f"running ({running}/{len(processors)} workers)"

    if not all_healthy:
        response.status_code = 503

    return {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks,
        "timestamp": _timestamp()
    }


@router.get("/health/outbox", response_model=OutboxHealthReport)
async def outbox_health(
    response: Response,
    health: OutboxHealthCheck = Depends(get_outbox_health_check)
) -> OutboxHealthReport:
    """
    Outbox health.

    503 when dead letters exceed the configured limit; degraded (old
    pending messages) still answers 200.
    """
    report = await health.check()
    if report.status == HealthStatus.UNHEALTHY:
        response.status_code = 503
    return report
