"""
Notification Handlers

One outbox handler per notification event. Each decodes the payload and
calls the matching NotificationOrchestrator method; any exception from
the orchestrator is a delivery failure and goes through retry/backoff.
"""

import logging
from typing import Awaitable, Callable, Optional, Protocol, Type
from uuid import UUID

from pydantic import BaseModel

from ..outbox.registry import HandlerRegistry, OutboxHandler
from ..outbox.serialization import EventSerializer
from .events import (
    MissionCreated,
    MissionUpdated,
    MissionDeleted,
    MetricCheckinCreated,
    build_event_serializer,
)

logger = logging.getLogger(__name__)


class NotificationOrchestrator(Protocol):
    """Resolves recipients and creates notification rows."""

    async def notify_mission_created(self, mission_id: UUID, organization_id: UUID) -> None: ...

    async def notify_mission_updated(self, mission_id: UUID, organization_id: UUID) -> None: ...

    async def notify_mission_deleted(self, mission_id: UUID, organization_id: UUID) -> None: ...

    async def notify_metric_checkin_created(
        self,
        checkin_id: UUID,
        metric_id: UUID,
        organization_id: UUID,
        exclude_collaborator_id: Optional[UUID]
    ) -> None: ...


class LoggingNotificationOrchestrator:
    """
    Orchestrator that only logs.

    Used by the standalone runner when no recipient resolver is wired in.
    """

    async def notify_mission_created(self, mission_id: UUID, organization_id: UUID) -> None:
        logger.info(f"Mission created: mission={mission_id} organization={organization_id}")

    async def notify_mission_updated(self, mission_id: UUID, organization_id: UUID) -> None:
        logger.info(f"Mission updated: mission={mission_id} organization={organization_id}")

    async def notify_mission_deleted(self, mission_id: UUID, organization_id: UUID) -> None:
        logger.info(f"Mission deleted: mission={mission_id} organization={organization_id}")

    async def notify_metric_checkin_created(
        self,
        checkin_id: UUID,
        metric_id: UUID,
        organization_id: UUID,
        exclude_collaborator_id: Optional[UUID]
    ) -> None:
        logger.info(
            f"Metric check-in created: checkin={checkin_id} metric={metric_id} "
            f"organization={organization_id}"
        )


def _handler_for(
    serializer: EventSerializer,
    model: Type[BaseModel],
    notify: Callable[[BaseModel], Awaitable[None]]
) -> OutboxHandler:
    async def handle(event_type: str, payload: bytes) -> None:
        event = serializer.deserialize(event_type, payload)
        if not isinstance(event, model):
            raise TypeError(f"Expected {model.__name__}, got {type(event).__name__}")
        await notify(event)

    handle.__name__ = f"handle_{model.__name__}"
    return handle


def register_notification_handlers(
    registry: HandlerRegistry,
    serializer: EventSerializer,
    orchestrator: NotificationOrchestrator
) -> HandlerRegistry:
    """Register the notification handlers under each event's base name."""
    registry.register("MissionCreated", _handler_for(
        serializer, MissionCreated,
        lambda e: orchestrator.notify_mission_created(e.mission_id, e.organization_id)
    ))
    registry.register("MissionUpdated", _handler_for(
        serializer, MissionUpdated,
        lambda e: orchestrator.notify_mission_updated(e.mission_id, e.organization_id)
    ))
    registry.register("MissionDeleted", _handler_for(
        serializer, MissionDeleted,
        lambda e: orchestrator.notify_mission_deleted(e.mission_id, e.organization_id)
    ))
    registry.register("MetricCheckinCreated", _handler_for(
        serializer, MetricCheckinCreated,
        lambda e: orchestrator.notify_metric_checkin_created(
            e.checkin_id, e.metric_id, e.organization_id, e.exclude_collaborator_id
        )
    ))
    return registry


def build_notification_registry(
    orchestrator: NotificationOrchestrator,
    serializer: Optional[EventSerializer] = None
) -> HandlerRegistry:
    """A new registry holding the notification handlers."""
    return register_notification_handlers(
        HandlerRegistry(),
        serializer or build_event_serializer(),
        orchestrator
    )
