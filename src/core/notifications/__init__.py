"""
Notification Fan-out

Outbox consumers for mission and metric check-in events. Deciding who
receives a notification is the orchestrator's job; these handlers only
decode the event and hand it over.
"""

from .events import (
    MissionCreated,
    MissionUpdated,
    MissionDeleted,
    MetricCheckinCreated,
    build_event_serializer,
)
from .handlers import (
    NotificationOrchestrator,
    LoggingNotificationOrchestrator,
    register_notification_handlers,
    build_notification_registry,
)

__all__ = [
    "MissionCreated",
    "MissionUpdated",
    "MissionDeleted",
    "MetricCheckinCreated",
    "build_event_serializer",
    "NotificationOrchestrator",
    "LoggingNotificationOrchestrator",
    "register_notification_handlers",
    "build_notification_registry",
]
