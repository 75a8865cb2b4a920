"""
Notification Event Models

Events written to the outbox by mission and metric check-in write paths.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from ..outbox.serialization import EventSerializer


class MissionCreated(BaseModel):
    mission_id: UUID
    organization_id: UUID


class MissionUpdated(BaseModel):
    mission_id: UUID
    organization_id: UUID


class MissionDeleted(BaseModel):
    mission_id: UUID
    organization_id: UUID


class MetricCheckinCreated(BaseModel):
    checkin_id: UUID
    metric_id: UUID
    organization_id: UUID
    # The collaborator who recorded the check-in is not notified about it
    exclude_collaborator_id: Optional[UUID] = None


def build_event_serializer() -> EventSerializer:
    """Serializer with every notification event registered at version 1."""
    serializer = EventSerializer()
    serializer.register(MissionCreated)
    serializer.register(MissionUpdated)
    serializer.register(MissionDeleted)
    serializer.register(MetricCheckinCreated)
    return serializer
