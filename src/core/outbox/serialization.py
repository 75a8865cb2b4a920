"""
Outbox Event Serialization

Turns domain event models into (event_type, payload) pairs for the
outbox and back.

Event types carry a version suffix ("MissionUpdated|v1") so a payload
written by an older producer can still be routed and decoded after the
event model evolves. Types without a suffix are read as version 1.
"""

import json
import re
from typing import Dict, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from .errors import PermanentFailure

_VERSION_SUFFIX = re.compile(r"\|v(\d+)$")


def split_event_type(event_type: str) -> Tuple[str, int]:
    """
    Split an event type into its base name and version.

    "MissionUpdated|v3" -> ("MissionUpdated", 3)
    "MissionUpdated"    -> ("MissionUpdated", 1)
    """
    match = _VERSION_SUFFIX.search(event_type)
    if match is None:
        return event_type, 1
    return event_type[:match.start()], int(match.group(1))


def base_event_type(event_type: str) -> str:
    """Strip the version suffix from an event type."""
    return split_event_type(event_type)[0]


def versioned_event_type(name: str, version: int = 1) -> str:
    return f"{name}|v{version}"


class EventSerializer:
    """
    JSON serializer for registered event models.

    Usage:
        serializer = EventSerializer()
        serializer.register(MissionUpdated, "MissionUpdated")

        event_type, payload = serializer.serialize(MissionUpdated(mission_id=...))
        event = serializer.deserialize(event_type, payload)
    """

    def __init__(self):
        self._by_name: Dict[str, Type[BaseModel]] = {}
        self._names: Dict[Type[BaseModel], Tuple[str, int]] = {}

    def register(
        self,
        model: Type[BaseModel],
        name: Optional[str] = None,
        version: int = 1
    ) -> Type[BaseModel]:
        name = (name or model.__name__).strip()
        if not name:
            raise ValueError("event name must not be blank")
        if "|" in name:
            raise ValueError(f"event name must not contain '|': {name}")
        if version < 1:
            raise ValueError("event version must be >= 1")
        if name in self._by_name and self._by_name[name] is not model:
            raise ValueError(f"duplicate event name: {name}")

        self._by_name[name] = model
        self._names[model] = (name, version)
        return model

    def event_type_for(self, model: Type[BaseModel]) -> str:
        try:
            name, version = self._names[model]
        except KeyError:
            raise ValueError(f"event model not registered: {model.__name__}") from None
        return versioned_event_type(name, version)

    def serialize(self, event: BaseModel) -> Tuple[str, bytes]:
        event_type = self.event_type_for(type(event))
        payload = event.model_dump_json().encode("utf-8")
        return event_type, payload

    def deserialize(self, event_type: str, payload: bytes) -> BaseModel:
        name, _ = split_event_type(event_type)
        model = self._by_name.get(name)
        if model is None:
            raise PermanentFailure(f"Unknown event type '{event_type}'")

        try:
            return model.model_validate(json.loads(payload))
        except (ValueError, ValidationError) as e:
            raise PermanentFailure(f"Invalid payload for '{event_type}': {e}") from e
