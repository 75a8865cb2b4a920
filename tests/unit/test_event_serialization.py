"""
Tests for versioned event serialization.
"""

import json
import pytest
from uuid import uuid4

from pydantic import BaseModel

from src.core.outbox.errors import OutboxValidationError, PermanentFailure
from src.core.outbox.serialization import (
    EventSerializer,
    base_event_type,
    split_event_type,
    versioned_event_type,
)
from src.core.outbox.writer import encode_payload
from src.core.notifications import MissionUpdated, build_event_serializer


class TestEventTypeNames:
    """Test the Name|vN convention."""

    @pytest.mark.parametrize("event_type,expected", [
        ("MissionUpdated|v1", ("MissionUpdated", 1)),
        ("MissionUpdated|v12", ("MissionUpdated", 12)),
        ("MissionUpdated", ("MissionUpdated", 1)),
        ("Weird|vX", ("Weird|vX", 1)),
    ])
    def test_split(self, event_type, expected):
        assert split_event_type(event_type) == expected

    def test_base_and_versioned(self):
        assert base_event_type("MetricCheckinCreated|v3") == "MetricCheckinCreated"
        assert versioned_event_type("MissionCreated", 2) == "MissionCreated|v2"


class TestEventSerializer:
    """Test serialize/deserialize behaviour."""

    def test_serialize_uses_versioned_type_and_json(self):
        serializer = build_event_serializer()
        mission_id, organization_id = uuid4(), uuid4()

        event_type, payload = serializer.serialize(
            MissionUpdated(mission_id=mission_id, organization_id=organization_id)
        )

        assert event_type == "MissionUpdated|v1"
        assert json.loads(payload) == {
            "mission_id": str(mission_id),
            "organization_id": str(organization_id),
        }

    def test_older_version_still_decodes(self):
        """Payloads tagged with another version route to the same model."""
        serializer = build_event_serializer()
        mission_id, organization_id = uuid4(), uuid4()
        payload = json.dumps({
            "mission_id": str(mission_id),
            "organization_id": str(organization_id),
        }).encode()

        event = serializer.deserialize("MissionUpdated|v0", payload)

        assert isinstance(event, MissionUpdated)
        assert event.mission_id == mission_id

    def test_unknown_type_is_permanent_failure(self):
        with pytest.raises(PermanentFailure, match="Unknown event type"):
            build_event_serializer().deserialize("MissionArchived|v1", b"{}")

    @pytest.mark.parametrize("payload", [b"not json", b'{"mission_id": "x"}', b"\xff\xfe"])
    def test_bad_payload_is_permanent_failure(self, payload):
        with pytest.raises(PermanentFailure, match="Invalid payload"):
            build_event_serializer().deserialize("MissionUpdated|v1", payload)

    def test_unregistered_model_cannot_serialize(self):
        class Stray(BaseModel):
            value: int

        with pytest.raises(ValueError, match="not registered"):
            EventSerializer().serialize(Stray(value=1))

    def test_registration_rules(self):
        class Thing(BaseModel):
            value: int

        class OtherThing(BaseModel):
            value: int

        serializer = EventSerializer()
        serializer.register(Thing, version=2)
        assert serializer.event_type_for(Thing) == "Thing|v2"

        with pytest.raises(ValueError, match="duplicate event name"):
            serializer.register(OtherThing, "Thing")
        with pytest.raises(ValueError, match="must not contain"):
            serializer.register(OtherThing, "Other|v1")
        with pytest.raises(ValueError, match="version"):
            serializer.register(OtherThing, version=0)


class TestEncodePayload:
    """Test raw payload encoding for the writer."""

    def test_encode_payload(self):
        assert encode_payload(b"\x00\x01") == b"\x00\x01"
        assert encode_payload("text") == b"text"
        assert json.loads(encode_payload({"a": 1})) == {"a": 1}

    def test_encode_payload_rejects_other_types(self):
        with pytest.raises(OutboxValidationError):
            encode_payload(42)
