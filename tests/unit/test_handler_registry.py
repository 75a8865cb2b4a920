"""
Tests for handler registration and resolution.
"""

import re

import pytest

from src.core.outbox.errors import PermanentFailure
from src.core.outbox.registry import HandlerRegistry


async def noop(event_type: str, payload: bytes) -> None:
    return None


async def other(event_type: str, payload: bytes) -> None:
    return None


class TestRegister:
    """Test registration rules."""

    def test_register_and_resolve(self):
        registry = HandlerRegistry()
        registry.register("MissionUpdated|v1", noop)

        assert registry.resolve("MissionUpdated|v1") is noop
        assert len(registry) == 1

    def test_duplicate_registration_rejected(self):
        registry = HandlerRegistry()
        registry.register("MissionUpdated", noop)

        with pytest.raises(ValueError, match="duplicate_handler_for_event_type:MissionUpdated"):
            registry.register("MissionUpdated", other)

    def test_blank_event_type_rejected(self):
        with pytest.raises(ValueError, match="handler_missing_event_type"):
            HandlerRegistry().register("   ", noop)

    def test_decorator_registers(self):
        registry = HandlerRegistry()

        @registry.handler("MissionDeleted")
        async def on_deleted(event_type: str, payload: bytes) -> None:
            return None

        assert registry.resolve("MissionDeleted") is on_deleted
        assert registry.event_types() == ["MissionDeleted"]


class TestResolve:
    """Test lookup, version fallback and missing handlers."""

    def test_base_name_handles_every_version(self):
        registry = HandlerRegistry()
        registry.register("MissionUpdated", noop)

        assert registry.resolve("MissionUpdated|v1") is noop
        assert registry.resolve("MissionUpdated|v7") is noop

    def test_exact_version_wins_over_base_name(self):
        registry = HandlerRegistry()
        registry.register("MissionUpdated", noop)
        registry.register("MissionUpdated|v2", other)

        assert registry.resolve("MissionUpdated|v2") is other
        assert registry.resolve("MissionUpdated|v1") is noop

    def test_missing_handler_is_permanent_failure(self):
        registry = HandlerRegistry()

        with pytest.raises(PermanentFailure, match=re.escape("No handler registered for event type 'Unknown|v1'")):
            registry.resolve("Unknown|v1")

    def test_contains(self):
        registry = HandlerRegistry()
        registry.register("MissionCreated", noop)

        assert "MissionCreated|v1" in registry
        assert "MissionDeleted|v1" not in registry
