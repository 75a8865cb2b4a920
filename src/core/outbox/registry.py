from __future__ import annotations

from typing import Awaitable, Callable, Dict, List

from .errors import PermanentFailure
from .serialization import base_event_type

# Returning means the side effect succeeded; raising means it failed.
OutboxHandler = Callable[[str, bytes], Awaitable[None]]


class HandlerRegistry:
    """
    Maps event types to the handlers that perform their side effects.

    Registrations may use a versioned type ("MissionUpdated|v2") to pin a
    handler to one payload version, or the base name ("MissionUpdated") to
    accept every version. Exact matches win.
    """

    def __init__(self):
        self._handlers: Dict[str, OutboxHandler] = {}

    def register(self, event_type: str, handler: OutboxHandler) -> None:
        et = (event_type or "").strip()
        if not et:
            raise ValueError("handler_missing_event_type")
        if et in self._handlers:
            raise ValueError(f"duplicate_handler_for_event_type:{et}")
        self._handlers[et] = handler

    def handler(self, event_type: str) -> Callable[[OutboxHandler], OutboxHandler]:
        """Decorator form of register()."""

        def decorator(func: OutboxHandler) -> OutboxHandler:
            self.register(event_type, func)
            return func

        return decorator

    def resolve(self, event_type: str) -> OutboxHandler:
        et = (event_type or "").strip()
        direct = self._handlers.get(et)
        if direct is not None:
            return direct
        fallback = self._handlers.get(base_event_type(et))
        if fallback is not None:
            return fallback
        raise PermanentFailure(f"No handler registered for event type '{event_type}'")

    def event_types(self) -> List[str]:
        return sorted(self._handlers)

    def __contains__(self, event_type: str) -> bool:
        try:
            self.resolve(event_type)
        except PermanentFailure:
            return False
        return True

    def __len__(self) -> int:
        return len(self._handlers)
