"""Outbox API routers."""

from .dead_letters import router as dead_letters_router

__all__ = ["dead_letters_router"]
