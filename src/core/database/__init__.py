"""
Database abstraction layer supporting SQLite and PostgreSQL.

This module provides a unified interface for database operations that works
with both SQLite (local development and tests) and PostgreSQL (production).

Usage:
    from src.core.database import get_database, DatabaseAdapter

    # Get the global database instance
    db = await get_database()

    # Execute queries (works with both backends)
    rows = await db.fetch("SELECT * FROM outbox_messages WHERE id = $1", message_id)

    # Unit of work
    async with db.transaction() as tx:
        await tx.execute("UPDATE missions SET name = $1 WHERE id = $2", name, mission_id)
"""

from .adapter import (
    DatabaseAdapter,
    DatabaseBackend,
    DatabaseConfig,
    Transaction,
    affected_rows,
    get_database,
    close_database,
)

__all__ = [
    "DatabaseAdapter",
    "DatabaseBackend",
    "DatabaseConfig",
    "Transaction",
    "affected_rows",
    "get_database",
    "close_database",
]
