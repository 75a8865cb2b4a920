"""
Bud Outbox Core Package

Database access, the transactional outbox and its notification consumers.
"""

from . import database
from . import outbox

__all__ = ["database", "outbox"]
