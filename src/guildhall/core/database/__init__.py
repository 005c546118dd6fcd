"""
Persistence infrastructure: declarative base and the `DatabaseService`
engine/session manager.
"""

from guildhall.core.database.base import Base, IdMixin, TimestampMixin
from guildhall.core.database.service import DatabaseService

__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    "DatabaseService",
]
