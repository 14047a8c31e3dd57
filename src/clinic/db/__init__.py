"""Database package - Session management and declarative base."""
from .session import (
    Base,
    DatabaseManager,
    DbSession,
    atomic,
    close_db,
    get_db,
    get_db_manager,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "DbSession",
    "atomic",
    "close_db",
    "get_db",
    "get_db_manager",
]
