"""govsync database layer: Base, engine, session factory, errors."""

from govsync.db.base import Base
from govsync.db.engine import create_engine, resolve_database_url
from govsync.db.exceptions import ConfigurationError, DatabaseError, LockTimeoutError
from govsync.db.session import create_session_factory

__all__ = [
    "Base",
    "ConfigurationError",
    "DatabaseError",
    "LockTimeoutError",
    "create_engine",
    "create_session_factory",
    "resolve_database_url",
]
