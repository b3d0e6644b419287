"""Async engine construction for the grant and run stores."""

import os

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from govsync.db.exceptions import ConfigurationError

DATABASE_URL_ENV = "GOVSYNC_DATABASE_URL"
_ASYNC_SCHEME = "postgresql+asyncpg://"


def _normalize_url(url: str) -> str:
    """Rewrite plain postgresql:// URLs onto the asyncpg driver."""
    value = url.strip()
    if value.startswith(_ASYNC_SCHEME):
        return value
    if value.startswith("postgresql://"):
        return _ASYNC_SCHEME + value[len("postgresql://") :]
    raise ConfigurationError(
        "Database URL must be PostgreSQL (postgresql:// or postgresql+asyncpg://)."
    )


def resolve_database_url(database_url: str | None = None) -> str:
    """Explicit URL first, then GOVSYNC_DATABASE_URL."""
    if database_url:
        return _normalize_url(database_url)
    url = os.environ.get(DATABASE_URL_ENV, "").strip()
    if not url:
        raise ConfigurationError(
            f"Database URL not set. Set {DATABASE_URL_ENV} or database.url in govsync.yaml."
        )
    return _normalize_url(url)


def create_engine(
    database_url: str | None = None,
    *,
    pool_size: int = 5,
    max_overflow: int = 5,
    pool_timeout: float = 30.0,
    pool_recycle: int = 1800,
    pool_pre_ping: bool = True,
    echo: bool = False,
) -> AsyncEngine:
    """Create the async engine shared by one sync pass or worker process.

    Raises:
        ConfigurationError: URL missing or not PostgreSQL.
    """
    return create_async_engine(
        resolve_database_url(database_url),
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
        echo=echo,
    )
