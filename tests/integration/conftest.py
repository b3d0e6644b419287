"""PostgreSQL fixtures: migrate once, truncate per test."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from govsync.db import create_session_factory, resolve_database_url

ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture(scope="session")
def migrated(db_url: str) -> str:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")
    return db_url


@pytest_asyncio.fixture
async def db_engine(migrated: str) -> AsyncEngine:
    engine = create_async_engine(resolve_database_url(migrated), poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.execute(text("TRUNCATE execution_grants, schedule_runs"))
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine):
    return create_session_factory(db_engine)
