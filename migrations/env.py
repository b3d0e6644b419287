"""Alembic environment for the execution_grants and schedule_runs tables."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from govsync.db import Base, resolve_database_url
from govsync.governance.grants import ExecutionGrantORM  # noqa: F401
from govsync.runtime.runs import ScheduleRunORM  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def migration_url() -> str:
    """Same URL the stores use, on the psycopg2 driver Alembic runs with."""
    url = resolve_database_url(config.get_main_option("sqlalchemy.url") or None)
    return url.replace("postgresql+asyncpg://", "postgresql+psycopg2://", 1)


if context.is_offline_mode():
    context.configure(
        url=migration_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    engine = create_engine(migration_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()
