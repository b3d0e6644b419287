"""Long-running worker process for triggered governance runs."""

from __future__ import annotations

import logging

from govsync.config.models import GovSyncConfig
from govsync.db import create_engine, create_session_factory
from govsync.governance.grants import SqlAlchemyGrantStore
from govsync.integrations.temporal import TemporalClient
from govsync.runtime.activities import ScheduledRunActivities
from govsync.runtime.runs import SqlAlchemyRunStore
from govsync.runtime.worker import run_worker

logger = logging.getLogger(__name__)


def build_activities(config: GovSyncConfig, session_factory) -> ScheduledRunActivities:
    runtime = config.runtime
    return ScheduledRunActivities(
        SqlAlchemyGrantStore(session_factory),
        SqlAlchemyRunStore(session_factory),
        app_base_url=runtime.app_base_url,
        api_token=runtime.api_token.get_secret_value(),
        execute_timeout_seconds=runtime.execute_timeout_seconds,
    )


async def run_worker_job(config: GovSyncConfig) -> None:
    """Serve the scheduled-run task queue until cancelled."""
    db = config.database
    engine = create_engine(
        db.url,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        echo=db.echo,
    )
    temporal = TemporalClient(config.temporal)
    try:
        client = await temporal.connect()
        activities = build_activities(config, create_session_factory(engine))
        await run_worker(client, config.temporal.task_queue, activities)
    finally:
        temporal.disconnect()
        await engine.dispose()
