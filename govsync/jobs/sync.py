"""Deploy-time governance schedule sync.

Wires configuration, the Temporal control plane, the grant store and the
single-writer lock into one reconciliation pass.
"""

from __future__ import annotations

import logging

from govsync.config.models import GovSyncConfig
from govsync.db import create_engine, create_session_factory
from govsync.governance.grants import InMemoryGrantStore, SqlAlchemyGrantStore
from govsync.governance.lock import AdvisoryLock, LocalLock
from govsync.integrations.temporal import TemporalClient
from govsync.scheduling.models import ReconciliationAction, ReconciliationOutcome, SyncRequest
from govsync.scheduling.ports import GrantStorePort, ScheduleControlPort
from govsync.scheduling.reconciler import Reconciler

logger = logging.getLogger(__name__)


async def sync_once(
    request: SyncRequest,
    control: ScheduleControlPort,
    grants: GrantStorePort,
    lock: AdvisoryLock | LocalLock,
    *,
    timeout_seconds: float = 30.0,
) -> ReconciliationOutcome:
    """Run one pass under the lock; a busy lock skips the pass with an empty outcome."""
    if not request.enabled:
        logger.info("governance_sync_skipped reason=disabled")
        return ReconciliationOutcome(ran=False)
    async with lock.hold() as acquired:
        if not acquired:
            logger.info("governance_sync_skipped reason=lock_held")
            return ReconciliationOutcome(ran=False)
        reconciler = Reconciler(control, grants, timeout_seconds=timeout_seconds)
        return await reconciler.run(request)


async def plan_once(
    request: SyncRequest,
    control: ScheduleControlPort,
    *,
    timeout_seconds: float = 30.0,
) -> list[ReconciliationAction]:
    """List observed schedules and classify them without mutating anything."""
    reconciler = Reconciler(control, InMemoryGrantStore(), timeout_seconds=timeout_seconds)
    observed = await reconciler.observe(request)
    return reconciler.plan(request, observed)


async def run_sync_job(config: GovSyncConfig) -> ReconciliationOutcome:
    """Production entry point used by ``govsync sync``.

    Raises:
        ConfigurationError: desired schedules are invalid.
        GrantProvisionError: the execution grant could not be ensured.
        ScheduleControlUnavailableError: Temporal could not be reached.
    """
    request = config.governance.to_desired()
    if not request.enabled:
        logger.info("governance_sync_skipped reason=disabled")
        return ReconciliationOutcome(ran=False)

    db = config.database
    engine = create_engine(
        db.url,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        echo=db.echo,
    )
    temporal = TemporalClient(config.temporal)
    timeout = config.governance.action_timeout_seconds
    try:
        await temporal.connect()
        grants = SqlAlchemyGrantStore(create_session_factory(engine))
        outcome = await sync_once(
            request,
            temporal.schedule_control(),
            grants,
            AdvisoryLock(engine, timeout_seconds=timeout),
            timeout_seconds=timeout,
        )
    finally:
        temporal.disconnect()
        await engine.dispose()
    logger.info("governance_sync_finished ran=%s summary=%s", outcome.ran, outcome.summary())
    return outcome


async def run_plan_job(config: GovSyncConfig) -> list[ReconciliationAction]:
    request = config.governance.to_desired()
    temporal = TemporalClient(config.temporal)
    try:
        await temporal.connect()
        return await plan_once(
            request,
            temporal.schedule_control(),
            timeout_seconds=config.governance.action_timeout_seconds,
        )
    finally:
        temporal.disconnect()
