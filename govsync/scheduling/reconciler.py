"""Reconciliation driver: converge engine schedules toward configuration.

One pass, in order:

1. ensure the execution grant (fatal on failure)
2. list observed schedules under the namespace prefix (fatal on failure)
3. diff desired vs observed
4. apply each action through the control plane; a failing action is
   recorded against its identity and the pass continues

Running it twice with unchanged configuration yields only SKIPPED outcomes
on the second pass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable

from govsync.governance.provisioner import ensure_grant
from govsync.scheduling.diff import diff
from govsync.scheduling.errors import (
    ActionApplyError,
    ScheduleConflictError,
    ScheduleControlUnavailableError,
    ScheduleNotFoundError,
)
from govsync.scheduling.identity import derive_identities
from govsync.scheduling.models import (
    ActionKind,
    ActionOutcome,
    ExecutionGrant,
    ObservedSchedule,
    OutcomeKind,
    ReconciliationAction,
    ReconciliationOutcome,
    SchedulePolicy,
    ScheduledRunInput,
    SyncRequest,
)
from govsync.scheduling.policy import GOVERNANCE_POLICY, validate_desired, validate_policy
from govsync.scheduling.ports import GrantStorePort, ScheduleControlPort

logger = logging.getLogger(__name__)

PRUNE_NOTE = "paused by govsync: removed from configuration"
RESUME_NOTE = "resumed by govsync: present in configuration"


class SyncLogger:
    """Emits one key=value log line per pass event."""

    def log_start(self, request: SyncRequest) -> None:
        logger.info(
            "schedule_sync_start desired=%d namespace=%s principal_id=%s",
            len(request.schedules),
            request.namespace_prefix,
            request.principal_id,
        )

    def log_disabled(self) -> None:
        logger.info("schedule_sync_disabled reason=governance.enabled is false")

    def log_outcome(self, outcome: ActionOutcome) -> None:
        if outcome.outcome is OutcomeKind.ERROR:
            logger.warning(
                "schedule_sync_action_failed identity=%s action=%s error=%s",
                outcome.identity,
                outcome.action.value,
                outcome.detail,
            )
            return
        logger.info(
            "schedule_sync_%s identity=%s detail=%s",
            outcome.outcome.value,
            outcome.identity,
            outcome.detail,
        )

    def log_complete(self, result: ReconciliationOutcome) -> None:
        summary = result.summary()
        logger.info(
            "schedule_sync_complete created=%d resumed=%d skipped=%d pruned=%d errors=%d",
            summary["created"],
            summary["resumed"],
            summary["skipped"],
            summary["pruned"],
            summary["error"],
        )


def build_trigger_args(
    request: SyncRequest,
    action: ReconciliationAction,
    grant: ExecutionGrant,
) -> ScheduledRunInput:
    """Workflow argument for a created schedule; the entrypoint is passed through opaquely."""
    assert action.desired is not None
    return ScheduledRunInput(
        schedule_id=action.identity,
        graph_id=request.graph_id,
        execution_grant_id=grant.id,
        input={"message": action.desired.entrypoint, "model": request.model},
    )


class Reconciler:
    """Applies one reconciliation pass against the given ports."""

    def __init__(
        self,
        control: ScheduleControlPort,
        grants: GrantStorePort,
        *,
        timeout_seconds: float = 30.0,
        policy: SchedulePolicy = GOVERNANCE_POLICY,
        sync_logger: SyncLogger | None = None,
    ) -> None:
        if isinstance(timeout_seconds, bool) or not isinstance(timeout_seconds, int | float) or timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be a positive number")
        self._control = control
        self._grants = grants
        self._timeout = float(timeout_seconds)
        self._policy = validate_policy(policy)
        self._log = sync_logger or SyncLogger()

    def plan(
        self,
        request: SyncRequest,
        observed: list[ObservedSchedule],
    ) -> list[ReconciliationAction]:
        """Validate the request and classify without touching any port."""
        for entry in request.schedules:
            validate_desired(entry)
        return diff(request.schedules, observed, request.namespace_prefix)

    async def observe(self, request: SyncRequest) -> list[ObservedSchedule]:
        try:
            return await asyncio.wait_for(
                self._control.list_schedules(request.namespace_prefix),
                timeout=self._timeout,
            )
        except ScheduleControlUnavailableError:
            raise
        except Exception as exc:
            raise ScheduleControlUnavailableError("list_schedules", exc) from exc

    async def run(self, request: SyncRequest) -> ReconciliationOutcome:
        if not request.enabled:
            self._log.log_disabled()
            return ReconciliationOutcome(ran=False)

        self._log.log_start(request)
        for entry in request.schedules:
            validate_desired(entry)
        derive_identities(request.schedules, request.namespace_prefix)

        grant = await ensure_grant(
            self._grants,
            request.principal_id,
            request.scope,
            timeout_seconds=self._timeout,
        )
        observed = await self.observe(request)
        actions = diff(request.schedules, observed, request.namespace_prefix)

        result = ReconciliationOutcome(grant_id=grant.id)
        for action in actions:
            outcome = await self._apply(request, action, grant)
            self._log.log_outcome(outcome)
            result.outcomes.append(outcome)
        self._log.log_complete(result)
        return result

    async def _apply(
        self,
        request: SyncRequest,
        action: ReconciliationAction,
        grant: ExecutionGrant,
    ) -> ActionOutcome:
        identity = action.identity
        try:
            if action.kind is ActionKind.SKIP:
                return ActionOutcome(identity, action.kind, OutcomeKind.SKIPPED, "already active")

            if action.kind is ActionKind.CREATE:
                assert action.desired is not None
                try:
                    await self._call(
                        self._control.create_schedule(
                            identity,
                            action.desired.recurrence,
                            action.desired.timezone,
                            build_trigger_args(request, action, grant),
                            self._policy,
                        )
                    )
                except ScheduleConflictError:
                    return ActionOutcome(identity, action.kind, OutcomeKind.SKIPPED, "already exists")
                return ActionOutcome(identity, action.kind, OutcomeKind.CREATED, action.desired.recurrence)

            if action.kind is ActionKind.RESUME:
                await self._call(self._control.resume_schedule(identity, note=RESUME_NOTE))
                return ActionOutcome(identity, action.kind, OutcomeKind.RESUMED)

            if action.observed_paused:
                return ActionOutcome(identity, action.kind, OutcomeKind.SKIPPED, "already paused")
            try:
                await self._call(self._control.pause_schedule(identity, note=PRUNE_NOTE))
            except ScheduleNotFoundError:
                return ActionOutcome(identity, action.kind, OutcomeKind.SKIPPED, "not found (deleted externally)")
            return ActionOutcome(identity, action.kind, OutcomeKind.PRUNED)
        except asyncio.TimeoutError:
            error = ActionApplyError(identity, action.kind.value, f"timed out after {self._timeout}s")
        except Exception as exc:
            error = ActionApplyError(identity, action.kind.value, str(exc) or type(exc).__name__)
        return ActionOutcome(identity, action.kind, OutcomeKind.ERROR, str(error))

    async def _call(self, awaitable: Awaitable[None]) -> None:
        await asyncio.wait_for(awaitable, timeout=self._timeout)


async def reconcile(
    request: SyncRequest,
    control: ScheduleControlPort,
    grants: GrantStorePort,
    *,
    timeout_seconds: float = 30.0,
) -> ReconciliationOutcome:
    """Run one reconciliation pass.

    Raises:
        ConfigurationError: invalid or colliding desired schedules.
        GrantProvisionError: the execution grant could not be ensured.
        ScheduleControlUnavailableError: observed schedules could not be listed.
    """
    reconciler = Reconciler(control, grants, timeout_seconds=timeout_seconds)
    return await reconciler.run(request)
