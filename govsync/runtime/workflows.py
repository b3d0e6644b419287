"""Temporal workflow for governance scheduled runs.

Orchestration only: every storage or network call happens in an activity.
The scheduled time comes from the TemporalScheduledStartTime search attribute
the engine stamps on schedule-started workflows, and the run id comes from
workflow.uuid4(), so a replay reproduces the same decisions.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from temporalio import workflow
from temporalio.common import RetryPolicy, SearchAttributeKey, TypedSearchAttributes
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from govsync.runtime.types import (
        CreateRunInput,
        ExecuteGraphInput,
        ExecuteGraphResult,
        MarkRunInput,
        RunStatus,
        ScheduledRunResult,
        ValidateGrantInput,
    )
    from govsync.scheduling.identity import idempotency_key
    from govsync.scheduling.models import ScheduledRunInput

SCHEDULED_RUN_WORKFLOW = "GovernanceScheduledRunWorkflow"

SCHEDULED_START_TIME = SearchAttributeKey.for_datetime("TemporalScheduledStartTime")

_SHORT_TIMEOUT = timedelta(minutes=1)
_EXECUTE_TIMEOUT = timedelta(minutes=5)

ACTIVITY_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=1),
    maximum_interval=timedelta(seconds=30),
    backoff_coefficient=2.0,
    maximum_attempts=3,
)


class RunPhase(str, Enum):
    """Named points of the run state machine, visible through the ``phase`` query."""

    STARTING = "starting"
    VALIDATING_GRANT = "validating_grant"
    RECORDING_RUN = "recording_run"
    EXECUTING = "executing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


def scheduled_for_from(search_attributes: TypedSearchAttributes, workflow_id: str = "") -> datetime:
    """Return the engine-provided scheduled start time in UTC.

    Raises a non-retryable ApplicationError when the attribute is missing,
    which means the workflow was not started by a schedule.
    """
    value = search_attributes.get(SCHEDULED_START_TIME)
    if value is None:
        raise ApplicationError(
            "TemporalScheduledStartTime search attribute missing; workflow must be started by a schedule "
            f"(workflow_id={workflow_id})",
            type="MissingScheduledStartTime",
            non_retryable=True,
        )
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _error_message(exc: ActivityError) -> str:
    cause = exc.cause
    if cause is not None and str(cause):
        return str(cause)
    return str(exc) or "Unknown error during execution"


@workflow.defn(name=SCHEDULED_RUN_WORKFLOW)
class GovernanceScheduledRunWorkflow:
    """Validate grant, record the run, execute the graph, record the outcome.

    validate_grant fails   -> create run, mark skipped, return
    otherwise              -> create run, mark running, execute_graph
        execute ok         -> mark success
        execute not ok     -> mark error
        activity raised    -> mark error, re-raise
    """

    def __init__(self) -> None:
        self._phase = RunPhase.STARTING
        self._run_id: str | None = None
        self._sequences: dict[str, int] = {}

    @workflow.query
    def phase(self) -> str:
        return self._phase.value

    @workflow.query
    def run_id(self) -> str | None:
        return self._run_id

    def _key(self, step: str) -> str:
        sequence = self._sequences.get(step, 0)
        self._sequences[step] = sequence + 1
        return idempotency_key(workflow.info().workflow_id, step, sequence)

    async def _call(
        self,
        name: str,
        arg: Any,
        *,
        timeout: timedelta = _SHORT_TIMEOUT,
        result_type: type | None = None,
    ) -> Any:
        return await workflow.execute_activity(
            name,
            arg,
            start_to_close_timeout=timeout,
            retry_policy=ACTIVITY_RETRY_POLICY,
            result_type=result_type,
        )

    async def _mark(self, status: RunStatus, *, trace_id: str | None = None, error: str | None = None) -> None:
        assert self._run_id is not None
        await self._call(
            "mark_run",
            MarkRunInput(
                run_id=self._run_id,
                status=status,
                idempotency_key=self._key("mark_run"),
                trace_id=trace_id,
                error_message=error,
            ),
        )

    async def _create_run(self, params: ScheduledRunInput, scheduled_for: str) -> None:
        """Record the slot; the ledger hands back the run id already stored for it, if any."""
        assert self._run_id is not None
        self._run_id = await self._call(
            "create_run",
            CreateRunInput(
                schedule_id=params.schedule_id,
                run_id=self._run_id,
                scheduled_for=scheduled_for,
                idempotency_key=self._key("create_run"),
            ),
            result_type=str,
        )

    @workflow.run
    async def run(self, params: ScheduledRunInput) -> ScheduledRunResult:
        info = workflow.info()
        scheduled_for = scheduled_for_from(info.typed_search_attributes, info.workflow_id).isoformat()
        self._run_id = str(workflow.uuid4())

        self._phase = RunPhase.VALIDATING_GRANT
        try:
            await self._call(
                "validate_grant",
                ValidateGrantInput(
                    grant_id=params.execution_grant_id,
                    graph_id=params.graph_id,
                    idempotency_key=self._key("validate_grant"),
                ),
            )
        except ActivityError as exc:
            workflow.logger.warning(
                "Grant validation failed for %s: %s", params.schedule_id, _error_message(exc)
            )
            self._phase = RunPhase.RECORDING_RUN
            await self._create_run(params, scheduled_for)
            await self._mark(RunStatus.SKIPPED, error="Grant validation failed")
            self._phase = RunPhase.SKIPPED
            return ScheduledRunResult(self._run_id, RunStatus.SKIPPED, scheduled_for)

        self._phase = RunPhase.RECORDING_RUN
        await self._create_run(params, scheduled_for)
        await self._mark(RunStatus.RUNNING)

        self._phase = RunPhase.EXECUTING
        try:
            result: ExecuteGraphResult = await self._call(
                "execute_graph",
                ExecuteGraphInput(
                    schedule_id=params.schedule_id,
                    graph_id=params.graph_id,
                    execution_grant_id=params.execution_grant_id,
                    run_id=self._run_id,
                    scheduled_for=scheduled_for,
                    idempotency_key=self._key("execute_graph"),
                    input=dict(params.input),
                ),
                timeout=_EXECUTE_TIMEOUT,
                result_type=ExecuteGraphResult,
            )
        except ActivityError as exc:
            self._phase = RunPhase.FINALIZING
            await self._mark(RunStatus.ERROR, error=_error_message(exc))
            self._phase = RunPhase.FAILED
            raise

        self._phase = RunPhase.FINALIZING
        if result.ok:
            await self._mark(RunStatus.SUCCESS, trace_id=result.trace_id)
            self._phase = RunPhase.COMPLETED
            return ScheduledRunResult(self._run_id, RunStatus.SUCCESS, scheduled_for)

        await self._mark(
            RunStatus.ERROR,
            trace_id=result.trace_id,
            error=result.error_code or "Graph execution failed",
        )
        self._phase = RunPhase.FAILED
        return ScheduledRunResult(self._run_id, RunStatus.ERROR, scheduled_for)
