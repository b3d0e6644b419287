"""Activities for the governance scheduled-run workflow.

Every storage and network call of a triggered run lives here. Each activity
can run more than once for the same step: the ledger insert is conditional on
the slot, status updates are monotonic, and the graph execution request
carries an Idempotency-Key derived from the workflow id and step.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx
from temporalio import activity
from temporalio.exceptions import ApplicationError

from govsync.governance.grants import validate_grant_for_graph
from govsync.runtime.runs import RunStorePort
from govsync.runtime.types import (
    CreateRunInput,
    ExecuteGraphInput,
    ExecuteGraphResult,
    MarkRunInput,
    RunStatus,
    ValidateGrantInput,
)
from govsync.scheduling.errors import GrantNotFoundError, GrantRevokedError, GrantScopeMismatchError
from govsync.scheduling.ports import GrantStorePort

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {408, 429}


class ScheduledRunActivities:
    """Activity implementations bound to their stores and the internal API."""

    def __init__(
        self,
        grants: GrantStorePort,
        runs: RunStorePort,
        *,
        app_base_url: str,
        api_token: str,
        execute_timeout_seconds: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._grants = grants
        self._runs = runs
        self._app_base_url = app_base_url.rstrip("/")
        self._api_token = api_token
        self._execute_timeout = execute_timeout_seconds
        self._transport = transport

    @activity.defn(name="validate_grant")
    async def validate_grant(self, params: ValidateGrantInput) -> None:
        logger.info("Validating grant %s for graph %s", params.grant_id, params.graph_id)
        try:
            await validate_grant_for_graph(self._grants, params.grant_id, params.graph_id)
        except (GrantNotFoundError, GrantRevokedError, GrantScopeMismatchError) as exc:
            raise ApplicationError(str(exc), type=type(exc).__name__, non_retryable=True) from exc

    @activity.defn(name="create_run")
    async def create_run(self, params: CreateRunInput) -> str:
        """Insert the ledger row for the slot and return the stored run id."""
        scheduled_for = datetime.fromisoformat(params.scheduled_for)
        run = await self._runs.create_run(params.schedule_id, params.run_id, scheduled_for)
        if run.run_id != params.run_id:
            logger.info(
                "Slot %s@%s already recorded as run %s",
                params.schedule_id,
                params.scheduled_for,
                run.run_id,
            )
        return run.run_id

    @activity.defn(name="mark_run")
    async def mark_run(self, params: MarkRunInput) -> None:
        status = RunStatus(params.status)
        changed = await self._runs.mark_run(
            params.run_id,
            status,
            trace_id=params.trace_id,
            error_message=params.error_message,
        )
        logger.info("Run %s status=%s applied=%s key=%s", params.run_id, status.value, changed, params.idempotency_key)

    @activity.defn(name="execute_graph")
    async def execute_graph(self, params: ExecuteGraphInput) -> ExecuteGraphResult:
        url = f"{self._app_base_url}/api/internal/graphs/{params.graph_id}/runs"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_token}",
            "Idempotency-Key": params.idempotency_key,
        }
        body = {
            "executionGrantId": params.execution_grant_id,
            "runId": params.run_id,
            "input": params.input,
        }
        logger.info(
            "Calling graph execution API schedule_id=%s graph_id=%s key=%s",
            params.schedule_id,
            params.graph_id,
            params.idempotency_key,
        )
        async with httpx.AsyncClient(timeout=self._execute_timeout, transport=self._transport) as client:
            response = await client.post(url, headers=headers, json=body)

        if response.status_code >= 400:
            logger.error(
                "Graph execution API returned %d schedule_id=%s graph_id=%s",
                response.status_code,
                params.schedule_id,
                params.graph_id,
            )
            retryable = response.status_code >= 500 or response.status_code in _RETRYABLE_STATUS
            raise ApplicationError(
                f"Internal API error: {response.status_code} - {response.text}",
                type="GraphExecutionHTTPError",
                non_retryable=not retryable,
            )

        result = parse_execute_result(self._safe_json(response), params.run_id)
        if result.ok:
            logger.info("Graph execution succeeded run_id=%s", result.run_id)
        else:
            logger.warning("Graph execution failed run_id=%s error_code=%s", result.run_id, result.error_code)
        return result

    def all(self) -> list[Any]:
        """Activity callables to register on a worker."""
        return [self.validate_grant, self.create_run, self.mark_run, self.execute_graph]

    @staticmethod
    def _safe_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {}


def parse_execute_result(payload: Any, fallback_run_id: str) -> ExecuteGraphResult:
    """Accept the internal API's camelCase response body."""
    if not isinstance(payload, dict):
        payload = {}
    return ExecuteGraphResult(
        ok=bool(payload.get("ok", False)),
        run_id=str(payload.get("runId") or fallback_run_id),
        trace_id=payload.get("traceId"),
        error_code=payload.get("errorCode"),
    )
