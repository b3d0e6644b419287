"""
Temporal integration: connection config and the schedule control plane.

All temporalio client usage is isolated in this module. The govsync API is
TemporalConfig, TemporalClient and TemporalScheduleControl.
"""

from __future__ import annotations

import logging
import os
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, field_validator, model_validator
from temporalio.client import (
    Client,
    Schedule,
    ScheduleActionStartWorkflow,
    ScheduleAlreadyRunningError,
    ScheduleOverlapPolicy,
    ScheduleSpec,
    ScheduleState,
)
from temporalio.client import SchedulePolicy as TemporalSchedulePolicy
from temporalio.service import RPCError, RPCStatusCode

from govsync.runtime.registry import SCHEDULED_RUN_WORKFLOW, get_entrypoint
from govsync.scheduling.errors import (
    ScheduleConflictError,
    ScheduleControlUnavailableError,
    ScheduleNotFoundError,
)
from govsync.scheduling.identity import in_namespace
from govsync.scheduling.models import (
    ObservedSchedule,
    OverlapPolicy,
    SchedulePolicy,
    ScheduledRunInput,
)
from govsync.scheduling.policy import validate_policy

logger = logging.getLogger(__name__)


class TemporalConfig(BaseModel):
    """Temporal connection and worker configuration."""

    address: str = "localhost:7233"
    namespace: str = "default"
    task_queue: str = "govsync-scheduled-runs"
    api_key: str | None = None
    tls: bool = False
    rpc_timeout_seconds: float = 10.0

    @model_validator(mode="before")
    @classmethod
    def address_from_env(cls, data: Any) -> Any:
        if isinstance(data, dict):
            updates: dict[str, Any] = {}
            if "address" not in data:
                address = os.environ.get("TEMPORAL_ADDRESS", "").strip()
                if address:
                    updates["address"] = address
            if "namespace" not in data:
                namespace = os.environ.get("TEMPORAL_NAMESPACE", "").strip()
                if namespace:
                    updates["namespace"] = namespace
            if updates:
                data = {**data, **updates}
        return data

    @field_validator("address")
    @classmethod
    def address_is_host_port(cls, v: str) -> str:
        value = v.strip()
        if value.startswith(("http://", "https://")):
            raise ValueError("address must be host:port without a scheme")
        if ":" not in value:
            raise ValueError("address must be host:port")
        return value

    @field_validator("namespace", "task_queue")
    @classmethod
    def not_empty(cls, v: str) -> str:
        value = v.strip()
        if not value:
            raise ValueError("namespace and task_queue cannot be empty")
        return value

    @field_validator("rpc_timeout_seconds")
    @classmethod
    def rpc_timeout_at_least_one(cls, v: float) -> float:
        if v < 1:
            raise ValueError("rpc_timeout_seconds must be >= 1")
        return v


_OVERLAP = {
    OverlapPolicy.SKIP: ScheduleOverlapPolicy.SKIP,
    OverlapPolicy.BUFFER_ONE: ScheduleOverlapPolicy.BUFFER_ONE,
    OverlapPolicy.ALLOW_ALL: ScheduleOverlapPolicy.ALLOW_ALL,
}


def _is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, RPCError) and exc.status == RPCStatusCode.NOT_FOUND


class TemporalScheduleControl:
    """ScheduleControlPort backed by Temporal Schedules.

    The schedule action starts the registered entry point with the schedule
    identity as workflow id; Temporal appends the firing timestamp.
    """

    def __init__(
        self,
        client: Client,
        *,
        task_queue: str,
        rpc_timeout_seconds: float = 10.0,
        entrypoint: str = SCHEDULED_RUN_WORKFLOW,
    ) -> None:
        self._client = client
        self._task_queue = task_queue
        self._rpc_timeout = timedelta(seconds=rpc_timeout_seconds)
        self._entrypoint = get_entrypoint(entrypoint)

    def build_schedule(
        self,
        identity: str,
        recurrence: str,
        timezone: str,
        trigger_args: ScheduledRunInput,
        policy: SchedulePolicy,
    ) -> Schedule:
        validate_policy(policy)
        if not isinstance(trigger_args, self._entrypoint.input_type):
            raise TypeError(
                f"{self._entrypoint.name} takes {self._entrypoint.input_type.__name__}, "
                f"got {type(trigger_args).__name__}"
            )
        return Schedule(
            action=ScheduleActionStartWorkflow(
                self._entrypoint.name,
                trigger_args,
                id=identity,
                task_queue=self._task_queue,
            ),
            spec=ScheduleSpec(cron_expressions=[recurrence], time_zone_name=timezone),
            policy=TemporalSchedulePolicy(
                overlap=_OVERLAP[policy.overlap],
                catchup_window=policy.catchup_window,
                pause_on_failure=policy.pause_on_failure,
            ),
            state=ScheduleState(note="created by govsync"),
        )

    async def list_schedules(self, namespace_prefix: str) -> list[ObservedSchedule]:
        observed: list[ObservedSchedule] = []
        try:
            iterator = await self._client.list_schedules(rpc_timeout=self._rpc_timeout)
            async for item in iterator:
                if not in_namespace(item.id, namespace_prefix):
                    continue
                observed.append(ObservedSchedule(identity=item.id, paused=await self._paused(item)))
        except Exception as exc:
            logger.exception("Failed to list Temporal schedules")
            raise ScheduleControlUnavailableError("list_schedules", exc) from exc
        return observed

    async def _paused(self, item: Any) -> bool:
        listed = getattr(item, "schedule", None)
        state = getattr(listed, "state", None)
        if state is not None:
            return bool(state.paused)
        desc = await self._client.get_schedule_handle(item.id).describe(rpc_timeout=self._rpc_timeout)
        return bool(desc.schedule.state.paused)

    async def create_schedule(
        self,
        identity: str,
        recurrence: str,
        timezone: str,
        trigger_args: ScheduledRunInput,
        policy: SchedulePolicy,
    ) -> None:
        schedule = self.build_schedule(identity, recurrence, timezone, trigger_args, policy)
        try:
            await self._client.create_schedule(identity, schedule, rpc_timeout=self._rpc_timeout)
        except ScheduleAlreadyRunningError as exc:
            raise ScheduleConflictError(identity) from exc
        except Exception as exc:
            raise ScheduleControlUnavailableError("create_schedule", exc) from exc

    async def pause_schedule(self, identity: str, note: str | None = None) -> None:
        handle = self._client.get_schedule_handle(identity)
        try:
            await handle.pause(note=note, rpc_timeout=self._rpc_timeout)
        except Exception as exc:
            if _is_not_found(exc):
                raise ScheduleNotFoundError(identity) from exc
            raise ScheduleControlUnavailableError("pause_schedule", exc) from exc

    async def resume_schedule(self, identity: str, note: str | None = None) -> None:
        handle = self._client.get_schedule_handle(identity)
        try:
            await handle.unpause(note=note, rpc_timeout=self._rpc_timeout)
        except Exception as exc:
            if _is_not_found(exc):
                raise ScheduleNotFoundError(identity) from exc
            raise ScheduleControlUnavailableError("resume_schedule", exc) from exc


class TemporalClient:
    """govsync wrapper around the temporalio client."""

    def __init__(self, config: TemporalConfig) -> None:
        self.config = config
        self._client: Client | None = None

    async def connect(self) -> Client:
        """Connect to the Temporal frontend."""
        api_key = self.config.api_key or os.environ.get("TEMPORAL_API_KEY") or None
        try:
            self._client = await Client.connect(
                self.config.address,
                namespace=self.config.namespace,
                api_key=api_key,
                tls=self.config.tls or bool(api_key),
            )
            logger.info("Connected to Temporal at %s (namespace=%s)", self.config.address, self.config.namespace)
        except Exception as e:
            logger.exception("Failed to connect to Temporal")
            raise ScheduleControlUnavailableError("connect", e) from e
        return self._client

    @property
    def client(self) -> Client:
        if self._client is None:
            raise RuntimeError("Must call connect() before using the Temporal client")
        return self._client

    def disconnect(self) -> None:
        if self._client is not None:
            self._client = None
            logger.info("Disconnected from Temporal")

    def schedule_control(self) -> TemporalScheduleControl:
        return TemporalScheduleControl(
            self.client,
            task_queue=self.config.task_queue,
            rpc_timeout_seconds=self.config.rpc_timeout_seconds,
        )
