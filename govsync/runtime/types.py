"""Payloads exchanged between the scheduled-run workflow and its activities.

Plain dataclasses only; this module is imported inside the workflow sandbox.
Timestamps travel as ISO-8601 strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RunStatus(str, Enum):
    """Ledger status of one triggered run.

    Transitions are monotonic: pending -> running -> success|error, and
    pending -> skipped.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def terminal(self) -> bool:
        return self in (RunStatus.SUCCESS, RunStatus.ERROR, RunStatus.SKIPPED)


ALLOWED_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.PENDING: frozenset({RunStatus.RUNNING, RunStatus.SUCCESS, RunStatus.ERROR, RunStatus.SKIPPED}),
    RunStatus.RUNNING: frozenset({RunStatus.SUCCESS, RunStatus.ERROR}),
    RunStatus.SUCCESS: frozenset(),
    RunStatus.ERROR: frozenset(),
    RunStatus.SKIPPED: frozenset(),
}


def can_transition(current: RunStatus, target: RunStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


@dataclass
class ValidateGrantInput:
    grant_id: str
    graph_id: str
    idempotency_key: str


@dataclass
class CreateRunInput:
    schedule_id: str
    run_id: str
    scheduled_for: str
    idempotency_key: str


@dataclass
class MarkRunInput:
    run_id: str
    status: RunStatus
    idempotency_key: str
    trace_id: str | None = None
    error_message: str | None = None


@dataclass
class ExecuteGraphInput:
    schedule_id: str
    graph_id: str
    execution_grant_id: str
    run_id: str
    scheduled_for: str
    idempotency_key: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass
class ExecuteGraphResult:
    ok: bool
    run_id: str
    trace_id: str | None = None
    error_code: str | None = None


@dataclass
class ScheduledRunResult:
    """Workflow result: the ledger run id and its final status."""

    run_id: str
    status: RunStatus
    scheduled_for: str
