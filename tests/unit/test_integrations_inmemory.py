"""Tests for the in-memory schedule control plane."""

from __future__ import annotations

import pytest

from govsync.integrations.schedule_control_inmemory import InMemoryScheduleControl, UnavailableScheduleControl
from govsync.scheduling.errors import (
    ScheduleConflictError,
    ScheduleControlUnavailableError,
    ScheduleNotFoundError,
)
from govsync.scheduling.models import ObservedSchedule, ScheduledRunInput
from govsync.scheduling.policy import GOVERNANCE_POLICY
from govsync.scheduling.ports import ScheduleControlPort


def _args(identity: str) -> ScheduledRunInput:
    return ScheduledRunInput(schedule_id=identity, graph_id="g", execution_grant_id="grant")


def test_satisfies_port() -> None:
    assert isinstance(InMemoryScheduleControl(), ScheduleControlPort)


@pytest.mark.asyncio
async def test_create_list_pause_resume() -> None:
    control = InMemoryScheduleControl()
    await control.create_schedule("governance:a", "0 * * * *", "UTC", _args("governance:a"), GOVERNANCE_POLICY)
    control.seed("other:x")

    assert await control.list_schedules("governance:") == [ObservedSchedule("governance:a", False)]

    await control.pause_schedule("governance:a", note="bye")
    assert await control.list_schedules("governance:") == [ObservedSchedule("governance:a", True)]

    await control.resume_schedule("governance:a")
    assert control.schedules["governance:a"].paused is False
    assert control.mutating_calls() == [
        ("create", "governance:a"),
        ("pause", "governance:a"),
        ("resume", "governance:a"),
    ]


@pytest.mark.asyncio
async def test_create_existing_conflicts() -> None:
    control = InMemoryScheduleControl()
    control.seed("governance:a")
    with pytest.raises(ScheduleConflictError):
        await control.create_schedule("governance:a", "0 * * * *", "UTC", _args("governance:a"), GOVERNANCE_POLICY)


@pytest.mark.asyncio
async def test_pause_missing_not_found() -> None:
    with pytest.raises(ScheduleNotFoundError):
        await InMemoryScheduleControl().pause_schedule("governance:missing")


@pytest.mark.asyncio
async def test_unavailable_control_fails_every_call() -> None:
    control = UnavailableScheduleControl()
    with pytest.raises(ScheduleControlUnavailableError, match="list"):
        await control.list_schedules("governance:")
    assert control.calls == [("list", "governance:")]
