"""Schedule control plane against a running Temporal frontend."""

from __future__ import annotations

import os
import uuid

import pytest

from govsync.integrations.temporal import TemporalClient, TemporalConfig
from govsync.scheduling.errors import ScheduleConflictError, ScheduleNotFoundError
from govsync.scheduling.models import ObservedSchedule, ScheduledRunInput
from govsync.scheduling.policy import GOVERNANCE_POLICY

pytestmark = pytest.mark.requires_temporal


@pytest.mark.asyncio
async def test_create_pause_resume_cycle() -> None:
    temporal = TemporalClient(TemporalConfig(address=os.getenv("TEMPORAL_ADDRESS", "localhost:7233")))
    client = await temporal.connect()
    control = temporal.schedule_control()
    prefix = f"govsync-test-{uuid.uuid4().hex[:8]}:"
    identity = f"{prefix}community"
    args = ScheduledRunInput(schedule_id=identity, graph_id="sandbox:openclaw", execution_grant_id="grant-1")

    try:
        await control.create_schedule(identity, "0 9 * * 1", "UTC", args, GOVERNANCE_POLICY)
        with pytest.raises(ScheduleConflictError):
            await control.create_schedule(identity, "0 9 * * 1", "UTC", args, GOVERNANCE_POLICY)

        await control.pause_schedule(identity, note="test")
        desc = await client.get_schedule_handle(identity).describe()
        assert desc.schedule.state.paused is True

        await control.resume_schedule(identity)
        desc = await client.get_schedule_handle(identity).describe()
        assert desc.schedule.state.paused is False

        with pytest.raises(ScheduleNotFoundError):
            await control.pause_schedule(f"{prefix}missing")
    finally:
        await client.get_schedule_handle(identity).delete()
        temporal.disconnect()


@pytest.mark.asyncio
async def test_list_filters_namespace() -> None:
    temporal = TemporalClient(TemporalConfig(address=os.getenv("TEMPORAL_ADDRESS", "localhost:7233")))
    await temporal.connect()
    control = temporal.schedule_control()
    prefix = f"govsync-empty-{uuid.uuid4().hex[:8]}:"
    try:
        observed: list[ObservedSchedule] = await control.list_schedules(prefix)
        assert observed == []
    finally:
        temporal.disconnect()
