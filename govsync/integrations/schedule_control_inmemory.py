"""In-memory schedule control plane for tests and dry runs.

Drop-in replacement for :class:`TemporalScheduleControl` that keeps
schedules in a dict. Used by tests and by ``govsync plan --offline``.
Every call is appended to ``calls`` as ``(operation, identity)``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from govsync.scheduling.errors import (
    ScheduleConflictError,
    ScheduleControlUnavailableError,
    ScheduleNotFoundError,
)
from govsync.scheduling.identity import in_namespace
from govsync.scheduling.models import ObservedSchedule, SchedulePolicy, ScheduledRunInput


@dataclass
class InMemorySchedule:
    """One stored schedule."""

    identity: str
    recurrence: str
    timezone: str
    trigger_args: ScheduledRunInput | None
    policy: SchedulePolicy | None
    paused: bool = False
    note: str | None = None


class InMemoryScheduleControl:
    """ScheduleControlPort over a plain dict.

    ``failures`` maps ``(operation, identity)`` to an exception raised on that
    call; ``hangs`` holds ``(operation, identity)`` pairs that never return.
    """

    def __init__(self) -> None:
        self.schedules: dict[str, InMemorySchedule] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.hangs: set[tuple[str, str]] = set()

    def seed(self, identity: str, *, paused: bool = False, recurrence: str = "0 * * * *") -> None:
        """Insert a pre-existing schedule without recording a call."""
        self.schedules[identity] = InMemorySchedule(
            identity=identity,
            recurrence=recurrence,
            timezone="UTC",
            trigger_args=None,
            policy=None,
            paused=paused,
        )

    async def _enter(self, operation: str, identity: str) -> None:
        self.calls.append((operation, identity))
        if (operation, identity) in self.hangs:
            await asyncio.Event().wait()
        failure = self.failures.get((operation, identity))
        if failure is not None:
            raise failure

    async def list_schedules(self, namespace_prefix: str) -> list[ObservedSchedule]:
        await self._enter("list", namespace_prefix)
        return [
            ObservedSchedule(identity=item.identity, paused=item.paused)
            for item in self.schedules.values()
            if in_namespace(item.identity, namespace_prefix)
        ]

    async def create_schedule(
        self,
        identity: str,
        recurrence: str,
        timezone: str,
        trigger_args: ScheduledRunInput,
        policy: SchedulePolicy,
    ) -> None:
        await self._enter("create", identity)
        if identity in self.schedules:
            raise ScheduleConflictError(identity)
        self.schedules[identity] = InMemorySchedule(
            identity=identity,
            recurrence=recurrence,
            timezone=timezone,
            trigger_args=trigger_args,
            policy=policy,
        )

    async def pause_schedule(self, identity: str, note: str | None = None) -> None:
        await self._enter("pause", identity)
        item = self._get(identity)
        item.paused = True
        item.note = note

    async def resume_schedule(self, identity: str, note: str | None = None) -> None:
        await self._enter("resume", identity)
        item = self._get(identity)
        item.paused = False
        item.note = note

    def _get(self, identity: str) -> InMemorySchedule:
        item = self.schedules.get(identity)
        if item is None:
            raise ScheduleNotFoundError(identity)
        return item

    def mutating_calls(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] != "list"]


class UnavailableScheduleControl(InMemoryScheduleControl):
    """Control plane whose every call fails as if the engine were down."""

    async def _enter(self, operation: str, identity: str) -> None:
        self.calls.append((operation, identity))
        raise ScheduleControlUnavailableError(operation, ConnectionError("engine unreachable"))
