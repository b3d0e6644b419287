"""Ports consumed by the reconciliation driver.

Adapters live in ``govsync.integrations`` (engine) and
``govsync.governance.grants`` (storage).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from govsync.scheduling.models import (
    ExecutionGrant,
    ObservedSchedule,
    SchedulePolicy,
    ScheduledRunInput,
)


@runtime_checkable
class ScheduleControlPort(Protocol):
    """Control-plane surface of the workflow engine.

    | Method           | On not found                 | On already exists        |
    |------------------|------------------------------|--------------------------|
    | create_schedule  | n/a                          | ScheduleConflictError    |
    | pause_schedule   | ScheduleNotFoundError        | no-op if already paused  |
    | resume_schedule  | ScheduleNotFoundError        | no-op if already running |

    Any other failure surfaces as ScheduleControlUnavailableError. The port
    has no update or delete call.
    """

    async def list_schedules(self, namespace_prefix: str) -> list[ObservedSchedule]: ...

    async def create_schedule(
        self,
        identity: str,
        recurrence: str,
        timezone: str,
        trigger_args: ScheduledRunInput,
        policy: SchedulePolicy,
    ) -> None: ...

    async def pause_schedule(self, identity: str, note: str | None = None) -> None: ...

    async def resume_schedule(self, identity: str, note: str | None = None) -> None: ...


@runtime_checkable
class GrantStorePort(Protocol):
    """Transactional storage for execution grants.

    ``upsert_grant`` must treat a pre-existing (principal_id, scope) row as
    success and return it unchanged.
    """

    async def upsert_grant(self, principal_id: str, scope: str) -> ExecutionGrant: ...

    async def get_grant(self, grant_id: str) -> ExecutionGrant | None: ...
