"""Error taxonomy for schedule reconciliation.

Fatal errors (ConfigurationError, GrantProvisionError) abort a pass before
any schedule is mutated. ActionApplyError is recorded per identity and never
stops the rest of the pass.
"""

from __future__ import annotations


class GovSyncError(Exception):
    """Base exception for govsync."""


class ConfigurationError(GovSyncError):
    """Desired schedule configuration is invalid (duplicates, bad cron, missing fields)."""


class GrantProvisionError(GovSyncError):
    """The execution grant could not be ensured; no schedule may be mutated."""

    def __init__(self, principal_id: str, scope: str, message: str) -> None:
        self.principal_id = principal_id
        self.scope = scope
        super().__init__(f"Failed to ensure grant for {principal_id} ({scope}): {message}")


class ActionApplyError(GovSyncError):
    """A single create/resume/prune call failed."""

    def __init__(self, identity: str, operation: str, message: str) -> None:
        self.identity = identity
        self.operation = operation
        super().__init__(f"{operation} failed for {identity}: {message}")


class ScheduleControlError(GovSyncError):
    """Base class for control-plane port failures."""


class ScheduleConflictError(ScheduleControlError):
    """create_schedule found an existing schedule with the same identity."""

    def __init__(self, schedule_id: str) -> None:
        self.schedule_id = schedule_id
        super().__init__(f"Schedule already exists: {schedule_id}")


class ScheduleNotFoundError(ScheduleControlError):
    """pause/resume targeted a schedule the engine does not know."""

    def __init__(self, schedule_id: str) -> None:
        self.schedule_id = schedule_id
        super().__init__(f"Schedule not found: {schedule_id}")


class ScheduleControlUnavailableError(ScheduleControlError):
    """The engine could not be reached or rejected the call."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        detail = str(cause) if cause is not None else "unknown error"
        super().__init__(f"Schedule control unavailable during {operation}: {detail}")


class GrantNotFoundError(GovSyncError):
    """Execution grant id does not exist."""

    def __init__(self, grant_id: str) -> None:
        self.grant_id = grant_id
        super().__init__(f"Execution grant not found: {grant_id}")


class GrantRevokedError(GovSyncError):
    """Execution grant was revoked outside this subsystem."""

    def __init__(self, grant_id: str) -> None:
        self.grant_id = grant_id
        super().__init__(f"Execution grant revoked: {grant_id}")


class GrantScopeMismatchError(GovSyncError):
    """Execution grant does not cover the requested graph."""

    def __init__(self, grant_id: str, graph_id: str, scopes: tuple[str, ...]) -> None:
        self.grant_id = grant_id
        self.graph_id = graph_id
        self.scopes = scopes
        super().__init__(
            f"Grant {grant_id} does not authorize graph {graph_id}. Scopes: {', '.join(scopes)}"
        )
