"""Data model for governance schedule reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any


class OverlapPolicy(str, Enum):
    """What the engine does when a firing overlaps a still-running triggered run."""

    SKIP = "skip"
    BUFFER_ONE = "buffer_one"
    ALLOW_ALL = "allow_all"


@dataclass(frozen=True)
class SchedulePolicy:
    """Engine-side policy attached to every created schedule."""

    overlap: OverlapPolicy = OverlapPolicy.SKIP
    catchup_window: timedelta = timedelta(0)
    pause_on_failure: bool = True


@dataclass(frozen=True)
class DesiredSchedule:
    """One schedule entry from configuration."""

    key: str
    recurrence: str
    entrypoint: str
    timezone: str = "UTC"


@dataclass(frozen=True)
class ObservedSchedule:
    """A schedule as currently reported by the engine."""

    identity: str
    paused: bool = False


@dataclass(frozen=True)
class ExecutionGrant:
    """Capability record authorizing a system principal to run a bounded scope."""

    id: str
    principal_id: str
    scope: str
    revoked: bool = False

    @property
    def scopes(self) -> tuple[str, ...]:
        return (self.scope,)


@dataclass(frozen=True)
class ScheduledRunInput:
    """Argument handed to each run the schedule triggers."""

    schedule_id: str
    graph_id: str
    execution_grant_id: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SyncRequest:
    """Immutable, pre-validated input to one reconciliation pass."""

    principal_id: str
    graph_id: str
    schedules: tuple[DesiredSchedule, ...]
    model: str = "deepseek-v3.2"
    namespace_prefix: str = "governance:"
    enabled: bool = True

    @property
    def scope(self) -> str:
        return f"graph:execute:{self.graph_id}"


class ActionKind(str, Enum):
    """Classification of one desired/observed pairing."""

    CREATE = "create"
    RESUME = "resume"
    SKIP = "skip"
    PRUNE = "prune"


@dataclass(frozen=True)
class ReconciliationAction:
    """One step the driver must apply.

    ``desired`` is set for create/resume/skip and None for prune.
    ``observed_paused`` carries the engine state seen during the diff.
    """

    kind: ActionKind
    identity: str
    desired: DesiredSchedule | None = None
    observed_paused: bool = False


class OutcomeKind(str, Enum):
    """Applied result for one identity."""

    CREATED = "created"
    RESUMED = "resumed"
    SKIPPED = "skipped"
    PRUNED = "pruned"
    ERROR = "error"


@dataclass(frozen=True)
class ActionOutcome:
    """What happened to one identity during a pass."""

    identity: str
    action: ActionKind
    outcome: OutcomeKind
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "action": self.action.value,
            "outcome": self.outcome.value,
            "detail": self.detail,
        }


@dataclass
class ReconciliationOutcome:
    """Ordered outcome list of a pass, plus aggregate counts."""

    outcomes: list[ActionOutcome] = field(default_factory=list)
    grant_id: str | None = None
    ran: bool = True

    @property
    def count(self) -> int:
        return len(self.outcomes)

    @property
    def has_errors(self) -> bool:
        return any(item.outcome is OutcomeKind.ERROR for item in self.outcomes)

    def identities(self, outcome: OutcomeKind) -> list[str]:
        return [item.identity for item in self.outcomes if item.outcome is outcome]

    def summary(self) -> dict[str, int]:
        counts = {kind.value: 0 for kind in OutcomeKind}
        for item in self.outcomes:
            counts[item.outcome.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "ran": self.ran,
            "grant_id": self.grant_id,
            "count": self.count,
            "summary": self.summary(),
            "outcomes": [item.to_dict() for item in self.outcomes],
        }
