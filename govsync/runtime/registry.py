"""Closed registry of orchestration entry points.

Schedules reference a workflow by a stable string key; the worker registers
exactly the workflows listed here. There is no dynamic registration.
"""

from __future__ import annotations

from dataclasses import dataclass

from govsync.runtime.workflows import SCHEDULED_RUN_WORKFLOW, GovernanceScheduledRunWorkflow
from govsync.scheduling.errors import ConfigurationError
from govsync.scheduling.models import ScheduledRunInput


@dataclass(frozen=True)
class WorkflowEntrypoint:
    """One registered workflow: engine name, class and declared input type."""

    name: str
    workflow: type
    input_type: type


ENTRYPOINTS: dict[str, WorkflowEntrypoint] = {
    SCHEDULED_RUN_WORKFLOW: WorkflowEntrypoint(
        name=SCHEDULED_RUN_WORKFLOW,
        workflow=GovernanceScheduledRunWorkflow,
        input_type=ScheduledRunInput,
    ),
}


def get_entrypoint(key: str) -> WorkflowEntrypoint:
    """Look up an entry point by key; unknown keys are a configuration error."""
    try:
        return ENTRYPOINTS[key]
    except KeyError:
        known = ", ".join(sorted(ENTRYPOINTS))
        raise ConfigurationError(f"Unknown workflow entry point {key!r}. Registered: {known}") from None


def registered_workflows() -> list[type]:
    return [entry.workflow for entry in ENTRYPOINTS.values()]


__all__ = [
    "ENTRYPOINTS",
    "SCHEDULED_RUN_WORKFLOW",
    "WorkflowEntrypoint",
    "get_entrypoint",
    "registered_workflows",
]
