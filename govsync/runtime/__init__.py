"""Triggered-run runtime: workflow, activities, run ledger, worker."""

from govsync.runtime.registry import ENTRYPOINTS, SCHEDULED_RUN_WORKFLOW, get_entrypoint
from govsync.runtime.types import RunStatus
from govsync.runtime.workflows import GovernanceScheduledRunWorkflow, RunPhase

__all__ = [
    "ENTRYPOINTS",
    "GovernanceScheduledRunWorkflow",
    "RunPhase",
    "RunStatus",
    "SCHEDULED_RUN_WORKFLOW",
    "get_entrypoint",
]
