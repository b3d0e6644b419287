"""Temporal worker for governance scheduled runs.

The worker executes triggered runs only; it never creates, pauses or
resumes schedules.
"""

from __future__ import annotations

import logging

from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from govsync.runtime.activities import ScheduledRunActivities
from govsync.runtime.registry import registered_workflows

logger = logging.getLogger(__name__)

# Imported by workflow modules through their packages; none is called from workflow code.
SANDBOX_PASSTHROUGH = ("sqlalchemy", "asyncpg", "pydantic", "pydantic_settings", "httpx", "croniter", "yaml")


def workflow_runner() -> SandboxedWorkflowRunner:
    return SandboxedWorkflowRunner(
        restrictions=SandboxRestrictions.default.with_passthrough_modules(*SANDBOX_PASSTHROUGH)
    )


def create_worker(client: Client, task_queue: str, activities: ScheduledRunActivities) -> Worker:
    """Build a worker for every registered entry point and its activities."""
    workflows = registered_workflows()
    logger.info("Creating worker task_queue=%s workflows=%d", task_queue, len(workflows))
    return Worker(
        client,
        task_queue=task_queue,
        workflows=workflows,
        activities=activities.all(),
        workflow_runner=workflow_runner(),
    )


async def run_worker(client: Client, task_queue: str, activities: ScheduledRunActivities) -> None:
    worker = create_worker(client, task_queue, activities)
    logger.info("Worker started task_queue=%s", task_queue)
    await worker.run()
