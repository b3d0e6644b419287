"""Tests for the closed entry-point registry."""

from __future__ import annotations

import pytest

from govsync.runtime.registry import (
    ENTRYPOINTS,
    SCHEDULED_RUN_WORKFLOW,
    get_entrypoint,
    registered_workflows,
)
from govsync.runtime.workflows import GovernanceScheduledRunWorkflow
from govsync.scheduling.errors import ConfigurationError
from govsync.scheduling.models import ScheduledRunInput


def test_scheduled_run_entrypoint() -> None:
    entry = get_entrypoint(SCHEDULED_RUN_WORKFLOW)
    assert entry.name == "GovernanceScheduledRunWorkflow"
    assert entry.workflow is GovernanceScheduledRunWorkflow
    assert entry.input_type is ScheduledRunInput


def test_unknown_entrypoint_rejected() -> None:
    with pytest.raises(ConfigurationError, match="GovernanceScheduledRunWorkflow"):
        get_entrypoint("DynamicWorkflow")


def test_registered_workflows_match_registry() -> None:
    assert registered_workflows() == [GovernanceScheduledRunWorkflow]
    assert list(ENTRYPOINTS) == [SCHEDULED_RUN_WORKFLOW]
