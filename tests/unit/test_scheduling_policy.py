"""Tests for the fixed schedule policy and cron/timezone validation."""

from __future__ import annotations

from datetime import timedelta

import pytest

from govsync.scheduling.errors import ConfigurationError
from govsync.scheduling.models import DesiredSchedule, OverlapPolicy, SchedulePolicy
from govsync.scheduling.policy import (
    GOVERNANCE_POLICY,
    validate_cron,
    validate_desired,
    validate_policy,
    validate_timezone,
)


def test_governance_policy_values() -> None:
    assert GOVERNANCE_POLICY.overlap is OverlapPolicy.SKIP
    assert GOVERNANCE_POLICY.catchup_window == timedelta(0)
    assert GOVERNANCE_POLICY.pause_on_failure is True
    assert validate_policy(GOVERNANCE_POLICY) is GOVERNANCE_POLICY


@pytest.mark.parametrize(
    "policy",
    [
        SchedulePolicy(overlap=OverlapPolicy.BUFFER_ONE),
        SchedulePolicy(overlap=OverlapPolicy.ALLOW_ALL),
        SchedulePolicy(catchup_window=timedelta(minutes=5)),
        SchedulePolicy(pause_on_failure=False),
    ],
)
def test_deviating_policy_rejected(policy: SchedulePolicy) -> None:
    with pytest.raises(ConfigurationError):
        validate_policy(policy)


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("0 9 * * 1", "0 9 * * 1"),
        ("  */15   *  * * *  ", "*/15 * * * *"),
        ("0 0 1 * *", "0 0 1 * *"),
    ],
)
def test_validate_cron_normalizes(expression: str, expected: str) -> None:
    assert validate_cron(expression) == expected


@pytest.mark.parametrize(
    "expression",
    ["", "   ", "* * * *", "0 0 * * * *", "61 * * * *", "not a cron at all"],
)
def test_validate_cron_rejects(expression: str) -> None:
    with pytest.raises(ConfigurationError):
        validate_cron(expression)


def test_validate_timezone() -> None:
    assert validate_timezone("UTC") == "UTC"
    assert validate_timezone(" Europe/Berlin ") == "Europe/Berlin"


@pytest.mark.parametrize("name", ["", "Mars/Olympus_Mons"])
def test_validate_timezone_rejects(name: str) -> None:
    with pytest.raises(ConfigurationError):
        validate_timezone(name)


def test_validate_desired_rejects_empty_entrypoint() -> None:
    entry = DesiredSchedule(key="a", recurrence="0 * * * *", entrypoint="  ")
    with pytest.raises(ConfigurationError, match="entrypoint"):
        validate_desired(entry)


def test_validate_desired_accepts_valid_entry() -> None:
    entry = DesiredSchedule(key="a", recurrence="0 * * * *", entrypoint="run", timezone="America/New_York")
    assert validate_desired(entry) is entry
