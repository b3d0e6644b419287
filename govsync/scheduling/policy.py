"""Fixed correctness policy for governance schedules.

Overlap is SKIP, the catch-up window is zero and repeated failures pause the
schedule. None of it is configurable; adapters call ``validate_policy`` before
handing a policy to the engine.
"""

from __future__ import annotations

from datetime import timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter  # type: ignore[import-untyped]

from govsync.scheduling.errors import ConfigurationError
from govsync.scheduling.models import DesiredSchedule, OverlapPolicy, SchedulePolicy

GOVERNANCE_POLICY = SchedulePolicy(
    overlap=OverlapPolicy.SKIP,
    catchup_window=timedelta(0),
    pause_on_failure=True,
)


def validate_policy(policy: SchedulePolicy) -> SchedulePolicy:
    """Reject any policy that deviates from GOVERNANCE_POLICY."""
    if policy.overlap is not OverlapPolicy.SKIP:
        raise ConfigurationError(f"overlap policy must be skip, got {policy.overlap.value}")
    if policy.catchup_window != timedelta(0):
        raise ConfigurationError("catch-up window must be zero")
    if not policy.pause_on_failure:
        raise ConfigurationError("pause_on_failure must be enabled")
    return policy


def validate_cron(expression: str) -> str:
    """Require a 5-field cron expression that croniter accepts."""
    if not isinstance(expression, str) or not expression.strip():
        raise ConfigurationError("cron expression cannot be empty")
    normalized = " ".join(expression.split())
    if len(normalized.split(" ")) != 5:
        raise ConfigurationError(
            f"cron must have 5 fields (min hour day month dow): {expression!r}"
        )
    if not croniter.is_valid(normalized):
        raise ConfigurationError(f"invalid cron expression: {expression!r}")
    return normalized


def validate_timezone(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("timezone cannot be empty")
    try:
        ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"unknown timezone: {name!r}") from exc
    return name.strip()


def validate_desired(entry: DesiredSchedule) -> DesiredSchedule:
    """Runtime re-check of a desired entry; configuration loading already ran these."""
    if not entry.entrypoint or not entry.entrypoint.strip():
        raise ConfigurationError(f"schedule {entry.key!r} has an empty entrypoint")
    validate_cron(entry.recurrence)
    validate_timezone(entry.timezone)
    return entry
