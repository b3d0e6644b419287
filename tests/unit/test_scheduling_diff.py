"""Tests for the diff engine."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from govsync.scheduling.diff import diff
from govsync.scheduling.errors import ConfigurationError
from govsync.scheduling.models import ActionKind, DesiredSchedule, ObservedSchedule


def _desired(*keys: str) -> list[DesiredSchedule]:
    return [DesiredSchedule(key=key, recurrence="0 * * * *", entrypoint=f"run {key}") for key in keys]


def _kinds(actions) -> list[tuple[str, str]]:
    return [(action.kind.value, action.identity) for action in actions]


def test_absent_schedule_is_created() -> None:
    actions = diff(_desired("a"), [])
    assert _kinds(actions) == [("create", "governance:a")]
    assert actions[0].desired is not None
    assert actions[0].desired.key == "a"


def test_paused_schedule_is_resumed() -> None:
    actions = diff(_desired("a"), [ObservedSchedule("governance:a", paused=True)])
    assert _kinds(actions) == [("resume", "governance:a")]


def test_active_schedule_is_skipped() -> None:
    actions = diff(_desired("a"), [ObservedSchedule("governance:a", paused=False)])
    assert _kinds(actions) == [("skip", "governance:a")]


def test_changed_recurrence_on_active_schedule_is_still_skipped() -> None:
    desired = [DesiredSchedule(key="a", recurrence="*/5 * * * *", entrypoint="new", timezone="Europe/Berlin")]
    actions = diff(desired, [ObservedSchedule("governance:a")])
    assert _kinds(actions) == [("skip", "governance:a")]


def test_removed_schedule_is_pruned() -> None:
    observed = [ObservedSchedule("governance:a"), ObservedSchedule("governance:b")]
    actions = diff(_desired("a"), observed)
    assert _kinds(actions) == [("skip", "governance:a"), ("prune", "governance:b")]
    assert actions[1].desired is None
    assert actions[1].observed_paused is False


def test_prune_records_already_paused_state() -> None:
    actions = diff([], [ObservedSchedule("governance:b", paused=True)])
    assert _kinds(actions) == [("prune", "governance:b")]
    assert actions[0].observed_paused is True


def test_out_of_namespace_schedules_are_never_touched() -> None:
    observed = [
        ObservedSchedule("tenant:42:a", paused=True),
        ObservedSchedule("other"),
        ObservedSchedule("governance:a", paused=True),
    ]
    actions = diff(_desired("a"), observed)
    assert _kinds(actions) == [("resume", "governance:a")]


def test_ordering_desired_then_prunes_in_observed_order() -> None:
    observed = [
        ObservedSchedule("governance:z"),
        ObservedSchedule("governance:b", paused=True),
        ObservedSchedule("governance:y"),
    ]
    actions = diff(_desired("c", "b", "a"), observed)
    assert _kinds(actions) == [
        ("create", "governance:c"),
        ("resume", "governance:b"),
        ("create", "governance:a"),
        ("prune", "governance:z"),
        ("prune", "governance:y"),
    ]


def test_duplicate_observed_identity_is_pruned_once() -> None:
    observed = [ObservedSchedule("governance:x"), ObservedSchedule("governance:x")]
    assert _kinds(diff([], observed)) == [("prune", "governance:x")]


def test_duplicate_desired_identities_rejected() -> None:
    with pytest.raises(ConfigurationError):
        diff(_desired("Ops", "ops"), [])


def test_custom_namespace() -> None:
    observed = [ObservedSchedule("governance:a"), ObservedSchedule("gov2:old")]
    actions = diff(_desired("a"), observed, namespace="gov2:")
    assert _kinds(actions) == [("create", "gov2:a"), ("prune", "gov2:old")]


_names = st.lists(
    st.text(alphabet="abcdefgh", min_size=1, max_size=4),
    unique=True,
    max_size=6,
)


@given(_names, _names, st.lists(st.booleans(), min_size=6, max_size=6))
def test_property_stable_ordering(desired_keys: list[str], observed_keys: list[str], paused: list[bool]) -> None:
    """Property: identical inputs always produce an identical action sequence."""
    desired = _desired(*desired_keys)
    observed = [ObservedSchedule(f"governance:{key}", paused=flag) for key, flag in zip(observed_keys, paused)]
    assert _kinds(diff(desired, observed)) == _kinds(diff(desired, observed))


@given(_names, _names)
def test_property_every_identity_classified_once(desired_keys: list[str], observed_keys: list[str]) -> None:
    """Property: each in-namespace identity gets exactly one action, never a delete."""
    desired = _desired(*desired_keys)
    observed = [ObservedSchedule(f"governance:{key}") for key in observed_keys]
    actions = diff(desired, observed)
    identities = [action.identity for action in actions]
    assert len(identities) == len(set(identities))
    expected = {f"governance:{key}" for key in desired_keys} | {f"governance:{key}" for key in observed_keys}
    assert set(identities) == expected
    assert {action.kind for action in actions} <= set(ActionKind)
    for action in actions:
        if action.kind is ActionKind.PRUNE:
            assert action.identity.removeprefix("governance:") not in desired_keys


@given(_names, st.lists(st.text(alphabet="xyz", min_size=1, max_size=3), unique=True, max_size=4))
def test_property_out_of_namespace_isolation(desired_keys: list[str], foreign: list[str]) -> None:
    observed = [ObservedSchedule(f"tenant:{key}", paused=True) for key in foreign]
    actions = diff(_desired(*desired_keys), observed)
    assert all(action.identity.startswith("governance:") for action in actions)
