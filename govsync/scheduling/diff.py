"""Diff engine: classify desired vs observed schedules into actions.

Output order is stable: create/resume/skip in desired-list order, then
prune in observed-list order. Schedules outside the namespace prefix are
never classified.
"""

from __future__ import annotations

from collections.abc import Sequence

from govsync.scheduling.identity import DEFAULT_NAMESPACE, derive_identities, in_namespace
from govsync.scheduling.models import (
    ActionKind,
    DesiredSchedule,
    ObservedSchedule,
    ReconciliationAction,
)


def diff(
    desired: Sequence[DesiredSchedule],
    observed: Sequence[ObservedSchedule],
    namespace: str = DEFAULT_NAMESPACE,
) -> list[ReconciliationAction]:
    """Return the ordered action list for one pass.

    An active schedule that already exists is skipped even when its cron or
    timezone changed in configuration: the control plane has no update call.

    Raises:
        ConfigurationError: two desired keys derive the same identity.
    """
    identities = derive_identities(desired, namespace)

    observed_by_id: dict[str, ObservedSchedule] = {}
    for item in observed:
        if in_namespace(item.identity, namespace):
            observed_by_id.setdefault(item.identity, item)

    actions: list[ReconciliationAction] = []
    for entry, identity in zip(desired, identities):
        current = observed_by_id.get(identity)
        if current is None:
            kind = ActionKind.CREATE
        elif current.paused:
            kind = ActionKind.RESUME
        else:
            kind = ActionKind.SKIP
        actions.append(
            ReconciliationAction(
                kind=kind,
                identity=identity,
                desired=entry,
                observed_paused=current is not None and current.paused,
            )
        )

    wanted = set(identities)
    pruned: set[str] = set()
    for item in observed:
        if not in_namespace(item.identity, namespace):
            continue
        if item.identity in wanted or item.identity in pruned:
            continue
        pruned.add(item.identity)
        actions.append(
            ReconciliationAction(kind=ActionKind.PRUNE, identity=item.identity, observed_paused=item.paused)
        )
    return actions
