"""Stable identities for schedules and activity side effects.

Everything here is a pure function of its arguments so that orchestration
code can call it during replay.
"""

from __future__ import annotations

from collections.abc import Iterable

from govsync.scheduling.errors import ConfigurationError
from govsync.scheduling.models import DesiredSchedule

DEFAULT_NAMESPACE = "governance:"


def schedule_identity(key: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Derive the engine schedule id for a desired key: ``{namespace}{key_lowercase}``."""
    if not isinstance(key, str) or not key.strip():
        raise ConfigurationError("schedule key must be a non-empty string")
    return f"{namespace}{key.strip().lower()}"


def derive_identities(
    desired: Iterable[DesiredSchedule],
    namespace: str = DEFAULT_NAMESPACE,
) -> list[str]:
    """Derive identities in input order, rejecting any two keys that collide."""
    seen: dict[str, str] = {}
    identities: list[str] = []
    for entry in desired:
        identity = schedule_identity(entry.key, namespace)
        if identity in seen:
            raise ConfigurationError(
                f"duplicate schedule identity {identity!r} (keys {seen[identity]!r} and {entry.key!r})"
            )
        seen[identity] = entry.key
        identities.append(identity)
    return identities


def in_namespace(identity: str, namespace: str = DEFAULT_NAMESPACE) -> bool:
    return identity.startswith(namespace)


def idempotency_key(workflow_id: str, step: str, sequence: int = 0) -> str:
    """Key used by activities to de-duplicate a side effect at the point of write."""
    if not workflow_id or not step:
        raise ValueError("workflow_id and step must be non-empty")
    if sequence < 0:
        raise ValueError("sequence must be >= 0")
    return f"{workflow_id}:{step}:{sequence}"
