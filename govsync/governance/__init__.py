"""Governance layer: execution grants, provisioning, sync lock."""

from govsync.governance.grants import (
    ExecutionGrantORM,
    InMemoryGrantStore,
    SqlAlchemyGrantStore,
    check_grant_scope,
    grant_id_for,
    validate_grant_for_graph,
)
from govsync.governance.lock import AdvisoryLock, LocalLock
from govsync.governance.provisioner import ensure_grant

__all__ = [
    "AdvisoryLock",
    "ExecutionGrantORM",
    "InMemoryGrantStore",
    "LocalLock",
    "SqlAlchemyGrantStore",
    "check_grant_scope",
    "ensure_grant",
    "grant_id_for",
    "validate_grant_for_graph",
]
