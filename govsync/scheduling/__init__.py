"""Governance schedule reconciliation core: identities, diff, driver, policy."""

from govsync.scheduling.diff import diff
from govsync.scheduling.errors import (
    ActionApplyError,
    ConfigurationError,
    GovSyncError,
    GrantNotFoundError,
    GrantProvisionError,
    GrantRevokedError,
    GrantScopeMismatchError,
    ScheduleConflictError,
    ScheduleControlError,
    ScheduleControlUnavailableError,
    ScheduleNotFoundError,
)
from govsync.scheduling.identity import (
    DEFAULT_NAMESPACE,
    derive_identities,
    idempotency_key,
    schedule_identity,
)
from govsync.scheduling.models import (
    ActionKind,
    ActionOutcome,
    DesiredSchedule,
    ExecutionGrant,
    ObservedSchedule,
    OutcomeKind,
    OverlapPolicy,
    ReconciliationAction,
    ReconciliationOutcome,
    SchedulePolicy,
    ScheduledRunInput,
    SyncRequest,
)
from govsync.scheduling.policy import GOVERNANCE_POLICY, validate_policy
from govsync.scheduling.ports import GrantStorePort, ScheduleControlPort
from govsync.scheduling.reconciler import Reconciler, reconcile

__all__ = [
    "ActionApplyError",
    "ActionKind",
    "ActionOutcome",
    "ConfigurationError",
    "DEFAULT_NAMESPACE",
    "DesiredSchedule",
    "ExecutionGrant",
    "GOVERNANCE_POLICY",
    "GovSyncError",
    "GrantNotFoundError",
    "GrantProvisionError",
    "GrantRevokedError",
    "GrantScopeMismatchError",
    "GrantStorePort",
    "ObservedSchedule",
    "OutcomeKind",
    "OverlapPolicy",
    "ReconciliationAction",
    "ReconciliationOutcome",
    "Reconciler",
    "ScheduleConflictError",
    "ScheduleControlError",
    "ScheduleControlPort",
    "ScheduleControlUnavailableError",
    "ScheduleNotFoundError",
    "SchedulePolicy",
    "ScheduledRunInput",
    "SyncRequest",
    "derive_identities",
    "diff",
    "idempotency_key",
    "reconcile",
    "schedule_identity",
    "validate_policy",
]
