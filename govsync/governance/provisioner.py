"""Execution grant provisioner.

Runs once per reconciliation pass, before any schedule mutation. Any storage
failure, including a timeout, becomes GrantProvisionError and aborts the pass.
"""

from __future__ import annotations

import asyncio
import logging

from govsync.scheduling.errors import GrantProvisionError
from govsync.scheduling.models import ExecutionGrant
from govsync.scheduling.ports import GrantStorePort

logger = logging.getLogger(__name__)


async def ensure_grant(
    store: GrantStorePort,
    principal_id: str,
    scope: str,
    *,
    timeout_seconds: float | None = None,
) -> ExecutionGrant:
    """Ensure one grant exists for (principal_id, scope) and return it.

    Safe to call concurrently and repeatedly: the store performs a conditional
    insert and hands back the existing row on conflict.
    """
    if not principal_id or not principal_id.strip():
        raise GrantProvisionError(str(principal_id), scope, "principal_id must be non-empty")
    if not scope or not scope.strip():
        raise GrantProvisionError(principal_id, str(scope), "scope must be non-empty")
    try:
        grant = await asyncio.wait_for(
            store.upsert_grant(principal_id.strip(), scope.strip()),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        logger.error("grant_provision_timeout principal_id=%s scope=%s", principal_id, scope)
        raise GrantProvisionError(principal_id, scope, f"timed out after {timeout_seconds}s") from exc
    except GrantProvisionError:
        raise
    except Exception as exc:
        logger.exception("grant_provision_failed principal_id=%s scope=%s", principal_id, scope)
        raise GrantProvisionError(principal_id, scope, str(exc) or type(exc).__name__) from exc
    if grant.revoked:
        raise GrantProvisionError(principal_id, scope, f"grant {grant.id} is revoked")
    logger.info("grant_ready grant_id=%s principal_id=%s scope=%s", grant.id, principal_id, scope)
    return grant
