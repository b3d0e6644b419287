"""Single-writer guard for sync passes.

A pass that cannot take the lock is skipped, not queued.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Awaitable, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine

from govsync.db.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)

SYNC_LOCK_NAME = "governance_sync"

T = TypeVar("T")


class AdvisoryLock:
    """Non-blocking PostgreSQL session advisory lock on a pinned connection.

    Connecting, locking and unlocking each run under ``timeout_seconds``;
    exceeding it raises LockTimeoutError.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        name: str = SYNC_LOCK_NAME,
        *,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._engine = engine
        self._name = name
        self._timeout = timeout_seconds

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("sync_lock_timeout name=%s timeout=%s", self._name, self._timeout)
            raise LockTimeoutError(self._name, self._timeout) from exc

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        """Yield True when the lock was acquired, False when another holder has it.

        Lock and unlock run on the same connection; session advisory locks are
        released only by the session that took them.
        """
        async with AsyncExitStack() as stack:
            conn = await self._bounded(stack.enter_async_context(self._engine.connect()))
            acquired = bool(
                await self._bounded(conn.scalar(select(func.pg_try_advisory_lock(func.hashtext(self._name)))))
            )
            if not acquired:
                logger.info("sync_lock_busy name=%s", self._name)
            try:
                yield acquired
            finally:
                if acquired:
                    await self._bounded(conn.scalar(select(func.pg_advisory_unlock(func.hashtext(self._name)))))


class LocalLock:
    """In-process equivalent of AdvisoryLock for tests and dry runs."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        if self._lock.locked():
            yield False
            return
        async with self._lock:
            yield True
