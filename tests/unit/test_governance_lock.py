"""Tests for the single-writer sync lock."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from sqlalchemy.dialects import postgresql

from govsync.db.exceptions import DatabaseError, LockTimeoutError
from govsync.governance.lock import SYNC_LOCK_NAME, AdvisoryLock, LocalLock


class _FakeConnection:
    def __init__(self, acquired: bool) -> None:
        self.acquired = acquired
        self.statements: list[str] = []

    async def scalar(self, statement: Any) -> bool:
        sql = str(statement.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))
        self.statements.append(sql)
        return self.acquired if "pg_try_advisory_lock" in sql else True


class _FakeEngine:
    def __init__(self, acquired: bool) -> None:
        self.conn = _FakeConnection(acquired)
        self.connects = 0

    def connect(self) -> _FakeEngine:
        self.connects += 1
        return self

    async def __aenter__(self) -> _FakeConnection:
        return self.conn

    async def __aexit__(self, *exc: object) -> None:
        return None


@pytest.mark.asyncio
async def test_advisory_lock_acquire_and_release_on_same_connection() -> None:
    engine = _FakeEngine(acquired=True)
    async with AdvisoryLock(engine).hold() as acquired:  # type: ignore[arg-type]
        assert acquired is True
    assert engine.connects == 1
    assert len(engine.conn.statements) == 2
    assert "pg_try_advisory_lock(hashtext('governance_sync'))" in engine.conn.statements[0]
    assert "pg_advisory_unlock(hashtext('governance_sync'))" in engine.conn.statements[1]


@pytest.mark.asyncio
async def test_advisory_lock_busy_does_not_unlock() -> None:
    engine = _FakeEngine(acquired=False)
    async with AdvisoryLock(engine).hold() as acquired:  # type: ignore[arg-type]
        assert acquired is False
    assert len(engine.conn.statements) == 1


@pytest.mark.asyncio
async def test_advisory_lock_released_on_error() -> None:
    engine = _FakeEngine(acquired=True)
    with pytest.raises(RuntimeError):
        async with AdvisoryLock(engine).hold():  # type: ignore[arg-type]
            raise RuntimeError("pass failed")
    assert "pg_advisory_unlock" in engine.conn.statements[-1]


class _HangingEngine(_FakeEngine):
    def __init__(self, *, hang_on: str) -> None:
        super().__init__(acquired=True)
        self.hang_on = hang_on
        self.exited = False

    async def __aenter__(self) -> _FakeConnection:
        if self.hang_on == "connect":
            await asyncio.Event().wait()
        return self.conn

    async def __aexit__(self, *exc: object) -> None:
        self.exited = True


@pytest.mark.asyncio
async def test_advisory_lock_connect_times_out() -> None:
    engine = _HangingEngine(hang_on="connect")
    with pytest.raises(LockTimeoutError) as exc_info:
        async with AdvisoryLock(engine, timeout_seconds=0.05).hold():  # type: ignore[arg-type]
            pytest.fail("lock should not be yielded")
    assert isinstance(exc_info.value, DatabaseError)
    assert exc_info.value.name == SYNC_LOCK_NAME
    assert engine.conn.statements == []


@pytest.mark.asyncio
async def test_advisory_lock_query_times_out_and_closes_connection() -> None:
    engine = _HangingEngine(hang_on="query")

    async def hang(statement: Any) -> bool:
        await asyncio.Event().wait()
        return True

    engine.conn.scalar = hang  # type: ignore[method-assign]
    with pytest.raises(LockTimeoutError):
        async with AdvisoryLock(engine, timeout_seconds=0.05).hold():  # type: ignore[arg-type]
            pytest.fail("lock should not be yielded")
    assert engine.exited is True


@pytest.mark.asyncio
async def test_local_lock_is_non_blocking() -> None:
    lock = LocalLock()
    async with lock.hold() as outer:
        assert outer is True
        async with lock.hold() as inner:
            assert inner is False
    async with lock.hold() as again:
        assert again is True


def test_lock_name() -> None:
    assert SYNC_LOCK_NAME == "governance_sync"
