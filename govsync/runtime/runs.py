"""Run ledger: one row per (schedule_id, scheduled_for) slot.

Creation is a conditional insert, so a re-delivered firing lands on the
existing row. Status updates only move forward (see RunStatus).
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint, Update, func, select, update
from sqlalchemy.dialects.postgresql import UUID, Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from govsync.db import Base
from govsync.runtime.types import RunStatus, can_transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleRun:
    """Ledger entry for one triggered run."""

    schedule_id: str
    run_id: str
    scheduled_for: datetime
    status: RunStatus = RunStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    trace_id: str | None = None
    error_message: str | None = None


@runtime_checkable
class RunStorePort(Protocol):
    async def create_run(self, schedule_id: str, run_id: str, scheduled_for: datetime) -> ScheduleRun:
        """Insert the slot row if absent and return the stored row."""
        ...

    async def mark_run(
        self,
        run_id: str,
        status: RunStatus,
        *,
        trace_id: str | None = None,
        error_message: str | None = None,
    ) -> bool:
        """Move the run to ``status`` if allowed; False when it was a no-op."""
        ...


def sources_for(target: RunStatus) -> list[RunStatus]:
    """Statuses a run may be in for an update to ``target`` to apply."""
    return [status for status in RunStatus if can_transition(status, target)]


class ScheduleRunORM(Base):
    """Ledger of triggered governance runs."""

    __tablename__ = "schedule_runs"
    __table_args__ = (
        UniqueConstraint("schedule_id", "scheduled_for", name="uq_schedule_runs_slot"),
        Index("idx_schedule_runs_run_id", "run_id"),
        Index("idx_schedule_runs_tenant_schedule", "tenant_id", "schedule_id"),
        {"comment": "Execution ledger for scheduled governance runs"},
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    schedule_id: Mapped[str] = mapped_column(String(255), nullable=False)
    run_id: Mapped[str] = mapped_column(String(64), nullable=False)
    scheduled_for: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RunStatus.PENDING.value)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    trace_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


def _to_run(row: ScheduleRunORM) -> ScheduleRun:
    return ScheduleRun(
        schedule_id=row.schedule_id,
        run_id=row.run_id,
        scheduled_for=row.scheduled_for,
        status=RunStatus(row.status),
        started_at=row.started_at,
        completed_at=row.completed_at,
        trace_id=row.trace_id,
        error_message=row.error_message,
    )


class SqlAlchemyRunStore:
    """PostgreSQL run ledger."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        tenant_id: str = "system",
    ) -> None:
        self._session_factory = session_factory
        self._tenant_id = tenant_id

    def build_create(self, schedule_id: str, run_id: str, scheduled_for: datetime) -> Insert:
        return (
            pg_insert(ScheduleRunORM)
            .values(
                id=uuid.uuid4(),
                tenant_id=self._tenant_id,
                schedule_id=schedule_id,
                run_id=run_id,
                scheduled_for=scheduled_for,
                status=RunStatus.PENDING.value,
            )
            .on_conflict_do_nothing(index_elements=["schedule_id", "scheduled_for"])
        )

    def build_mark(
        self,
        run_id: str,
        status: RunStatus,
        *,
        now: datetime,
        trace_id: str | None = None,
        error_message: str | None = None,
    ) -> Update:
        values: dict[str, object] = {"status": status.value}
        if status is RunStatus.RUNNING:
            values["started_at"] = now
            values["attempt_count"] = ScheduleRunORM.attempt_count + 1
        else:
            values["completed_at"] = now
            values["error_message"] = error_message
        if trace_id is not None:
            values["trace_id"] = trace_id
        allowed = [source.value for source in sources_for(status)]
        return (
            update(ScheduleRunORM)
            .where(ScheduleRunORM.run_id == run_id, ScheduleRunORM.status.in_(allowed))
            .values(**values)
        )

    async def create_run(self, schedule_id: str, run_id: str, scheduled_for: datetime) -> ScheduleRun:
        async with self._session_factory() as session:
            await session.execute(self.build_create(schedule_id, run_id, scheduled_for))
            row = await session.scalar(
                select(ScheduleRunORM).where(
                    ScheduleRunORM.schedule_id == schedule_id,
                    ScheduleRunORM.scheduled_for == scheduled_for,
                )
            )
            await session.commit()
        if row is None:
            raise RuntimeError(f"schedule run for {schedule_id} at {scheduled_for.isoformat()} missing after insert")
        logger.debug("Created or retrieved run %s for %s", row.run_id, schedule_id)
        return _to_run(row)

    async def mark_run(
        self,
        run_id: str,
        status: RunStatus,
        *,
        trace_id: str | None = None,
        error_message: str | None = None,
    ) -> bool:
        statement = self.build_mark(
            run_id,
            status,
            now=datetime.now(timezone.utc),
            trace_id=trace_id,
            error_message=error_message,
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
            await session.commit()
        changed = bool(result.rowcount)
        if not changed:
            logger.info("Run %s not moved to %s (already past it)", run_id, status.value)
        return changed


class InMemoryRunStore:
    """Run ledger without a database, for tests."""

    def __init__(self) -> None:
        self._runs: dict[tuple[str, datetime], ScheduleRun] = {}
        self._by_run_id: dict[str, tuple[str, datetime]] = {}
        self._lock = asyncio.Lock()

    async def create_run(self, schedule_id: str, run_id: str, scheduled_for: datetime) -> ScheduleRun:
        async with self._lock:
            slot = (schedule_id, scheduled_for)
            existing = self._runs.get(slot)
            if existing is not None:
                return existing
            run = ScheduleRun(schedule_id=schedule_id, run_id=run_id, scheduled_for=scheduled_for)
            self._runs[slot] = run
            self._by_run_id[run_id] = slot
            return run

    async def mark_run(
        self,
        run_id: str,
        status: RunStatus,
        *,
        trace_id: str | None = None,
        error_message: str | None = None,
    ) -> bool:
        async with self._lock:
            slot = self._by_run_id.get(run_id)
            if slot is None:
                return False
            run = self._runs[slot]
            if not can_transition(run.status, status):
                return False
            now = datetime.now(timezone.utc)
            if status is RunStatus.RUNNING:
                run = replace(run, status=status, started_at=now)
            else:
                run = replace(run, status=status, completed_at=now, error_message=error_message)
            if trace_id is not None:
                run = replace(run, trace_id=trace_id)
            self._runs[slot] = run
            return True

    def get(self, run_id: str) -> ScheduleRun | None:
        slot = self._by_run_id.get(run_id)
        return self._runs.get(slot) if slot is not None else None

    def __len__(self) -> int:
        return len(self._runs)
