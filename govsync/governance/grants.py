"""Execution grant persistence.

A grant id is a UUIDv5 of (principal_id, scope), so every writer derives the
same primary key and the insert can be a plain ON CONFLICT DO NOTHING.
Grants are never revoked or deleted here.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, UniqueConstraint, func, select
from sqlalchemy.dialects.postgresql import UUID, Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from govsync.db import Base
from govsync.scheduling.errors import (
    GrantNotFoundError,
    GrantRevokedError,
    GrantScopeMismatchError,
)
from govsync.scheduling.models import ExecutionGrant
from govsync.scheduling.ports import GrantStorePort

logger = logging.getLogger(__name__)

GRANT_ID_NAMESPACE = uuid.UUID("6f1c2b7e-4d0a-5e8b-9c3f-2a7d1e0b4c55")
WILDCARD_SCOPE = "graph:execute:*"


def grant_id_for(principal_id: str, scope: str) -> uuid.UUID:
    return uuid.uuid5(GRANT_ID_NAMESPACE, f"{principal_id}\n{scope}")


class ExecutionGrantORM(Base):
    """Durable authorization for a system principal to execute one scope."""

    __tablename__ = "execution_grants"
    __table_args__ = (
        UniqueConstraint("principal_id", "scope", name="uq_execution_grants_principal_scope"),
        Index("idx_execution_grants_tenant_principal", "tenant_id", "principal_id"),
        {"comment": "Execution grants authorizing scheduled runs"},
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    principal_id: Mapped[str] = mapped_column(String(255), nullable=False)
    scope: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


def _to_grant(row: ExecutionGrantORM) -> ExecutionGrant:
    return ExecutionGrant(
        id=str(row.id),
        principal_id=row.principal_id,
        scope=row.scope,
        revoked=row.revoked_at is not None,
    )


def check_grant_scope(grant: ExecutionGrant, graph_id: str) -> ExecutionGrant:
    """Accept the exact ``graph:execute:{graph_id}`` scope or the wildcard."""
    if WILDCARD_SCOPE in grant.scopes or f"graph:execute:{graph_id}" in grant.scopes:
        return grant
    raise GrantScopeMismatchError(grant.id, graph_id, grant.scopes)


class SqlAlchemyGrantStore:
    """PostgreSQL grant store (idempotent upsert)."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        tenant_id: str = "system",
    ) -> None:
        self._session_factory = session_factory
        self._tenant_id = tenant_id

    def build_upsert(self, principal_id: str, scope: str) -> Insert:
        # no conflict target: covers the primary key and (principal_id, scope)
        return (
            pg_insert(ExecutionGrantORM)
            .values(
                id=grant_id_for(principal_id, scope),
                tenant_id=self._tenant_id,
                principal_id=principal_id,
                scope=scope,
            )
            .on_conflict_do_nothing()
        )

    async def upsert_grant(self, principal_id: str, scope: str) -> ExecutionGrant:
        async with self._session_factory() as session:
            await session.execute(self.build_upsert(principal_id, scope))
            row = await session.scalar(
                select(ExecutionGrantORM).where(
                    ExecutionGrantORM.principal_id == principal_id,
                    ExecutionGrantORM.scope == scope,
                )
            )
            await session.commit()
        if row is None:
            raise RuntimeError(f"execution grant for {principal_id} ({scope}) missing after upsert")
        return _to_grant(row)

    async def get_grant(self, grant_id: str) -> ExecutionGrant | None:
        try:
            key = uuid.UUID(str(grant_id))
        except ValueError:
            return None
        async with self._session_factory() as session:
            row = await session.scalar(select(ExecutionGrantORM).where(ExecutionGrantORM.id == key))
        return _to_grant(row) if row is not None else None


class InMemoryGrantStore:
    """Grant store without a database, for tests and dry runs."""

    def __init__(self) -> None:
        self._grants: dict[str, ExecutionGrant] = {}
        self._lock = asyncio.Lock()
        self.upsert_calls = 0

    async def upsert_grant(self, principal_id: str, scope: str) -> ExecutionGrant:
        async with self._lock:
            self.upsert_calls += 1
            grant_id = str(grant_id_for(principal_id, scope))
            existing = self._grants.get(grant_id)
            if existing is not None:
                return existing
            grant = ExecutionGrant(id=grant_id, principal_id=principal_id, scope=scope)
            self._grants[grant_id] = grant
            return grant

    async def get_grant(self, grant_id: str) -> ExecutionGrant | None:
        return self._grants.get(str(grant_id))

    def mark_revoked(self, grant_id: str) -> None:
        """Simulate an external revocation."""
        grant = self._grants[grant_id]
        self._grants[grant_id] = ExecutionGrant(
            id=grant.id, principal_id=grant.principal_id, scope=grant.scope, revoked=True
        )

    def __len__(self) -> int:
        return len(self._grants)


async def validate_grant_for_graph(
    store: GrantStorePort,
    grant_id: str,
    graph_id: str,
) -> ExecutionGrant:
    """Worker-side check that a grant exists, is not revoked and covers graph_id."""
    grant = await store.get_grant(grant_id)
    if grant is None:
        raise GrantNotFoundError(grant_id)
    if grant.revoked:
        raise GrantRevokedError(grant_id)
    return check_grant_scope(grant, graph_id)
