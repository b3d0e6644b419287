"""Declarative base for govsync ORM models."""

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all govsync ORM models.

    Every table carries tenant_id. Governance schedules run under the
    system tenant 'system'; the column exists so grant and run rows can
    share tables with tenant-owned schedules later. Exposes metadata for
    Alembic.
    """

    tenant_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="system",
        index=True,
        doc="Tenant identifier; governance rows use 'system'.",
    )
