"""Create execution_grants and schedule_runs.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "execution_grants",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False, server_default="system"),
        sa.Column("principal_id", sa.String(255), nullable=False),
        sa.Column("scope", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("principal_id", "scope", name="uq_execution_grants_principal_scope"),
        comment="Execution grants authorizing scheduled runs",
    )
    op.create_index(
        "idx_execution_grants_tenant_principal",
        "execution_grants",
        ["tenant_id", "principal_id"],
    )
    op.create_index(op.f("ix_execution_grants_tenant_id"), "execution_grants", ["tenant_id"])

    op.create_table(
        "schedule_runs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False, server_default="system"),
        sa.Column("schedule_id", sa.String(255), nullable=False),
        sa.Column("run_id", sa.String(64), nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("trace_id", sa.String(255), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("schedule_id", "scheduled_for", name="uq_schedule_runs_slot"),
        sa.CheckConstraint(
            "status IN ('pending', 'running', 'success', 'error', 'skipped')",
            name="ck_schedule_runs_status",
        ),
        comment="Execution ledger for scheduled governance runs",
    )
    op.create_index("idx_schedule_runs_run_id", "schedule_runs", ["run_id"])
    op.create_index(
        "idx_schedule_runs_tenant_schedule",
        "schedule_runs",
        ["tenant_id", "schedule_id"],
    )
    op.create_index(op.f("ix_schedule_runs_tenant_id"), "schedule_runs", ["tenant_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_schedule_runs_tenant_id"), table_name="schedule_runs")
    op.drop_index("idx_schedule_runs_tenant_schedule", table_name="schedule_runs")
    op.drop_index("idx_schedule_runs_run_id", table_name="schedule_runs")
    op.drop_table("schedule_runs")
    op.drop_index(op.f("ix_execution_grants_tenant_id"), table_name="execution_grants")
    op.drop_index("idx_execution_grants_tenant_principal", table_name="execution_grants")
    op.drop_table("execution_grants")
