"""create deliverables, checklist tasks and KPI / QS links

Revision ID: b3f09e61c2d7
Revises: 7c1e2a9d4b01
Create Date: 2026-10-12 10:31:05.902114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'b3f09e61c2d7'
down_revision: Union[str, Sequence[str], None] = '7c1e2a9d4b01'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


DELIVERABLE_STATUSES = (
    "not_started",
    "in_progress",
    "submitted_for_review",
    "returned_for_more_work",
    "review_complete",
    "signed",
)


def upgrade() -> None:
    statuses = ", ".join(f"'{s}'" for s in DELIVERABLE_STATUSES)

    op.create_table(
        "deliverables",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("reference", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),

        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="not_started"),

        sa.Column(
            "milestone_id",
            sa.Uuid(),
            sa.ForeignKey("milestones.id", ondelete="SET NULL", name="fk_deliverables_milestone"),
            nullable=True,
        ),

        sa.Column("supplier_signed_by", sa.Uuid(), nullable=True),
        sa.Column("supplier_signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("customer_signed_by", sa.Uuid(), nullable=True),
        sa.Column("customer_signed_at", sa.DateTime(timezone=True), nullable=True),

        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("row_version", sa.Integer(), nullable=False, server_default="1"),

        sa.UniqueConstraint("reference", name="uq_deliverables_reference"),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_deliverables_progress_range"),
        sa.CheckConstraint(f"status IN ({statuses})", name="ck_deliverables_status_allowed"),
        sa.CheckConstraint(
            "(supplier_signed_at IS NULL AND customer_signed_at IS NULL) "
            "OR status IN ('review_complete', 'signed')",
            name="ck_deliverables_signature_status",
        ),
    )
    op.create_index("ix_deliverables_milestone", "deliverables", ["milestone_id"])

    op.create_table(
        "deliverable_tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "deliverable_id",
            sa.Uuid(),
            sa.ForeignKey("deliverables.id", ondelete="CASCADE", name="fk_tasks_deliverable"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("owner", sa.Text(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.Uuid(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_deliverable_tasks_deliverable_id", "deliverable_tasks", ["deliverable_id"])

    op.create_table(
        "deliverable_kpis",
        sa.Column(
            "deliverable_id",
            sa.Uuid(),
            sa.ForeignKey("deliverables.id", ondelete="CASCADE", name="fk_deliverable_kpis_deliverable"),
            primary_key=True,
        ),
        sa.Column(
            "kpi_id",
            sa.Uuid(),
            sa.ForeignKey("kpis.id", ondelete="CASCADE", name="fk_deliverable_kpis_kpi"),
            primary_key=True,
        ),
        sa.Column("criteria_met", sa.Boolean(), nullable=True),
        sa.Column("assessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assessed_by", sa.Uuid(), nullable=True),
    )

    op.create_table(
        "deliverable_quality_standards",
        sa.Column(
            "deliverable_id",
            sa.Uuid(),
            sa.ForeignKey("deliverables.id", ondelete="CASCADE", name="fk_deliverable_qs_deliverable"),
            primary_key=True,
        ),
        sa.Column(
            "quality_standard_id",
            sa.Uuid(),
            sa.ForeignKey("quality_standards.id", ondelete="CASCADE", name="fk_deliverable_qs_standard"),
            primary_key=True,
        ),
        sa.Column("criteria_met", sa.Boolean(), nullable=True),
        sa.Column("assessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assessed_by", sa.Uuid(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("deliverable_quality_standards")
    op.drop_table("deliverable_kpis")
    op.drop_index("ix_deliverable_tasks_deliverable_id", table_name="deliverable_tasks")
    op.drop_table("deliverable_tasks")
    op.drop_index("ix_deliverables_milestone", table_name="deliverables")
    op.drop_table("deliverables")
