"""add submit / delivery audit columns to deliverables

Revision ID: e41d8a27f5c3
Revises: b3f09e61c2d7
Create Date: 2026-10-19 09:12:44.381502

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'e41d8a27f5c3'
down_revision: Union[str, Sequence[str], None] = 'b3f09e61c2d7'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("deliverables", sa.Column("submitted_by", sa.Uuid(), nullable=True))
    op.add_column("deliverables", sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True))
    op.add_column("deliverables", sa.Column("delivered_by", sa.Uuid(), nullable=True))
    op.add_column("deliverables", sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    op.drop_column("deliverables", "delivered_at")
    op.drop_column("deliverables", "delivered_by")
    op.drop_column("deliverables", "submitted_at")
    op.drop_column("deliverables", "submitted_by")
