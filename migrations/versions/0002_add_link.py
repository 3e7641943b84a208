"""add task link"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_add_link"
down_revision = "0001_create_tasks"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("tasks", sa.Column("link", sa.Text(), nullable=True))


def downgrade() -> None:
    op.drop_column("tasks", "link")
