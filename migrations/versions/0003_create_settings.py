"""create settings table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0003_create_settings"
down_revision = "0002_add_link"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "settings",
        sa.Column("owner_id", sa.String(length=64), primary_key=True),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="America/Los_Angeles"),
        sa.Column("day_rollover_hour", sa.Integer(), nullable=False, server_default="17"),
        sa.Column("celebration_mode", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("settings")
