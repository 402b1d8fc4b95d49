"""create tasks and board_settings tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_tasks"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tasks",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="BACKLOG"),
        sa.Column("importance", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("urgency", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ai_suggested_importance", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ai_suggested_urgency", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ai_explanation", sa.Text(), nullable=False, server_default=""),
        sa.Column("effort", sa.String(length=1), nullable=True),
        sa.Column("due_date", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_tasks_status", "tasks", ["status"], unique=False)
    op.create_index("ix_tasks_updated_at", "tasks", ["updated_at"], unique=False)

    op.create_table(
        "board_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("wip_limit", sa.Integer(), nullable=False),
        sa.Column("backlog_warn_threshold", sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("board_settings")
    op.drop_index("ix_tasks_updated_at", table_name="tasks")
    op.drop_index("ix_tasks_status", table_name="tasks")
    op.drop_table("tasks")
