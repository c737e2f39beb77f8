"""kv state and sheet rows

Revision ID: 0001_init
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "kv_state",
        sa.Column("key", sa.String(length=64), primary_key=True),
        sa.Column("value_json", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "sheet_rows",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("goal_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("goal_title", sa.Text(), nullable=False, server_default=""),
        sa.Column("goal_impact", sa.String(length=16), nullable=False, server_default=""),
        sa.Column("goal_target_date", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("task_id", sa.String(length=96), nullable=False, server_default=""),
        sa.Column("task_title", sa.Text(), nullable=False, server_default=""),
        sa.Column("task_due_date", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("task_impact", sa.String(length=16), nullable=False, server_default=""),
        sa.Column("frequency", sa.String(length=16), nullable=False, server_default=""),
        sa.Column("completed", sa.String(length=8), nullable=False, server_default="FALSE"),
    )
    op.create_index("ix_sheet_rows_position", "sheet_rows", ["position"])


def downgrade() -> None:
    op.drop_index("ix_sheet_rows_position", table_name="sheet_rows")
    op.drop_table("sheet_rows")
    op.drop_table("kv_state")
