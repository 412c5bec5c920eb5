"""create runs, run_events and friction_points tables

Revision ID: 1c4e7a2b9d10
Revises:
Create Date: 2026-02-14 09:41:12.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from db.utils.json_type import JSONType
from db.utils.uuid_type import UUIDType


# revision identifiers, used by Alembic.
revision: str = '1c4e7a2b9d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "runs",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("goal", sa.Text(), nullable=False),
        sa.Column("persona_id", sa.String(length=64), nullable=False),
        sa.Column("persona_name", sa.String(length=128), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("summary", JSONType(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_runs_created_at", "runs", ["created_at"])

    op.create_table(
        "run_events",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("run_id", UUIDType(), sa.ForeignKey("runs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("data", JSONType(), nullable=False),
        sa.Column("screenshot_path", sa.String(length=512), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_run_events_run_id", "run_events", ["run_id"])
    op.create_index("idx_run_events_run_id_sequence", "run_events", ["run_id", "sequence"], unique=True)

    op.create_table(
        "friction_points",
        sa.Column("id", UUIDType(), primary_key=True, nullable=False),
        sa.Column("run_id", UUIDType(), sa.ForeignKey("runs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("pattern", sa.String(length=32), nullable=True),
        sa.Column("element", JSONType(), nullable=True),
        sa.Column("heuristic_violation", sa.Text(), nullable=True),
        sa.Column("wcag_violation", sa.Text(), nullable=True),
        sa.Column("screenshot_path", sa.String(length=512), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_friction_points_run_id", "friction_points", ["run_id"])


def downgrade() -> None:
    op.drop_index("ix_friction_points_run_id", table_name="friction_points")
    op.drop_table("friction_points")
    op.drop_index("idx_run_events_run_id_sequence", table_name="run_events")
    op.drop_index("ix_run_events_run_id", table_name="run_events")
    op.drop_table("run_events")
    op.drop_index("idx_runs_created_at", table_name="runs")
    op.drop_table("runs")
