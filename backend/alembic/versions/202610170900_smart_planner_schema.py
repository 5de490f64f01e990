"""Smart planner schema: settings, subjects and weekly plans."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610170900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "smart_planner_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day_of_week", sa.String(length=16), nullable=False),
        sa.Column("school_start", sa.Text(), nullable=True),
        sa.Column("school_end", sa.Text(), nullable=True),
        sa.Column("rest_start", sa.Text(), nullable=True),
        sa.Column("rest_end", sa.Text(), nullable=True),
        sa.Column("dinner_start", sa.Text(), nullable=True),
        sa.Column("dinner_end", sa.Text(), nullable=True),
        sa.Column("extra_periods", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "day_of_week", name="uq_smart_planner_settings_user_day"),
    )
    op.create_index("ix_smart_planner_settings_user_id", "smart_planner_settings", ["user_id"], unique=False)

    op.create_table(
        "smart_planner_subjects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("subject", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(length=10), nullable=False, server_default=sa.text("'medium'")),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_smart_planner_subjects_user_id", "smart_planner_subjects", ["user_id"], unique=False)

    op.create_table(
        "smart_planner_plans",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("week_index", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column(
            "plan_data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("source", sa.String(length=16), nullable=False, server_default=sa.text("'deterministic'")),
        sa.Column("fallback_used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "week_index", "year", name="uq_smart_planner_plans_user_week"),
    )
    op.create_index("ix_smart_planner_plans_user_id", "smart_planner_plans", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_smart_planner_plans_user_id", table_name="smart_planner_plans")
    op.drop_table("smart_planner_plans")
    op.drop_index("ix_smart_planner_subjects_user_id", table_name="smart_planner_subjects")
    op.drop_table("smart_planner_subjects")
    op.drop_index("ix_smart_planner_settings_user_id", table_name="smart_planner_settings")
    op.drop_table("smart_planner_settings")
