"""Create articles, notifications and job_runs tables"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "articles",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("slug", sa.String(length=128), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("excerpt", sa.String(length=512), nullable=True),
        sa.Column("brand", sa.String(length=32), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("is_ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("source_url", sa.String(length=2048), nullable=True),
        sa.Column("reading_time_minutes", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("slug", name="uq_articles_slug"),
        sa.UniqueConstraint("source_url", name="uq_articles_source_url"),
    )
    op.create_index(
        "ix_articles_brand_generated",
        "articles",
        ["brand", "is_ai_generated", "created_at"],
        unique=False,
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("message", sa.String(length=1024), nullable=False),
        sa.Column("link", sa.String(length=512), nullable=True),
        sa.Column("brand", sa.String(length=32), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_notifications_brand_created", "notifications", ["brand", "created_at"], unique=False)

    op.create_table(
        "job_runs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("stage", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("task_name", sa.String(length=100), nullable=True),
        sa.Column("engine", sa.String(length=32), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.String(length=512), nullable=True),
        sa.Column("trace_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_job_runs_stage_status", "job_runs", ["stage", "status"], unique=False)
    op.create_index("ix_job_runs_trace", "job_runs", ["trace_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_job_runs_trace", table_name="job_runs")
    op.drop_index("ix_job_runs_stage_status", table_name="job_runs")
    op.drop_table("job_runs")
    op.drop_index("ix_notifications_brand_created", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_articles_brand_generated", table_name="articles")
    op.drop_table("articles")
