"""create enforcement scraping tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "scraping_configs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("max_pages_per_session", sa.Integer(), nullable=False),
        sa.Column("network_timeout_ms", sa.Integer(), nullable=False),
        sa.Column("max_consecutive_errors", sa.Integer(), nullable=False),
        sa.Column("pause_between_pages_ms", sa.Integer(), nullable=False),
        sa.Column("batch_size", sa.Integer(), nullable=False),
        sa.Column("consecutive_existing_threshold", sa.Integer(), nullable=False),
        sa.Column("requests_per_minute", sa.Integer(), nullable=False),
        sa.Column("hse_enabled", sa.Boolean(), nullable=False),
        sa.Column("ea_enabled", sa.Boolean(), nullable=False),
        sa.Column("manual_scraping_enabled", sa.Boolean(), nullable=False),
        sa.Column("scheduled_scraping_enabled", sa.Boolean(), nullable=False),
        sa.Column("real_time_progress_enabled", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_scraping_configs_is_active", "scraping_configs", ["is_active"], unique=False)

    op.create_table(
        "scrape_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", sa.String(length=32), nullable=False),
        sa.Column("agency", sa.String(length=16), nullable=False, comment="hse, ea"),
        sa.Column("enforcement_type", sa.String(length=16), nullable=False, comment="case, notice"),
        sa.Column(
            "status",
            sa.String(length=16),
            nullable=False,
            comment="pending, running, completed, failed, stopped",
        ),
        sa.Column("trigger", sa.String(length=16), nullable=True),
        sa.Column("actor", sa.String(length=255), nullable=True),
        sa.Column("start_page", sa.Integer(), nullable=True),
        sa.Column("current_page", sa.Integer(), nullable=True),
        sa.Column("max_pages", sa.Integer(), nullable=True),
        sa.Column("database", sa.String(length=32), nullable=True),
        sa.Column("country", sa.String(length=32), nullable=True),
        sa.Column("date_from", sa.Date(), nullable=True),
        sa.Column("date_to", sa.Date(), nullable=True),
        sa.Column("action_types", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("batch_complete", sa.Boolean(), nullable=False),
        sa.Column("items_found", sa.Integer(), nullable=False),
        sa.Column("items_processed", sa.Integer(), nullable=False),
        sa.Column("items_created", sa.Integer(), nullable=False),
        sa.Column("items_existing", sa.Integer(), nullable=False),
        sa.Column("errors_count", sa.Integer(), nullable=False),
        sa.Column("batches_or_pages_processed", sa.Integer(), nullable=False),
        sa.Column("stop_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("session_id"),
    )
    op.create_index("ix_scrape_sessions_status", "scrape_sessions", ["status"], unique=False)
    op.create_index(
        "ix_scrape_sessions_agency_type",
        "scrape_sessions",
        ["agency", "enforcement_type"],
        unique=False,
    )
    op.create_index("ix_scrape_sessions_created_at", "scrape_sessions", ["created_at"], unique=False)

    op.create_table(
        "processing_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", sa.String(length=32), nullable=False),
        sa.Column("agency", sa.String(length=16), nullable=False),
        sa.Column("enforcement_type", sa.String(length=16), nullable=False),
        sa.Column("batch_or_page", sa.Integer(), nullable=False),
        sa.Column("action_type", sa.String(length=64), nullable=True),
        sa.Column("items_found", sa.Integer(), nullable=False),
        sa.Column("items_created", sa.Integer(), nullable=False),
        sa.Column("items_existing", sa.Integer(), nullable=False),
        sa.Column("items_failed", sa.Integer(), nullable=False),
        sa.Column(
            "creation_errors",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Error summaries for records that failed to ingest",
        ),
        sa.Column(
            "scraped_items",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Compact summaries: regulator_id, subject_name, action_date, amount",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_processing_logs_session_id", "processing_logs", ["session_id"], unique=False)
    op.create_index(
        "ix_processing_logs_session_batch",
        "processing_logs",
        ["session_id", "batch_or_page"],
        unique=False,
    )

    op.create_table(
        "enforcement_records",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("agency", sa.String(length=16), nullable=False),
        sa.Column("enforcement_type", sa.String(length=16), nullable=False),
        sa.Column(
            "regulator_id",
            sa.String(length=64),
            nullable=False,
            comment="Regulator-assigned case, notice or registration number",
        ),
        sa.Column("offender_name", sa.String(length=255), nullable=False),
        sa.Column("action_date", sa.Date(), nullable=True),
        sa.Column("action_type", sa.String(length=120), nullable=True),
        sa.Column("fine_amount", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column("costs_amount", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column("regulator_url", sa.Text(), nullable=True),
        sa.Column(
            "attributes",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Agency-specific detail fields",
        ),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "agency",
            "enforcement_type",
            "regulator_id",
            name="uq_enforcement_records_natural_key",
        ),
    )
    op.create_index(
        "ix_enforcement_records_offender_name",
        "enforcement_records",
        ["offender_name"],
        unique=False,
    )
    op.create_index(
        "ix_enforcement_records_action_date",
        "enforcement_records",
        ["action_date"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_enforcement_records_action_date", table_name="enforcement_records")
    op.drop_index("ix_enforcement_records_offender_name", table_name="enforcement_records")
    op.drop_table("enforcement_records")
    op.drop_index("ix_processing_logs_session_batch", table_name="processing_logs")
    op.drop_index("ix_processing_logs_session_id", table_name="processing_logs")
    op.drop_table("processing_logs")
    op.drop_index("ix_scrape_sessions_created_at", table_name="scrape_sessions")
    op.drop_index("ix_scrape_sessions_agency_type", table_name="scrape_sessions")
    op.drop_index("ix_scrape_sessions_status", table_name="scrape_sessions")
    op.drop_table("scrape_sessions")
    op.drop_index("ix_scraping_configs_is_active", table_name="scraping_configs")
    op.drop_table("scraping_configs")
