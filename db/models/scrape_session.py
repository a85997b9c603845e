"""
db/models/scrape_session.py

Persistent snapshot of one enforcement scraping session.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Boolean, Date, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ScrapeSessionRecord(Base, TimestampMixin):
    __tablename__ = "scrape_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    session_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    agency: Mapped[str] = mapped_column(String(16), nullable=False, comment="hse, ea")
    enforcement_type: Mapped[str] = mapped_column(String(16), nullable=False, comment="case, notice")
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="pending, running, completed, failed, stopped",
    )
    trigger: Mapped[str | None] = mapped_column(String(16), nullable=True)
    actor: Mapped[str | None] = mapped_column(String(255), nullable=True)

    start_page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    database: Mapped[str | None] = mapped_column(String(32), nullable=True)
    country: Mapped[str | None] = mapped_column(String(32), nullable=True)
    date_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    action_types: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    batch_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    items_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_existing: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    batches_or_pages_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stop_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_scrape_sessions_status", "status"),
        Index("ix_scrape_sessions_agency_type", "agency", "enforcement_type"),
        Index("ix_scrape_sessions_created_at", "created_at"),
    )
