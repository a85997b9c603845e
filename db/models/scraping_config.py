"""
db/models/scraping_config.py

Named run-time configuration rows; at most one is active.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ScrapingConfig(Base, TimestampMixin):
    __tablename__ = "scraping_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    max_pages_per_session: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    network_timeout_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=30000)
    max_consecutive_errors: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    pause_between_pages_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=3000)
    batch_size: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    consecutive_existing_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    requests_per_minute: Mapped[int] = mapped_column(Integer, nullable=False, default=10)

    hse_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    ea_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    manual_scraping_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    scheduled_scraping_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    real_time_progress_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_scraping_configs_is_active", "is_active"),
    )
