"""
db/models/enforcement_record.py

Enforcement actions (court cases, cautions, notices) ingested from regulators.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Date, DateTime, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

NATURAL_KEY_CONSTRAINT = "uq_enforcement_records_natural_key"


class EnforcementRecord(Base, TimestampMixin):
    __tablename__ = "enforcement_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    agency: Mapped[str] = mapped_column(String(16), nullable=False)
    enforcement_type: Mapped[str] = mapped_column(String(16), nullable=False)
    regulator_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Regulator-assigned case, notice or registration number",
    )
    offender_name: Mapped[str] = mapped_column(String(255), nullable=False)
    action_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    action_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    fine_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    costs_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    regulator_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    attributes: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Agency-specific detail fields",
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("agency", "enforcement_type", "regulator_id", name=NATURAL_KEY_CONSTRAINT),
        Index("ix_enforcement_records_offender_name", "offender_name"),
        Index("ix_enforcement_records_action_date", "action_date"),
    )
