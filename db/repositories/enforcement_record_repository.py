"""
Repository for enforcement records with atomic create-or-conflict inserts.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.enforcement_record import NATURAL_KEY_CONSTRAINT, EnforcementRecord
from db.repositories.errors import RecordConflictError


class EnforcementRecordRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(
        self,
        *,
        agency: str,
        enforcement_type: str,
        regulator_id: str,
        offender_name: str,
        action_date: date | None = None,
        action_type: str | None = None,
        fine_amount: Decimal | None = None,
        costs_amount: Decimal | None = None,
        regulator_url: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> EnforcementRecord:
        now = datetime.now(timezone.utc)
        stmt = (
            insert(EnforcementRecord)
            .values(
                agency=agency,
                enforcement_type=enforcement_type,
                regulator_id=regulator_id,
                offender_name=offender_name,
                action_date=action_date,
                action_type=action_type,
                fine_amount=fine_amount,
                costs_amount=costs_amount,
                regulator_url=regulator_url,
                attributes=attributes,
                last_synced_at=now,
            )
            .on_conflict_do_nothing(constraint=NATURAL_KEY_CONSTRAINT)
            .returning(EnforcementRecord.id)
        )
        inserted_id = self._session.execute(stmt).scalar_one_or_none()
        if inserted_id is None:
            raise RecordConflictError(agency, enforcement_type, regulator_id)

        record = self._session.get(EnforcementRecord, inserted_id)
        if record is None:
            raise RuntimeError(f"Inserted enforcement record vanished id={inserted_id}")
        return record

    def find_by_natural_key(
        self,
        *,
        agency: str,
        enforcement_type: str,
        regulator_id: str,
    ) -> EnforcementRecord | None:
        stmt = select(EnforcementRecord).where(
            EnforcementRecord.agency == agency,
            EnforcementRecord.enforcement_type == enforcement_type,
            EnforcementRecord.regulator_id == regulator_id,
        )
        return self._session.scalars(stmt).first()

    def touch_last_synced(self, record: EnforcementRecord) -> EnforcementRecord:
        record.last_synced_at = datetime.now(timezone.utc)
        self._session.flush()
        return record
