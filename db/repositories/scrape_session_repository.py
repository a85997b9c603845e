"""
Repository for scrape session snapshots and their processing logs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.processing_log import ProcessingLog
from db.models.scrape_session import ScrapeSessionRecord


class ScrapeSessionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_session_id(self, session_id: str) -> ScrapeSessionRecord | None:
        stmt = select(ScrapeSessionRecord).where(ScrapeSessionRecord.session_id == session_id)
        return self._session.scalars(stmt).first()

    def upsert_snapshot(self, *, session_id: str, values: dict[str, Any]) -> ScrapeSessionRecord:
        """
        Insert the session row on first save, overwrite its columns afterwards.
        """

        record = self.get_by_session_id(session_id)
        if record is None:
            record = ScrapeSessionRecord(session_id=session_id)
            self._session.add(record)
        for key, value in values.items():
            setattr(record, key, value)
        self._session.flush()
        return record

    def list_sessions(
        self,
        *,
        statuses: set[str] | None = None,
        agency: str | None = None,
        limit: int = 100,
    ) -> list[ScrapeSessionRecord]:
        stmt: Select[tuple[ScrapeSessionRecord]] = select(ScrapeSessionRecord)
        if statuses:
            stmt = stmt.where(ScrapeSessionRecord.status.in_(sorted(statuses)))
        if agency:
            stmt = stmt.where(ScrapeSessionRecord.agency == agency)

        stmt = stmt.order_by(ScrapeSessionRecord.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def add_processing_log(
        self,
        *,
        session_id: str,
        agency: str,
        enforcement_type: str,
        batch_or_page: int,
        action_type: str | None,
        items_found: int,
        items_created: int,
        items_existing: int,
        items_failed: int,
        creation_errors: list[str],
        scraped_items: list[dict[str, Any]],
        created_at: datetime | None = None,
    ) -> ProcessingLog:
        log = ProcessingLog(
            session_id=session_id,
            agency=agency,
            enforcement_type=enforcement_type,
            batch_or_page=batch_or_page,
            action_type=action_type,
            items_found=items_found,
            items_created=items_created,
            items_existing=items_existing,
            items_failed=items_failed,
            creation_errors=creation_errors,
            scraped_items=scraped_items,
        )
        if created_at is not None:
            log.created_at = created_at
        self._session.add(log)
        self._session.flush()
        return log

    def list_processing_logs(self, session_id: str) -> list[ProcessingLog]:
        stmt = (
            select(ProcessingLog)
            .where(ProcessingLog.session_id == session_id)
            .order_by(ProcessingLog.created_at.asc(), ProcessingLog.batch_or_page.asc())
        )
        return list(self._session.scalars(stmt).all())
