"""
SQLAlchemy-backed storage for sessions, processing logs, configuration and records.

Every call opens its own DB session so worker threads never share one.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.scrape_session import (
    EnforcementRecordInput,
    ProcessingLogEntry,
    ScrapeSession,
    StoredEnforcementRecord,
)
from app.scraping.config.models import ScrapingRuntimeConfig
from app.scraping.errors import DuplicateError, ProcessingError
from app.scraping.storage.base import SessionStore
from app.scraping.types import (
    NaturalKey,
    PageLocator,
    RangeLocator,
    ScrapedItemSummary,
    SessionStatus,
)
from db.models.enforcement_record import EnforcementRecord
from db.models.processing_log import ProcessingLog
from db.models.scrape_session import ScrapeSessionRecord
from db.models.scraping_config import ScrapingConfig
from db.repositories.enforcement_record_repository import EnforcementRecordRepository
from db.repositories.errors import RecordConflictError
from db.repositories.scrape_session_repository import ScrapeSessionRepository
from db.repositories.scraping_config_repository import ScrapingConfigRepository

SessionFactory = Callable[[], Session]


def _default_session_factory() -> SessionFactory:
    from db.session import SessionLocal

    return SessionLocal


class SQLAlchemySessionStore(SessionStore):
    """
    Persist session snapshots and processing logs through the repository.
    """

    def __init__(self, *, session_factory: SessionFactory | None = None) -> None:
        self._session_factory = session_factory or _default_session_factory()

    def save_session(self, session: ScrapeSession) -> None:
        with self._session_factory() as db:
            try:
                ScrapeSessionRepository(db).upsert_snapshot(
                    session_id=session.session_id,
                    values=_session_columns(session),
                )
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise

    def get_session(self, session_id: str) -> ScrapeSession | None:
        with self._session_factory() as db:
            record = ScrapeSessionRepository(db).get_by_session_id(session_id)
            return _to_domain_session(record) if record is not None else None

    def list_sessions(self, *, active_only: bool = False, limit: int = 100) -> list[ScrapeSession]:
        statuses = set(SessionStatus.ACTIVE) if active_only else None
        with self._session_factory() as db:
            records = ScrapeSessionRepository(db).list_sessions(statuses=statuses, limit=limit)
            return [_to_domain_session(record) for record in records]

    def append_processing_log(self, entry: ProcessingLogEntry) -> None:
        with self._session_factory() as db:
            try:
                ScrapeSessionRepository(db).add_processing_log(
                    session_id=entry.session_id,
                    agency=entry.agency,
                    enforcement_type=entry.enforcement_type,
                    batch_or_page=entry.batch_or_page,
                    action_type=entry.action_type,
                    items_found=entry.items_found,
                    items_created=entry.items_created,
                    items_existing=entry.items_existing,
                    items_failed=entry.items_failed,
                    creation_errors=list(entry.creation_errors),
                    scraped_items=[item.to_dict() for item in entry.scraped_items],
                    created_at=entry.created_at,
                )
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise

    def list_processing_logs(self, session_id: str) -> list[ProcessingLogEntry]:
        with self._session_factory() as db:
            logs = ScrapeSessionRepository(db).list_processing_logs(session_id)
            return [_to_domain_log(log) for log in logs]


class SQLAlchemyEnforcementRecordStore:
    """
    Enforcement record repository adapter used by the upsert pipeline.
    """

    def __init__(self, *, session_factory: SessionFactory | None = None) -> None:
        self._session_factory = session_factory or _default_session_factory()

    def create(self, record: EnforcementRecordInput) -> StoredEnforcementRecord:
        key = record.natural_key
        with self._session_factory() as db:
            try:
                created = EnforcementRecordRepository(db).create(
                    agency=key.agency,
                    enforcement_type=key.enforcement_type,
                    regulator_id=key.regulator_id,
                    offender_name=record.offender_name,
                    action_date=record.action_date,
                    action_type=record.action_type,
                    fine_amount=record.fine_amount,
                    costs_amount=record.costs_amount,
                    regulator_url=record.regulator_url,
                    attributes=_json_safe(record.attributes),
                )
                db.commit()
                return _to_stored(created)
            except RecordConflictError as exc:
                db.rollback()
                raise DuplicateError(key) from exc
            except SQLAlchemyError as exc:
                db.rollback()
                raise ProcessingError(f"Failed to persist record {key.regulator_id}: {exc}") from exc

    def find_by_natural_key(self, natural_key: NaturalKey) -> StoredEnforcementRecord | None:
        with self._session_factory() as db:
            found = EnforcementRecordRepository(db).find_by_natural_key(
                agency=natural_key.agency,
                enforcement_type=natural_key.enforcement_type,
                regulator_id=natural_key.regulator_id,
            )
            return _to_stored(found) if found is not None else None

    def touch_last_synced(self, entity: StoredEnforcementRecord) -> StoredEnforcementRecord:
        with self._session_factory() as db:
            try:
                record = db.get(EnforcementRecord, entity.id)
                if record is None:
                    return entity
                touched = EnforcementRecordRepository(db).touch_last_synced(record)
                db.commit()
                return _to_stored(touched)
            except SQLAlchemyError:
                db.rollback()
                raise


class SQLAlchemyConfigSource:
    """
    Reads the active (or an explicitly named) scraping_configs row.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory | None = None,
        config_name: str | None = None,
    ) -> None:
        self._session_factory = session_factory or _default_session_factory()
        self._config_name = config_name

    def get_active_config(self) -> ScrapingRuntimeConfig | None:
        with self._session_factory() as db:
            repository = ScrapingConfigRepository(db)
            row = repository.get_by_name(self._config_name) if self._config_name else repository.get_active()
            return _to_runtime_config(row) if row is not None else None


def _session_columns(session: ScrapeSession) -> dict[str, Any]:
    values: dict[str, Any] = {
        "agency": session.agency,
        "enforcement_type": session.enforcement_type,
        "status": session.status,
        "trigger": session.trigger,
        "actor": session.actor,
        "items_found": session.items_found,
        "items_processed": session.items_processed,
        "items_created": session.items_created,
        "items_existing": session.items_existing,
        "errors_count": session.errors_count,
        "batches_or_pages_processed": session.batches_or_pages_processed,
        "stop_reason": session.stop_reason,
        "created_at": session.created_at,
        "updated_at": session.updated_at,
    }
    locator = session.locator
    if isinstance(locator, PageLocator):
        values.update(
            start_page=locator.start_page,
            current_page=locator.current_page,
            max_pages=locator.max_pages,
            database=locator.database,
            country=locator.country,
        )
    else:
        values.update(
            date_from=locator.date_from,
            date_to=locator.date_to,
            action_types=list(locator.action_types),
            batch_complete=locator.batch_complete,
        )
    return values


def _to_domain_session(record: ScrapeSessionRecord) -> ScrapeSession:
    locator: PageLocator | RangeLocator
    if record.date_from is not None and record.date_to is not None:
        locator = RangeLocator(
            date_from=record.date_from,
            date_to=record.date_to,
            action_types=tuple(record.action_types or ()),
            batch_complete=bool(record.batch_complete),
        )
    else:
        locator = PageLocator(
            start_page=record.start_page or 1,
            current_page=record.current_page or record.start_page or 1,
            max_pages=record.max_pages or 0,
            database=record.database or "",
            country=record.country,
        )

    return ScrapeSession(
        session_id=record.session_id,
        agency=record.agency,
        enforcement_type=record.enforcement_type,
        locator=locator,
        status=record.status,
        items_found=record.items_found,
        items_processed=record.items_processed,
        items_created=record.items_created,
        items_existing=record.items_existing,
        errors_count=record.errors_count,
        batches_or_pages_processed=record.batches_or_pages_processed,
        actor=record.actor,
        trigger=record.trigger,
        stop_reason=record.stop_reason,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _to_domain_log(log: ProcessingLog) -> ProcessingLogEntry:
    items = []
    for raw in log.scraped_items or []:
        amount = raw.get("amount")
        action_date = raw.get("action_date")
        items.append(
            ScrapedItemSummary(
                regulator_id=str(raw.get("regulator_id", "")),
                subject_name=raw.get("subject_name"),
                action_date=date.fromisoformat(action_date) if action_date else None,
                amount=Decimal(amount) if amount is not None else None,
            )
        )
    return ProcessingLogEntry(
        session_id=log.session_id,
        agency=log.agency,
        enforcement_type=log.enforcement_type,
        batch_or_page=log.batch_or_page,
        action_type=log.action_type,
        items_found=log.items_found,
        items_created=log.items_created,
        items_existing=log.items_existing,
        items_failed=log.items_failed,
        creation_errors=tuple(log.creation_errors or ()),
        scraped_items=tuple(items),
        created_at=log.created_at,
    )


def _to_stored(record: EnforcementRecord) -> StoredEnforcementRecord:
    return StoredEnforcementRecord(
        id=record.id,
        natural_key=NaturalKey(
            agency=record.agency,
            enforcement_type=record.enforcement_type,
            regulator_id=record.regulator_id,
        ),
        offender_name=record.offender_name,
        last_synced_at=record.last_synced_at,
    )


def _to_runtime_config(row: ScrapingConfig) -> ScrapingRuntimeConfig:
    return ScrapingRuntimeConfig(
        name=row.name,
        max_pages_per_session=row.max_pages_per_session,
        network_timeout_ms=row.network_timeout_ms,
        max_consecutive_errors=row.max_consecutive_errors,
        pause_between_pages_ms=row.pause_between_pages_ms,
        batch_size=row.batch_size,
        consecutive_existing_threshold=row.consecutive_existing_threshold,
        requests_per_minute=row.requests_per_minute,
        hse_enabled=row.hse_enabled,
        ea_enabled=row.ea_enabled,
        manual_scraping_enabled=row.manual_scraping_enabled,
        scheduled_scraping_enabled=row.scheduled_scraping_enabled,
        real_time_progress_enabled=row.real_time_progress_enabled,
    )


def _json_safe(attributes: dict[str, Any]) -> dict[str, Any]:
    safe: dict[str, Any] = {}
    for key, value in attributes.items():
        if isinstance(value, (date, Decimal)):
            safe[key] = str(value) if isinstance(value, Decimal) else value.isoformat()
        else:
            safe[key] = value
    return safe
