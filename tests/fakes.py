"""
tests/fakes.py

In-memory fakes for the scraping core: no database, no network.
"""

from __future__ import annotations

import dataclasses
import threading
from concurrent.futures import Future
from datetime import date
from decimal import Decimal
from typing import Any, Callable

from app.domain.scrape_session import (
    EnforcementRecordInput,
    ProcessingLogEntry,
    ScrapeSession,
    StoredEnforcementRecord,
    utcnow,
)
from app.scraping.errors import DuplicateError, NetworkError, ProcessingError
from app.scraping.storage.base import SessionStore
from app.scraping.types import (
    EnrichedRecord,
    NaturalKey,
    PageRequest,
    RangeRequest,
    RawSummary,
    SessionStatus,
)


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self.sessions: dict[str, ScrapeSession] = {}
        self.logs: list[ProcessingLogEntry] = []
        self.history: list[ScrapeSession] = []

    def save_session(self, session: ScrapeSession) -> None:
        stored = session.snapshot()
        self.sessions[session.session_id] = stored
        self.history.append(stored)

    def get_session(self, session_id: str) -> ScrapeSession | None:
        stored = self.sessions.get(session_id)
        return stored.snapshot() if stored is not None else None

    def list_sessions(self, *, active_only: bool = False, limit: int = 100) -> list[ScrapeSession]:
        sessions = sorted(self.sessions.values(), key=lambda item: item.created_at, reverse=True)
        if active_only:
            sessions = [item for item in sessions if item.status in SessionStatus.ACTIVE]
        return [item.snapshot() for item in sessions[:limit]]

    def append_processing_log(self, entry: ProcessingLogEntry) -> None:
        self.logs.append(entry)

    def list_processing_logs(self, session_id: str) -> list[ProcessingLogEntry]:
        return [entry for entry in self.logs if entry.session_id == session_id]


class InMemoryRecordRepository:
    """
    Create-or-conflict on the natural key, like the unique constraint in PostgreSQL.
    """

    def __init__(self, *, failing_ids: set[str] | None = None) -> None:
        self.records: dict[NaturalKey, StoredEnforcementRecord] = {}
        self.failing_ids = failing_ids or set()
        self.touched: list[NaturalKey] = []
        self._lock = threading.Lock()

    def create(self, record: EnforcementRecordInput) -> StoredEnforcementRecord:
        if record.natural_key.regulator_id in self.failing_ids:
            raise ProcessingError(f"insert failed for {record.natural_key.regulator_id}")
        with self._lock:
            if record.natural_key in self.records:
                raise DuplicateError(record.natural_key)
            stored = StoredEnforcementRecord(
                id=f"rec-{len(self.records) + 1}",
                natural_key=record.natural_key,
                offender_name=record.offender_name,
                last_synced_at=utcnow(),
            )
            self.records[record.natural_key] = stored
            return stored

    def find_by_natural_key(self, natural_key: NaturalKey) -> StoredEnforcementRecord | None:
        return self.records.get(natural_key)

    def touch_last_synced(self, entity: StoredEnforcementRecord) -> StoredEnforcementRecord:
        touched = dataclasses.replace(entity, last_synced_at=utcnow())
        self.records[entity.natural_key] = touched
        self.touched.append(entity.natural_key)
        return touched

    def seed(self, agency: str, enforcement_type: str, *regulator_ids: str) -> None:
        for regulator_id in regulator_ids:
            key = NaturalKey(agency=agency, enforcement_type=enforcement_type, regulator_id=regulator_id)
            self.records[key] = StoredEnforcementRecord(
                id=f"seed-{regulator_id}",
                natural_key=key,
                offender_name="Seeded Ltd",
                last_synced_at=None,
            )


class FakeFetcher:
    """
    Serves canned summaries per page or per action type.

    `failing_lists` holds page numbers / action types whose list fetch raises;
    `failing_details` holds regulator ids whose detail fetch raises.
    """

    def __init__(
        self,
        *,
        agency: str,
        enforcement_type: str,
        pages: dict[int, list[RawSummary]] | None = None,
        batches: dict[str, list[RawSummary]] | None = None,
        failing_lists: set[Any] | None = None,
        failing_details: set[str] | None = None,
        on_list: Callable[[Any], None] | None = None,
    ) -> None:
        self.agency = agency
        self.enforcement_type = enforcement_type
        self.pages = pages or {}
        self.batches = batches or {}
        self.failing_lists = failing_lists or set()
        self.failing_details = failing_details or set()
        self.on_list = on_list
        self.list_calls: list[Any] = []
        self.detail_calls: list[str] = []

    def list_summaries(self, request: PageRequest | RangeRequest) -> list[RawSummary]:
        position = request.page if isinstance(request, PageRequest) else request.action_type
        self.list_calls.append(position)
        if self.on_list is not None:
            self.on_list(position)
        if position in self.failing_lists:
            raise NetworkError(f"list timeout at {position}", url=f"https://example.test/{position}")
        source = self.pages if isinstance(request, PageRequest) else self.batches
        return list(source.get(position, []))

    def fetch_detail(self, summary: RawSummary) -> EnrichedRecord:
        self.detail_calls.append(summary.regulator_id)
        if summary.regulator_id in self.failing_details:
            raise NetworkError(f"detail timeout for {summary.regulator_id}")
        return EnrichedRecord(
            agency=self.agency,
            enforcement_type=self.enforcement_type,
            regulator_id=summary.regulator_id,
            subject_name=summary.subject_name,
            action_date=summary.action_date,
            action_type=summary.action_type,
            fine_amount=Decimal("1000.00"),
            regulator_url=f"https://example.test/detail/{summary.regulator_id}",
        )


class RecordingBus:
    def __init__(self) -> None:
        self.messages: list[tuple[str, dict[str, Any]]] = []

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        self.messages.append((topic, payload))

    def events(self) -> list[str]:
        return [payload["event"] for _, payload in self.messages]


class InlineExecutor:
    """
    Runs submitted work on the calling thread.
    """

    def submit(self, fn: Callable[[], Any]) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn())
        except Exception as exc:
            future.set_exception(exc)
        return future

    def shutdown(self, wait: bool = True) -> None:
        return None


def make_summaries(prefix: str, count: int, *, start: int = 1) -> list[RawSummary]:
    return [
        RawSummary(
            regulator_id=f"{prefix}{index}",
            subject_name=f"Company {prefix}{index} Ltd",
            action_date=date(2024, 1, min(28, index)),
            action_type="Court Case",
        )
        for index in range(start, start + count)
    ]
