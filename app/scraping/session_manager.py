"""
Session state machine: creation, per-record increments, page/batch advances
and finalization.

Each session has exactly one writer (its worker). Other threads read the
snapshot published after every mutation, so counters they observe always
satisfy items_processed == items_created + items_existing + errors_count.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Callable
from datetime import datetime

from app.domain.scrape_session import (
    ProcessingLogEntry,
    ScrapeSession,
    new_session_id,
    utcnow,
)
from app.scraping.broadcaster import ProgressBroadcaster
from app.scraping.logging_utils import log_event, session_fields
from app.scraping.rate_limiter import CancellationToken
from app.scraping.storage.base import SessionStore
from app.scraping.types import (
    BatchTally,
    PageLocator,
    ProgressEvent,
    RangeLocator,
    RecordOutcome,
    ScrapeTrigger,
    SessionStatus,
    ValidatedParams,
)
from app.scraping.upsert import UpsertResult

logger = logging.getLogger(__name__)

STOP_REASON_ALL_EXIST = "all_records_exist"
STOP_REASON_ERROR_THRESHOLD = "error_threshold_reached"
STOP_REASON_CANCELLED = "cancelled"
STOP_REASON_EXHAUSTED = "exhausted"
STOP_REASON_INTERRUPTED = "interrupted"
STOP_REASON_ORPHANED = "stopped_without_worker"

_TERMINAL_EVENTS = {
    SessionStatus.COMPLETED: ProgressEvent.SESSION_COMPLETED,
    SessionStatus.FAILED: ProgressEvent.SESSION_FAILED,
    SessionStatus.STOPPED: ProgressEvent.SESSION_STOPPED,
}


class SessionManager:
    def __init__(
        self,
        *,
        store: SessionStore,
        broadcaster: ProgressBroadcaster | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._broadcaster = broadcaster or ProgressBroadcaster()
        self._clock = clock
        self._latest: dict[str, ScrapeSession] = {}
        self._broadcasters: dict[str, ProgressBroadcaster] = {}
        self._lock = threading.Lock()

    def create(
        self,
        params: ValidatedParams,
        *,
        trigger: str = ScrapeTrigger.MANUAL,
        broadcast: bool = True,
    ) -> ScrapeSession:
        now = self._clock()
        session = ScrapeSession(
            session_id=new_session_id(),
            agency=params.agency,
            enforcement_type=params.enforcement_type,
            locator=params.locator,
            status=SessionStatus.PENDING,
            actor=params.actor,
            trigger=trigger,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._broadcasters[session.session_id] = self._broadcaster.with_enabled(broadcast)

        session.status = SessionStatus.RUNNING
        snapshot = self._commit(session, strict=True)
        log_event(logger, logging.INFO, "scrape_session_created", **session_fields(snapshot))
        self._publish(ProgressEvent.SESSION_CREATED, snapshot)
        return session

    def increment(self, session: ScrapeSession, params: ValidatedParams, result: UpsertResult) -> ScrapeSession:
        """
        Count one processed record, then evaluate the error threshold.
        """

        if session.is_terminal:
            return session

        session.items_found += 1
        session.items_processed += 1
        if result.outcome == RecordOutcome.CREATED:
            session.items_created += 1
        elif result.outcome == RecordOutcome.EXISTING:
            session.items_existing += 1
        else:
            session.errors_count += 1

        if session.errors_count >= params.limits.max_consecutive_errors:
            session.status = SessionStatus.FAILED
            session.stop_reason = STOP_REASON_ERROR_THRESHOLD

        snapshot = self._commit(session)
        self._publish(
            ProgressEvent.RECORD_PROCESSED,
            snapshot,
            outcome=result.outcome,
            regulator_id=result.regulator_id,
        )
        if result.outcome == RecordOutcome.ERROR:
            self._publish(ProgressEvent.ERROR, snapshot, regulator_id=result.regulator_id, error=result.error)
        return session

    def advance(self, session: ScrapeSession, params: ValidatedParams, tally: BatchTally) -> ScrapeSession:
        """
        Close one page/batch: bump the counter, move the cursor and apply the
        all-exist heuristic. A failure recorded earlier is never overwritten.
        """

        session.batches_or_pages_processed += 1
        locator = session.locator
        if isinstance(locator, PageLocator):
            session.locator = dataclasses.replace(locator, current_page=locator.current_page + 1)
        elif isinstance(locator, RangeLocator):
            session.locator = dataclasses.replace(locator, batch_complete=True)

        if session.status == SessionStatus.RUNNING and params.stop_on_existing and tally.all_existing:
            session.status = SessionStatus.COMPLETED
            session.stop_reason = STOP_REASON_ALL_EXIST
            log_event(
                logger,
                logging.INFO,
                "scrape_all_records_exist",
                batch_or_page=tally.batch_or_page,
                **session_fields(session),
            )

        snapshot = self._commit(session)
        self._publish(
            ProgressEvent.BATCH_COMPLETED,
            snapshot,
            batch_or_page=tally.batch_or_page,
            items_found=tally.items_found,
            items_created=tally.items_created,
            items_existing=tally.items_existing,
            items_failed=tally.items_failed,
        )
        return session

    def should_continue(self, session: ScrapeSession, params: ValidatedParams, token: CancellationToken) -> bool:
        if token.cancelled or session.status != SessionStatus.RUNNING:
            return False
        if session.errors_count >= params.limits.max_consecutive_errors:
            return False
        return not self.is_exhausted(session)

    @staticmethod
    def is_exhausted(session: ScrapeSession) -> bool:
        locator = session.locator
        if isinstance(locator, PageLocator):
            return locator.pages_into_run >= locator.max_pages
        return locator.batch_complete

    def finalize(self, session: ScrapeSession, params: ValidatedParams, *, cancelled: bool) -> ScrapeSession:
        """
        Settle the terminal status and publish the terminal event once.
        """

        if not session.is_terminal:
            if cancelled:
                session.status = SessionStatus.STOPPED
                session.stop_reason = STOP_REASON_CANCELLED
            elif session.errors_count >= params.limits.max_consecutive_errors:
                session.status = SessionStatus.FAILED
                session.stop_reason = STOP_REASON_ERROR_THRESHOLD
            elif self.is_exhausted(session):
                session.status = SessionStatus.COMPLETED
                session.stop_reason = STOP_REASON_EXHAUSTED
            else:
                session.status = SessionStatus.STOPPED
                session.stop_reason = STOP_REASON_INTERRUPTED

        return self._settle(session)

    def fail(self, session: ScrapeSession, reason: str) -> ScrapeSession:
        """
        Terminate a session after an unexpected worker error.
        """

        if not session.is_terminal:
            session.status = SessionStatus.FAILED
            session.stop_reason = reason[:2000]
        return self._settle(session)

    def stop_orphan(self, session: ScrapeSession) -> ScrapeSession:
        """
        Stop a running session that has no live worker (e.g. after a restart).
        """

        if session.is_terminal:
            return session
        session.status = SessionStatus.STOPPED
        session.stop_reason = STOP_REASON_ORPHANED
        return self._settle(session)

    def write_processing_log(
        self,
        session: ScrapeSession,
        params: ValidatedParams,
        tally: BatchTally,
    ) -> ProcessingLogEntry:
        entry = ProcessingLogEntry(
            session_id=session.session_id,
            agency=session.agency,
            enforcement_type=session.enforcement_type,
            batch_or_page=tally.batch_or_page,
            action_type=tally.action_type,
            items_found=tally.items_found,
            items_created=tally.items_created,
            items_existing=tally.items_existing,
            items_failed=tally.items_failed,
            creation_errors=tuple(tally.creation_errors),
            scraped_items=tuple(tally.scraped_items[: params.limits.batch_size]),
            created_at=self._clock(),
        )
        try:
            self._store.append_processing_log(entry)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "processing_log_write_failed",
                batch_or_page=tally.batch_or_page,
                error=f"{type(exc).__name__}: {exc}",
                **session_fields(session),
            )
        return entry

    def latest(self, session_id: str) -> ScrapeSession | None:
        with self._lock:
            return self._latest.get(session_id)

    def _settle(self, session: ScrapeSession) -> ScrapeSession:
        session.updated_at = self._clock()
        snapshot = session.snapshot()
        saved = self._save(snapshot)
        with self._lock:
            # Once stored, terminal sessions are read back from the store.
            if saved:
                self._latest.pop(session.session_id, None)
            else:
                self._latest[session.session_id] = snapshot
        log_event(
            logger,
            logging.INFO,
            "scrape_session_finished",
            stop_reason=snapshot.stop_reason,
            items_created=snapshot.items_created,
            items_existing=snapshot.items_existing,
            pages_processed=snapshot.batches_or_pages_processed,
            duration_seconds=snapshot.duration_seconds(),
            **session_fields(snapshot),
        )
        self._publish(_TERMINAL_EVENTS[snapshot.status], snapshot, stop_reason=snapshot.stop_reason)
        with self._lock:
            self._broadcasters.pop(session.session_id, None)
        return session

    def _commit(self, session: ScrapeSession, *, strict: bool = False) -> ScrapeSession:
        session.updated_at = self._clock()
        snapshot = session.snapshot()
        with self._lock:
            self._latest[session.session_id] = snapshot
        self._save(snapshot, strict=strict)
        return snapshot

    def _save(self, snapshot: ScrapeSession, *, strict: bool = False) -> bool:
        try:
            self._store.save_session(snapshot)
        except Exception as exc:
            if strict:
                raise
            log_event(
                logger,
                logging.ERROR,
                "scrape_session_save_failed",
                error=f"{type(exc).__name__}: {exc}",
                **session_fields(snapshot),
            )
            return False
        return True

    def _publish(self, event: str, snapshot: ScrapeSession, **fields: object) -> None:
        with self._lock:
            broadcaster = self._broadcasters.get(snapshot.session_id, self._broadcaster)
        broadcaster.publish(event, snapshot, **fields)
