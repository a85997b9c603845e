from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.scraping.broadcaster import ProgressBroadcaster
from app.scraping.rate_limiter import CancellationToken
from app.scraping.session_manager import (
    STOP_REASON_ALL_EXIST,
    STOP_REASON_CANCELLED,
    STOP_REASON_ERROR_THRESHOLD,
    STOP_REASON_EXHAUSTED,
    STOP_REASON_INTERRUPTED,
    STOP_REASON_ORPHANED,
    SessionManager,
)
from app.scraping.types import (
    BatchTally,
    ProgressEvent,
    RecordOutcome,
    ScrapedItemSummary,
    ScrapeTrigger,
    SessionStatus,
)
from app.scraping.upsert import UpsertResult
from tests.fakes import InMemorySessionStore


def _result(outcome: str, regulator_id: str = "X1") -> UpsertResult:
    return UpsertResult(
        outcome=outcome,
        regulator_id=regulator_id,
        error=f"{regulator_id}: boom" if outcome == RecordOutcome.ERROR else None,
    )


def _tally(*outcomes: str, batch_or_page: int = 1) -> BatchTally:
    tally = BatchTally(batch_or_page=batch_or_page)
    for outcome in outcomes:
        tally.record(outcome)
    return tally


class _FailingStore(InMemorySessionStore):
    def __init__(self, *, fail_saves: bool = False, fail_logs: bool = False) -> None:
        super().__init__()
        self.fail_saves = fail_saves
        self.fail_logs = fail_logs

    def save_session(self, session) -> None:
        if self.fail_saves:
            raise RuntimeError("database unavailable")
        super().save_session(session)

    def append_processing_log(self, entry) -> None:
        if self.fail_logs:
            raise RuntimeError("database unavailable")
        super().append_processing_log(entry)


class TestCreate:
    def test_session_starts_running_with_zero_counters(self, manager, validate, store, bus) -> None:
        params = validate("hse", "case", max_pages=3, actor="inspector@example.test")

        session = manager.create(params, trigger=ScrapeTrigger.SCHEDULED)

        assert session.status == SessionStatus.RUNNING
        assert session.trigger == ScrapeTrigger.SCHEDULED
        assert session.actor == "inspector@example.test"
        assert session.items_found == session.items_processed == session.errors_count == 0
        assert store.get_session(session.session_id).status == SessionStatus.RUNNING
        assert bus.events() == [ProgressEvent.SESSION_CREATED]

    def test_session_ids_are_unique(self, manager, validate) -> None:
        params = validate("hse", "case")
        assert manager.create(params).session_id != manager.create(params).session_id

    def test_create_propagates_store_failure(self, validate) -> None:
        manager = SessionManager(store=_FailingStore(fail_saves=True))
        with pytest.raises(RuntimeError):
            manager.create(validate("hse", "case"))

    def test_broadcast_disabled_per_session(self, store, bus, validate) -> None:
        manager = SessionManager(store=store, broadcaster=ProgressBroadcaster(bus))
        params = validate("hse", "case", max_pages=1)

        session = manager.create(params, broadcast=False)
        manager.increment(session, params, _result(RecordOutcome.CREATED))
        manager.finalize(session, params, cancelled=False)

        assert bus.messages == []


class TestIncrement:
    @pytest.mark.parametrize(
        "outcome, counter",
        [
            (RecordOutcome.CREATED, "items_created"),
            (RecordOutcome.EXISTING, "items_existing"),
            (RecordOutcome.ERROR, "errors_count"),
        ],
    )
    def test_bumps_found_processed_and_matching_counter(self, manager, validate, outcome, counter) -> None:
        params = validate("hse", "case")
        session = manager.create(params)

        manager.increment(session, params, _result(outcome))

        assert session.items_found == 1
        assert session.items_processed == 1
        assert getattr(session, counter) == 1
        assert session.counters_consistent()

    def test_error_threshold_marks_failed(self, manager, validate, bus) -> None:
        params = validate("hse", "case", max_consecutive_errors=2)
        session = manager.create(params)

        manager.increment(session, params, _result(RecordOutcome.ERROR, "E1"))
        assert session.status == SessionStatus.RUNNING
        manager.increment(session, params, _result(RecordOutcome.ERROR, "E2"))

        assert session.status == SessionStatus.FAILED
        assert session.stop_reason == STOP_REASON_ERROR_THRESHOLD
        assert bus.events().count(ProgressEvent.ERROR) == 2

    def test_terminal_session_ignores_further_records(self, manager, validate) -> None:
        params = validate("hse", "case", max_consecutive_errors=1)
        session = manager.create(params)
        manager.increment(session, params, _result(RecordOutcome.ERROR))

        manager.increment(session, params, _result(RecordOutcome.CREATED))

        assert session.items_processed == 1
        assert session.items_created == 0

    def test_store_failure_mid_run_is_tolerated(self, validate) -> None:
        store = _FailingStore()
        manager = SessionManager(store=store)
        params = validate("hse", "case")
        session = manager.create(params)
        store.fail_saves = True

        manager.increment(session, params, _result(RecordOutcome.CREATED))

        assert session.items_created == 1
        assert manager.latest(session.session_id).items_created == 1


class TestAdvance:
    def test_page_cursor_moves_forward(self, manager, validate) -> None:
        params = validate("hse", "case", start_page=4, max_pages=3)
        session = manager.create(params)

        manager.advance(session, params, _tally(RecordOutcome.CREATED))

        assert session.locator.current_page == 5
        assert session.batches_or_pages_processed == 1
        assert session.status == SessionStatus.RUNNING

    def test_range_batch_marked_complete(self, manager, validate) -> None:
        params = validate("ea", "case")
        session = manager.create(params)

        manager.advance(session, params, _tally(RecordOutcome.CREATED))

        assert session.locator.batch_complete is True
        assert manager.is_exhausted(session)

    def test_all_existing_batch_completes(self, manager, validate) -> None:
        params = validate("hse", "case", max_pages=10)
        session = manager.create(params)

        manager.advance(session, params, _tally(RecordOutcome.EXISTING, RecordOutcome.EXISTING))

        assert session.status == SessionStatus.COMPLETED
        assert session.stop_reason == STOP_REASON_ALL_EXIST

    def test_empty_batch_is_not_all_existing(self, manager, validate) -> None:
        params = validate("hse", "case", max_pages=10)
        session = manager.create(params)

        manager.advance(session, params, _tally())

        assert session.status == SessionStatus.RUNNING

    def test_mixed_batch_keeps_running(self, manager, validate) -> None:
        params = validate("hse", "case", max_pages=10)
        session = manager.create(params)

        manager.advance(session, params, _tally(RecordOutcome.EXISTING, RecordOutcome.ERROR))

        assert session.status == SessionStatus.RUNNING

    def test_failed_status_is_not_overwritten(self, manager, validate) -> None:
        params = validate("hse", "case", max_consecutive_errors=1)
        session = manager.create(params)
        manager.increment(session, params, _result(RecordOutcome.ERROR))

        manager.advance(session, params, _tally(RecordOutcome.EXISTING))

        assert session.status == SessionStatus.FAILED


class TestShouldContinue:
    def test_stops_when_pages_exhausted(self, manager, validate) -> None:
        params = validate("hse", "case", max_pages=1)
        session = manager.create(params)
        token = CancellationToken()
        assert manager.should_continue(session, params, token)

        manager.advance(session, params, _tally(RecordOutcome.CREATED))

        assert not manager.should_continue(session, params, token)

    def test_stops_when_cancelled(self, manager, validate) -> None:
        params = validate("hse", "case")
        session = manager.create(params)
        token = CancellationToken()
        token.cancel()

        assert not manager.should_continue(session, params, token)


class TestFinalize:
    def test_cancelled_run_is_stopped(self, manager, validate) -> None:
        params = validate("hse", "case")
        session = manager.create(params)

        manager.finalize(session, params, cancelled=True)

        assert session.status == SessionStatus.STOPPED
        assert session.stop_reason == STOP_REASON_CANCELLED

    def test_exhausted_run_is_completed(self, manager, validate) -> None:
        params = validate("hse", "case", max_pages=1)
        session = manager.create(params)
        manager.advance(session, params, _tally(RecordOutcome.CREATED))

        manager.finalize(session, params, cancelled=False)

        assert session.status == SessionStatus.COMPLETED
        assert session.stop_reason == STOP_REASON_EXHAUSTED

    def test_early_exit_without_cause_is_stopped(self, manager, validate) -> None:
        params = validate("hse", "case", max_pages=5)
        session = manager.create(params)

        manager.finalize(session, params, cancelled=False)

        assert session.status == SessionStatus.STOPPED
        assert session.stop_reason == STOP_REASON_INTERRUPTED

    def test_terminal_status_is_kept(self, manager, validate, bus) -> None:
        params = validate("hse", "case", max_pages=5)
        session = manager.create(params)
        manager.advance(session, params, _tally(RecordOutcome.EXISTING))

        manager.finalize(session, params, cancelled=True)

        assert session.status == SessionStatus.COMPLETED
        assert bus.events().count(ProgressEvent.SESSION_COMPLETED) == 1

    def test_fail_records_reason(self, manager, validate, bus) -> None:
        params = validate("hse", "case")
        session = manager.create(params)

        manager.fail(session, "RuntimeError: worker crashed")

        assert session.status == SessionStatus.FAILED
        assert session.stop_reason == "RuntimeError: worker crashed"
        assert bus.events()[-1] == ProgressEvent.SESSION_FAILED

    def test_stop_orphan(self, manager, validate, store) -> None:
        params = validate("hse", "case")
        session = manager.create(params)
        orphan = store.get_session(session.session_id)

        manager.stop_orphan(orphan)

        assert store.get_session(session.session_id).status == SessionStatus.STOPPED
        assert store.get_session(session.session_id).stop_reason == STOP_REASON_ORPHANED


class TestProcessingLog:
    def test_scraped_items_truncated_to_batch_size(self, validate, store) -> None:
        manager = SessionManager(store=store)
        params = validate("hse", "case")
        session = manager.create(params)
        tally = BatchTally(batch_or_page=1)
        for index in range(params.limits.batch_size + 5):
            tally.record(
                RecordOutcome.CREATED,
                item=ScrapedItemSummary(regulator_id=f"R{index}", subject_name=None, action_date=None),
            )

        entry = manager.write_processing_log(session, params, tally)

        assert len(entry.scraped_items) == params.limits.batch_size
        assert entry.items_created == params.limits.batch_size + 5
        assert store.list_processing_logs(session.session_id) == [entry]

    def test_log_write_failure_does_not_raise(self, validate) -> None:
        manager = SessionManager(store=_FailingStore(fail_logs=True))
        params = validate("hse", "case")
        session = manager.create(params)

        entry = manager.write_processing_log(session, params, _tally(RecordOutcome.CREATED))

        assert entry.items_found == 1


def test_latest_returns_independent_snapshot(manager, validate) -> None:
    params = validate("hse", "case")
    session = manager.create(params)

    snapshot = manager.latest(session.session_id)
    manager.increment(session, params, _result(RecordOutcome.CREATED))

    assert snapshot.items_created == 0
    assert manager.latest(session.session_id).items_created == 1


def test_finished_sessions_leave_the_live_map(manager, validate, store) -> None:
    params = validate("hse", "case")
    session_ids = []
    for _ in range(50):
        session = manager.create(params)
        manager.finalize(session, params, cancelled=True)
        session_ids.append(session.session_id)

    assert all(manager.latest(session_id) is None for session_id in session_ids)
    assert store.get_session(session_ids[-1]).status == SessionStatus.STOPPED


def test_unsaved_terminal_snapshot_stays_readable(validate) -> None:
    store = _FailingStore()
    manager = SessionManager(store=store)
    params = validate("hse", "case")
    session = manager.create(params)
    store.fail_saves = True

    manager.finalize(session, params, cancelled=True)

    assert manager.latest(session.session_id).status == SessionStatus.STOPPED


def test_clock_drives_timestamps(store, validate) -> None:
    ticks = iter(datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=n) for n in range(100))
    manager = SessionManager(store=store, clock=lambda: next(ticks))
    params = validate("hse", "case", max_pages=1)
    session = manager.create(params)
    manager.increment(session, params, _result(RecordOutcome.CREATED))

    manager.finalize(session, params, cancelled=False)

    assert session.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert session.duration_seconds() > 0