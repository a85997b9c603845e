"""
Execution loops that drive one scrape session from start to terminal status.
"""

from __future__ import annotations

import logging

from app.domain.scrape_session import ScrapeSession
from app.scraping.errors import NetworkError
from app.scraping.fetchers.base import RecordFetcher
from app.scraping.logging_utils import log_event, session_fields
from app.scraping.rate_limiter import CancellationToken
from app.scraping.session_manager import SessionManager
from app.scraping.types import (
    BatchTally,
    PageLocator,
    PageRequest,
    RangeLocator,
    RangeRequest,
    RawSummary,
    RecordOutcome,
    ScrapedItemSummary,
    SessionStatus,
    ValidatedParams,
)
from app.scraping.upsert import UpsertPipeline, UpsertResult

logger = logging.getLogger(__name__)


class ScrapeExecutionEngine:
    """
    Page-based and date-range loops over a record fetcher.

    Per-record and per-page failures are converted into error outcomes; only
    the error threshold ends a run early as failed.
    """

    def __init__(self, *, session_manager: SessionManager, pipeline: UpsertPipeline) -> None:
        self._manager = session_manager
        self._pipeline = pipeline

    def run(
        self,
        session: ScrapeSession,
        params: ValidatedParams,
        fetcher: RecordFetcher,
        token: CancellationToken,
    ) -> ScrapeSession:
        if isinstance(session.locator, PageLocator):
            self._run_pages(session, params, fetcher, token)
        elif isinstance(session.locator, RangeLocator):
            self._run_range(session, params, fetcher, token)
        else:
            raise TypeError(f"Unsupported locator: {type(session.locator).__name__}")
        return self._manager.finalize(session, params, cancelled=token.cancelled)

    def _run_pages(
        self,
        session: ScrapeSession,
        params: ValidatedParams,
        fetcher: RecordFetcher,
        token: CancellationToken,
    ) -> None:
        while self._manager.should_continue(session, params, token):
            locator = session.locator
            page = locator.current_page
            tally = BatchTally(batch_or_page=page)

            try:
                summaries = fetcher.list_summaries(
                    PageRequest(page=page, database=locator.database, country=locator.country)
                )
            except Exception as exc:
                self._record_list_failure(session, params, tally, page, exc)
                summaries = []
            else:
                log_event(
                    logger,
                    logging.INFO,
                    "scrape_page_listed",
                    page=page,
                    summaries=len(summaries),
                    **session_fields(session),
                )
                self._process_summaries(session, params, fetcher, token, summaries, tally)

            self._manager.write_processing_log(session, params, tally)
            if token.cancelled:
                return
            self._manager.advance(session, params, tally)

            if self._manager.should_continue(session, params, token) and token.wait(params.limits.pause_seconds):
                return

    def _run_range(
        self,
        session: ScrapeSession,
        params: ValidatedParams,
        fetcher: RecordFetcher,
        token: CancellationToken,
    ) -> None:
        locator = session.locator
        combined = BatchTally(batch_or_page=1)

        for index, action_type in enumerate(locator.action_types):
            if not self._manager.should_continue(session, params, token):
                break
            if index > 0 and token.wait(params.limits.pause_seconds):
                break

            tally = BatchTally(batch_or_page=1, action_type=action_type)
            try:
                summaries = fetcher.list_summaries(
                    RangeRequest(
                        date_from=locator.date_from,
                        date_to=locator.date_to,
                        action_type=action_type,
                    )
                )
            except Exception as exc:
                self._record_list_failure(session, params, tally, action_type, exc)
                summaries = []
            else:
                log_event(
                    logger,
                    logging.INFO,
                    "scrape_batch_listed",
                    action_type=action_type,
                    summaries=len(summaries),
                    **session_fields(session),
                )
                self._process_summaries(session, params, fetcher, token, summaries, tally)

            self._manager.write_processing_log(session, params, tally)
            combined.merge(tally)

        if not token.cancelled:
            self._manager.advance(session, params, combined)

    def _process_summaries(
        self,
        session: ScrapeSession,
        params: ValidatedParams,
        fetcher: RecordFetcher,
        token: CancellationToken,
        summaries: list[RawSummary],
        tally: BatchTally,
    ) -> None:
        for summary in summaries:
            if token.cancelled or session.status != SessionStatus.RUNNING:
                return
            if not (summary.regulator_id or "").strip():
                log_event(
                    logger,
                    logging.WARNING,
                    "scrape_summary_skipped",
                    reason="missing_regulator_id",
                    subject_name=summary.subject_name,
                    **session_fields(session),
                )
                continue

            result = self._process_one(session, fetcher, summary)
            tally.record(result.outcome, item=result.item, error=result.error)
            self._manager.increment(session, params, result)

    def _process_one(
        self,
        session: ScrapeSession,
        fetcher: RecordFetcher,
        summary: RawSummary,
    ) -> UpsertResult:
        try:
            record = fetcher.fetch_detail(summary)
        except Exception as exc:
            message = f"{type(exc).__name__}: {exc}"
            log_event(
                logger,
                logging.WARNING,
                "scrape_detail_failed",
                regulator_id=summary.regulator_id,
                error=message,
                **session_fields(session),
            )
            return UpsertResult(
                outcome=RecordOutcome.ERROR,
                regulator_id=summary.regulator_id,
                item=ScrapedItemSummary(
                    regulator_id=summary.regulator_id,
                    subject_name=summary.subject_name,
                    action_date=summary.action_date,
                ),
                error=f"{summary.regulator_id}: {message}",
            )
        return self._pipeline.write(record)

    def _record_list_failure(
        self,
        session: ScrapeSession,
        params: ValidatedParams,
        tally: BatchTally,
        position: int | str,
        exc: Exception,
    ) -> None:
        message = f"list fetch failed at {position}: {exc}"
        log_event(
            logger,
            logging.WARNING,
            "scrape_list_failed",
            position=position,
            url=exc.url if isinstance(exc, NetworkError) else None,
            status_code=exc.status_code if isinstance(exc, NetworkError) else None,
            error=f"{type(exc).__name__}: {exc}",
            **session_fields(session),
        )
        result = UpsertResult(outcome=RecordOutcome.ERROR, regulator_id="", error=message)
        tally.record(result.outcome, error=message)
        self._manager.increment(session, params, result)
