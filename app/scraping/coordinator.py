"""
Entry point for starting, stopping and inspecting scrape sessions.

Validation and config gating run synchronously on the caller's thread; once a
session is created it is driven to a terminal status on a worker thread and
no exception reaches the caller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol

from app.domain.scrape_session import ProcessingLogEntry, ScrapeSession, SessionSummary
from app.scraping.config.loader import RuntimeConfigSource, ensure_scraping_enabled, load_runtime_config
from app.scraping.engine import ScrapeExecutionEngine
from app.scraping.errors import SessionNotFoundError
from app.scraping.fetchers.factory import RecordFetcherFactory
from app.scraping.logging_utils import log_event, session_fields
from app.scraping.rate_limiter import CancellationToken
from app.scraping.registry import StrategyRegistry
from app.scraping.session_manager import SessionManager
from app.scraping.storage.base import SessionStore
from app.scraping.strategies.base import AgencyStrategy
from app.scraping.types import ScrapeTrigger, ValidatedParams

logger = logging.getLogger(__name__)


class SessionTaskExecutor(Protocol):
    def submit(self, fn: Callable[[], Any]) -> Future:
        ...

    def shutdown(self, wait: bool = True) -> None:
        ...


class ThreadPoolTaskExecutor:
    def __init__(self, *, max_workers: int = 4) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scrape-session")

    def submit(self, fn: Callable[[], Any]) -> Future:
        return self._pool.submit(fn)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


@dataclass(frozen=True)
class SessionHandle:
    session_id: str
    strategy: AgencyStrategy
    params: ValidatedParams
    token: CancellationToken
    future: Future


class ScrapingCoordinator:
    """
    Owns live session workers and routes reads to the latest snapshot.
    """

    def __init__(
        self,
        *,
        registry: StrategyRegistry,
        session_manager: SessionManager,
        store: SessionStore,
        engine: ScrapeExecutionEngine,
        fetcher_factory: RecordFetcherFactory,
        config_source: RuntimeConfigSource | None = None,
        executor: SessionTaskExecutor | None = None,
    ) -> None:
        self._registry = registry
        self._manager = session_manager
        self._store = store
        self._engine = engine
        self._fetcher_factory = fetcher_factory
        self._config_source = config_source
        self._executor = executor or ThreadPoolTaskExecutor()
        self._handles: dict[str, SessionHandle] = {}
        self._lock = threading.Lock()

    @property
    def registry(self) -> StrategyRegistry:
        return self._registry

    def start(
        self,
        *,
        agency: str,
        enforcement_type: str,
        raw_params: Mapping[str, Any] | None = None,
        actor: str | None = None,
        trigger: str = ScrapeTrigger.MANUAL,
        today: date | None = None,
    ) -> SessionHandle:
        """
        Validate, create the session and hand it to a worker.

        Raises ValidationError or ConfigError before any session exists.
        """

        strategy = self._registry.get(agency, enforcement_type)
        config = load_runtime_config(self._config_source)
        ensure_scraping_enabled(config, agency=strategy.agency_identifier(), trigger=trigger)
        params = strategy.validate_params(raw_params or {}, config=config, actor=actor, today=today)

        session = self._manager.create(
            params,
            trigger=trigger,
            broadcast=config.real_time_progress_enabled,
        )
        token = CancellationToken()
        future = self._executor.submit(lambda: self._run(session, params, token))
        handle = SessionHandle(
            session_id=session.session_id,
            strategy=strategy,
            params=params,
            token=token,
            future=future,
        )
        with self._lock:
            self._handles[session.session_id] = handle
        future.add_done_callback(lambda _: self._release(session.session_id))
        return handle

    def stop(self, session_id: str) -> ScrapeSession:
        """
        Request cancellation; the worker settles the session as stopped.
        """

        with self._lock:
            handle = self._handles.get(session_id)
        if handle is not None:
            handle.token.cancel()
            log_event(logger, logging.INFO, "scrape_session_stop_requested", session_id=session_id)
            return self.status(session_id)

        stored = self._store.get_session(session_id)
        if stored is None:
            raise SessionNotFoundError(session_id)
        return self._manager.stop_orphan(stored).snapshot()

    def status(self, session_id: str) -> ScrapeSession:
        snapshot = self._manager.latest(session_id)
        if snapshot is not None:
            return snapshot.snapshot()
        stored = self._store.get_session(session_id)
        if stored is None:
            raise SessionNotFoundError(session_id)
        return stored

    def progress(self, session_id: str) -> dict[str, Any]:
        session = self.status(session_id)
        strategy = self._registry.get(session.agency, session.enforcement_type)
        display = strategy.format_progress_display(session)
        display["strategy"] = strategy.strategy_name()
        return display

    def summary(self, session_id: str) -> SessionSummary:
        return SessionSummary.from_session(self.status(session_id))

    def list_sessions(self, *, active_only: bool = False, limit: int = 100) -> list[ScrapeSession]:
        return self._store.list_sessions(active_only=active_only, limit=limit)

    def processing_logs(self, session_id: str) -> list[ProcessingLogEntry]:
        self.status(session_id)
        return self._store.list_processing_logs(session_id)

    def wait(self, session_id: str, timeout: float | None = None) -> ScrapeSession:
        with self._lock:
            handle = self._handles.get(session_id)
        if handle is not None:
            handle.future.result(timeout=timeout)
        return self.status(session_id)

    def active_session_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._handles)

    def shutdown(self, *, wait: bool = True) -> None:
        with self._lock:
            handles = list(self._handles.values())
        for handle in handles:
            handle.token.cancel()
        self._executor.shutdown(wait=wait)

    def _run(self, session: ScrapeSession, params: ValidatedParams, token: CancellationToken) -> ScrapeSession:
        try:
            fetcher = self._fetcher_factory(params, token)
            return self._engine.run(session, params, fetcher, token)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "scrape_session_crashed",
                error=f"{type(exc).__name__}: {exc}",
                **session_fields(session),
            )
            return self._manager.fail(session, f"{type(exc).__name__}: {exc}")

    def _release(self, session_id: str) -> None:
        with self._lock:
            self._handles.pop(session_id, None)
