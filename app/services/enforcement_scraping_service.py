"""
app/services/enforcement_scraping_service.py

Wires the scraping coordinator to PostgreSQL storage, the HTTP fetchers and
the in-process progress bus.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from app.config import get_coordinator_settings
from app.scraping.broadcaster import InProcessMessageBus, ProgressBroadcaster
from app.scraping.coordinator import ScrapingCoordinator, ThreadPoolTaskExecutor
from app.scraping.engine import ScrapeExecutionEngine
from app.scraping.fetchers.factory import HTTPRecordFetcherFactory
from app.scraping.registry import StrategyRegistry
from app.scraping.session_manager import SessionManager
from app.scraping.storage import (
    SQLAlchemyConfigSource,
    SQLAlchemyEnforcementRecordStore,
    SQLAlchemySessionStore,
)
from app.scraping.upsert import UpsertPipeline

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_progress_bus() -> InProcessMessageBus:
    """
    Shared bus that progress subscribers (websocket bridges, tests) attach to.
    """

    return InProcessMessageBus()


def build_coordinator(*, max_workers: int | None = None) -> ScrapingCoordinator:
    """
    Assemble a coordinator backed by the configured database.
    """

    settings = get_coordinator_settings()
    store = SQLAlchemySessionStore()
    manager = SessionManager(
        store=store,
        broadcaster=ProgressBroadcaster(get_progress_bus()),
    )
    engine = ScrapeExecutionEngine(
        session_manager=manager,
        pipeline=UpsertPipeline(SQLAlchemyEnforcementRecordStore()),
    )
    coordinator = ScrapingCoordinator(
        registry=StrategyRegistry(),
        session_manager=manager,
        store=store,
        engine=engine,
        fetcher_factory=HTTPRecordFetcherFactory(),
        config_source=SQLAlchemyConfigSource(),
        executor=ThreadPoolTaskExecutor(max_workers=max_workers or settings.max_workers),
    )
    logger.info("Scraping coordinator ready (max_workers=%d)", max_workers or settings.max_workers)
    return coordinator


@lru_cache(maxsize=1)
def get_scraping_coordinator() -> ScrapingCoordinator:
    """
    Build and cache the process-wide coordinator.
    """

    return build_coordinator()
