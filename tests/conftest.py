"""
tests/conftest.py

Shared fixtures wiring the scraping core to in-memory fakes.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from app.domain.scrape_session import ScrapeSession
from app.scraping.broadcaster import InProcessMessageBus, ProgressBroadcaster
from app.scraping.config.loader import StaticConfigSource
from app.scraping.config.models import ScrapingRuntimeConfig
from app.scraping.coordinator import ScrapingCoordinator
from app.scraping.engine import ScrapeExecutionEngine
from app.scraping.rate_limiter import CancellationToken
from app.scraping.registry import StrategyRegistry
from app.scraping.session_manager import SessionManager
from app.scraping.types import ValidatedParams
from app.scraping.upsert import UpsertPipeline
from tests.fakes import (
    FakeFetcher,
    InlineExecutor,
    InMemoryRecordRepository,
    InMemorySessionStore,
    RecordingBus,
)


@pytest.fixture
def runtime_config() -> ScrapingRuntimeConfig:
    return ScrapingRuntimeConfig(pause_between_pages_ms=0)


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def repository() -> InMemoryRecordRepository:
    return InMemoryRecordRepository()


@pytest.fixture
def manager(store: InMemorySessionStore, bus: RecordingBus) -> SessionManager:
    return SessionManager(store=store, broadcaster=ProgressBroadcaster(bus))


@pytest.fixture
def engine(manager: SessionManager, repository: InMemoryRecordRepository) -> ScrapeExecutionEngine:
    return ScrapeExecutionEngine(session_manager=manager, pipeline=UpsertPipeline(repository))


@pytest.fixture
def registry() -> StrategyRegistry:
    return StrategyRegistry()


@pytest.fixture
def validate(registry: StrategyRegistry, runtime_config: ScrapingRuntimeConfig) -> Callable[..., ValidatedParams]:
    def _validate(agency: str, enforcement_type: str, **raw: Any) -> ValidatedParams:
        return registry.get(agency, enforcement_type).validate_params(
            raw,
            config=runtime_config,
            today=date(2024, 2, 15),
        )

    return _validate


@pytest.fixture
def run_session(
    manager: SessionManager,
    engine: ScrapeExecutionEngine,
) -> Callable[[ValidatedParams, FakeFetcher], ScrapeSession]:
    def _run(params: ValidatedParams, fetcher: FakeFetcher, token: CancellationToken | None = None) -> ScrapeSession:
        session = manager.create(params)
        return engine.run(session, params, fetcher, token or CancellationToken())

    return _run


@pytest.fixture
def fetchers() -> dict[str, FakeFetcher]:
    return {}


@pytest.fixture
def coordinator(
    registry: StrategyRegistry,
    manager: SessionManager,
    store: InMemorySessionStore,
    engine: ScrapeExecutionEngine,
    runtime_config: ScrapingRuntimeConfig,
    fetchers: dict[str, FakeFetcher],
) -> ScrapingCoordinator:
    def factory(params: ValidatedParams, token: CancellationToken) -> FakeFetcher:
        key = f"{params.agency}/{params.enforcement_type}"
        return fetchers.get(key) or FakeFetcher(agency=params.agency, enforcement_type=params.enforcement_type)

    return ScrapingCoordinator(
        registry=registry,
        session_manager=manager,
        store=store,
        engine=engine,
        fetcher_factory=factory,
        config_source=StaticConfigSource(runtime_config),
        executor=InlineExecutor(),
    )


@pytest.fixture
def message_bus() -> InProcessMessageBus:
    return InProcessMessageBus()
