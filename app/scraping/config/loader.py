"""
Environment and database backed configuration loading for enforcement scraping.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Protocol

from db.config import load_env_files

from app.scraping.config.models import FetcherHTTPSettings, ScrapingRuntimeConfig
from app.scraping.errors import ConfigError
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)


class RuntimeConfigSource(Protocol):
    def get_active_config(self) -> ScrapingRuntimeConfig | None:
        ...


class StaticConfigSource:
    """
    Config source returning a fixed configuration (CLI runs and tests).
    """

    def __init__(self, config: ScrapingRuntimeConfig | None) -> None:
        self._config = config

    def get_active_config(self) -> ScrapingRuntimeConfig | None:
        return self._config


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


@lru_cache(maxsize=1)
def get_fallback_runtime_config() -> ScrapingRuntimeConfig:
    """
    Return the hard-coded defaults, optionally overridden by environment variables.
    """

    load_env_files()
    return ScrapingRuntimeConfig(
        name="fallback",
        max_pages_per_session=max(1, _get_int_env("SCRAPING_MAX_PAGES_PER_SESSION", 100)),
        network_timeout_ms=max(1000, _get_int_env("SCRAPING_NETWORK_TIMEOUT_MS", 30000)),
        max_consecutive_errors=max(1, _get_int_env("SCRAPING_MAX_CONSECUTIVE_ERRORS", 3)),
        pause_between_pages_ms=max(0, _get_int_env("SCRAPING_PAUSE_BETWEEN_PAGES_MS", 3000)),
        batch_size=max(1, _get_int_env("SCRAPING_BATCH_SIZE", 50)),
        consecutive_existing_threshold=max(
            1,
            _get_int_env("SCRAPING_CONSECUTIVE_EXISTING_THRESHOLD", 10),
        ),
        requests_per_minute=max(1, _get_int_env("SCRAPING_REQUESTS_PER_MINUTE", 10)),
        hse_enabled=_get_bool_env("SCRAPING_HSE_ENABLED", True),
        ea_enabled=_get_bool_env("SCRAPING_EA_ENABLED", True),
        manual_scraping_enabled=_get_bool_env("SCRAPING_MANUAL_ENABLED", True),
        scheduled_scraping_enabled=_get_bool_env("SCRAPING_SCHEDULED_ENABLED", True),
        real_time_progress_enabled=_get_bool_env("SCRAPING_REAL_TIME_PROGRESS_ENABLED", True),
    )


@lru_cache(maxsize=1)
def get_fetcher_http_settings() -> FetcherHTTPSettings:
    """
    Return cached HTTP settings for regulator fetchers.
    """

    load_env_files()
    return FetcherHTTPSettings(
        user_agent=_get_str_env(
            "SCRAPING_USER_AGENT",
            "EHSEnforcementBot/1.0 (+https://example.com/bot)",
        ),
        max_retries=max(0, _get_int_env("SCRAPING_HTTP_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("SCRAPING_HTTP_BACKOFF_INITIAL_SECONDS", 1.0)),
        backoff_multiplier=max(1.0, _get_float_env("SCRAPING_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        hse_base_url=_get_str_env("SCRAPING_HSE_BASE_URL", "https://resources.hse.gov.uk"),
        ea_base_url=_get_str_env(
            "SCRAPING_EA_BASE_URL",
            "https://environment.data.gov.uk/public-register/enforcement-action",
        ),
    )


def load_runtime_config(source: RuntimeConfigSource | None) -> ScrapingRuntimeConfig:
    """
    Read the active configuration, falling back to defaults when unavailable.
    """

    fallback = get_fallback_runtime_config()
    if source is None:
        return fallback

    try:
        config = source.get_active_config()
    except Exception as exc:
        log_event(
            logger,
            logging.ERROR,
            "scraping_config_load_failed",
            error=f"{type(exc).__name__}: {exc}",
        )
        return fallback

    if config is None:
        log_event(logger, logging.WARNING, "scraping_config_missing", fallback=fallback.name)
        return fallback
    return config


def ensure_scraping_enabled(config: ScrapingRuntimeConfig, *, agency: str, trigger: str) -> None:
    """
    Raise ConfigError when the agency or the trigger kind is switched off.
    """

    if not config.agency_enabled(agency):
        raise ConfigError(f"Scraping is disabled for agency '{agency}'.")
    if not config.trigger_enabled(trigger):
        raise ConfigError(f"{trigger.capitalize()} scraping is disabled.")
