"""
Config helpers for enforcement scraping.
"""

from app.scraping.config.loader import (
    RuntimeConfigSource,
    StaticConfigSource,
    ensure_scraping_enabled,
    get_fallback_runtime_config,
    get_fetcher_http_settings,
    load_runtime_config,
)
from app.scraping.config.models import FetcherHTTPSettings, ScrapingRuntimeConfig

__all__ = [
    "FetcherHTTPSettings",
    "RuntimeConfigSource",
    "ScrapingRuntimeConfig",
    "StaticConfigSource",
    "ensure_scraping_enabled",
    "get_fallback_runtime_config",
    "get_fetcher_http_settings",
    "load_runtime_config",
]
