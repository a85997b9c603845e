"""
app/config.py

Process-level settings for the scraping service: scheduled runs and the
session worker pool.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class ScheduledRun:
    """
    One cron-driven scrape: agency, enforcement type and raw parameters.
    """

    job_id: str
    cron: str
    agency: str
    enforcement_type: str
    params: tuple[tuple[str, object], ...] = ()


@dataclass(frozen=True)
class SchedulerSettings:
    enabled: bool = True
    timezone: str = "UTC"
    misfire_grace_seconds: int = 3600
    runs: tuple[ScheduledRun, ...] = ()


@dataclass(frozen=True)
class CoordinatorSettings:
    max_workers: int = 4
    shutdown_wait: bool = True


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return cached scheduler settings.

    The daily cron refreshes the first pages of each agency; the weekly cron
    sweeps deeper into the HSE convictions database.
    """

    daily = _get_str_env("SCRAPING_DAILY_CRON", "0 2 * * *")
    weekly = _get_str_env("SCRAPING_WEEKLY_CRON", "0 1 * * 0")
    daily_pages = max(1, _get_int_env("SCRAPING_DAILY_MAX_PAGES", 5))
    weekly_pages = max(1, _get_int_env("SCRAPING_WEEKLY_MAX_PAGES", 50))

    runs = (
        ScheduledRun(
            job_id="daily_hse_cases",
            cron=daily,
            agency="hse",
            enforcement_type="case",
            params=(("start_page", 1), ("max_pages", daily_pages)),
        ),
        ScheduledRun(
            job_id="daily_hse_notices",
            cron=daily,
            agency="hse",
            enforcement_type="notice",
            params=(("start_page", 1), ("max_pages", daily_pages)),
        ),
        ScheduledRun(
            job_id="daily_ea_cases",
            cron=daily,
            agency="ea",
            enforcement_type="case",
        ),
        ScheduledRun(
            job_id="daily_ea_notices",
            cron=daily,
            agency="ea",
            enforcement_type="notice",
        ),
        ScheduledRun(
            job_id="weekly_hse_cases_deep",
            cron=weekly,
            agency="hse",
            enforcement_type="case",
            params=(("start_page", 1), ("max_pages", weekly_pages), ("stop_on_existing", False)),
        ),
    )
    return SchedulerSettings(
        enabled=_get_bool_env("SCRAPING_SCHEDULER_ENABLED", True),
        timezone=_get_str_env("SCRAPING_SCHEDULER_TIMEZONE", "UTC"),
        misfire_grace_seconds=max(60, _get_int_env("SCRAPING_SCHEDULER_MISFIRE_GRACE_SECONDS", 3600)),
        runs=runs,
    )


@lru_cache(maxsize=1)
def get_coordinator_settings() -> CoordinatorSettings:
    return CoordinatorSettings(
        max_workers=max(1, _get_int_env("SCRAPING_MAX_WORKERS", 4)),
        shutdown_wait=_get_bool_env("SCRAPING_SHUTDOWN_WAIT", True),
    )
