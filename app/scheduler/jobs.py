"""
app/scheduler/jobs.py

APScheduler-based cron triggers for periodic enforcement scraping.

Schedule (defaults, UTC)
--------------------------
  daily_*               : 02:00 every day (SCRAPING_DAILY_CRON)
  weekly_hse_cases_deep : 01:00 every Sunday (SCRAPING_WEEKLY_CRON)

Jobs only start sessions; the coordinator's worker pool drives them. A run
is skipped with a log line when scheduled scraping or the agency is disabled
in the active scraping config.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import ScheduledRun, SchedulerSettings, get_scheduler_settings
from app.scraping.coordinator import ScrapingCoordinator
from app.scraping.errors import ConfigError, ValidationError
from app.scraping.types import ScrapeTrigger
from app.services.enforcement_scraping_service import get_scraping_coordinator

logger = logging.getLogger(__name__)


def run_scheduled_scrape(
    run: ScheduledRun,
    coordinator_getter: Callable[[], ScrapingCoordinator] = get_scraping_coordinator,
) -> str | None:
    """
    Start one scheduled session. Returns the session id, or None when skipped.
    """

    logger.info("Scheduler: %s starting agency=%s type=%s", run.job_id, run.agency, run.enforcement_type)
    try:
        handle = coordinator_getter().start(
            agency=run.agency,
            enforcement_type=run.enforcement_type,
            raw_params=dict(run.params),
            actor="scheduler",
            trigger=ScrapeTrigger.SCHEDULED,
        )
    except ConfigError as exc:
        logger.info("Scheduler: %s skipped: %s", run.job_id, exc)
        return None
    except ValidationError as exc:
        logger.warning("Scheduler: %s has invalid parameters: %s", run.job_id, exc)
        return None

    logger.info("Scheduler: %s started session_id=%s", run.job_id, handle.session_id)
    return handle.session_id


def build_scheduler(settings: SchedulerSettings | None = None) -> BackgroundScheduler:
    """
    Build and register all periodic scrape jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    """

    settings = settings or get_scheduler_settings()
    scheduler = BackgroundScheduler(timezone=settings.timezone)
    if not settings.enabled:
        logger.info("Scheduler: disabled by SCRAPING_SCHEDULER_ENABLED")
        return scheduler

    for run in settings.runs:
        scheduler.add_job(
            run_scheduled_scrape,
            trigger=CronTrigger.from_crontab(run.cron, timezone=settings.timezone),
            args=[run],
            id=run.job_id,
            name=f"Scheduled {run.agency} {run.enforcement_type} scrape",
            replace_existing=True,
            misfire_grace_time=settings.misfire_grace_seconds,
            max_instances=1,
            coalesce=True,
        )

    return scheduler
