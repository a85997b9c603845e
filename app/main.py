from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Runs before any service or database connection is initialised and lists
    every problem at once so the operator can fix them in one restart cycle.
    """

    from db.config import database_url_configured

    errors: list[str] = []

    if not database_url_configured():
        errors.append(
            "No database URL configured. Set DATABASE_URL, or configure "
            "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
        )

    for name in ("SCRAPING_HSE_BASE_URL", "SCRAPING_EA_BASE_URL"):
        value = os.getenv(name)
        if value is not None and not value.strip().lower().startswith(("http://", "https://")):
            errors.append(f"{name} must be an http(s) URL, got {value!r}.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import session_scope

    try:
        with session_scope() as db:
            db.execute(text("SELECT 1"))
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database.
    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch: %d table(s) absent from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


def _stop_orphaned_sessions() -> None:
    """
    Sessions left running by a previous process have no worker; mark them stopped.
    """

    from app.services.enforcement_scraping_service import get_scraping_coordinator

    coordinator = get_scraping_coordinator()
    for session in coordinator.list_sessions(active_only=True, limit=500):
        if session.session_id not in coordinator.active_session_ids():
            coordinator.stop(session.session_id)
            logging.getLogger(__name__).warning("Stopped orphaned scrape session %s", session.session_id)


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema, start the scheduler on boot; drain workers on exit."""
    log = logging.getLogger(__name__)
    _check_db()
    log.info("Database connectivity confirmed")
    _check_schema()
    log.info("Database schema validated")
    _stop_orphaned_sessions()

    from app.config import get_coordinator_settings
    from app.scheduler.jobs import build_scheduler
    from app.services.enforcement_scraping_service import get_scraping_coordinator

    scheduler = build_scheduler()
    scheduler.start()
    log.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        log.info("Scheduler shut down")
        get_scraping_coordinator().shutdown(wait=get_coordinator_settings().shutdown_wait)
        log.info("Scraping workers shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Enforcement Scraping API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import scraping_router

    application.include_router(scraping_router)

    @application.get("/health")
    def healthcheck() -> dict[str, object]:
        from app.services.enforcement_scraping_service import get_scraping_coordinator

        return {
            "status": "ok",
            "active_sessions": len(get_scraping_coordinator().active_session_ids()),
        }

    return application


app = create_app()
