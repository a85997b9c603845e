"""
Page-based strategies for the Health and Safety Executive registers.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from app.domain.scrape_session import ScrapeSession
from app.scraping.config.models import ScrapingRuntimeConfig
from app.scraping.errors import ValidationError
from app.scraping.strategies.params import (
    build_run_limits,
    clamp_percentage,
    coerce_bool,
    coerce_choice,
    coerce_positive_int,
    counter,
    notice_vocabulary,
    optional_actor,
)
from app.scraping.types import (
    HSE_CASE_DATABASES,
    HSE_NOTICE_COUNTRIES,
    HSE_NOTICE_DATABASE,
    Agency,
    EnforcementType,
    Granularity,
    PageLocator,
    ValidatedParams,
)

DEFAULT_START_PAGE = 1
DEFAULT_MAX_PAGES = 10
DEFAULT_CASE_DATABASE = "convictions"
DEFAULT_NOTICE_COUNTRY = "All"


def _page_progress(session: ScrapeSession) -> float:
    locator = getattr(session, "locator", None)
    if not isinstance(locator, PageLocator) or locator.max_pages <= 0:
        return 0.0
    return clamp_percentage(locator.current_page / locator.max_pages * 100)


def _page_display(session: ScrapeSession, percentage: float) -> dict[str, Any]:
    locator = getattr(session, "locator", None)
    if not isinstance(locator, PageLocator):
        locator = None
    return {
        "percentage": round(percentage, 2),
        "current_page": locator.current_page if locator else 0,
        "total_pages": locator.max_pages if locator else 0,
        "pages_processed": counter(session, "batches_or_pages_processed"),
        "cases_found": counter(session, "items_found"),
        "cases_processed": counter(session, "items_processed"),
        "cases_created": counter(session, "items_created"),
        "cases_exist_total": counter(session, "items_existing"),
        "errors_count": counter(session, "errors_count"),
        "database": locator.database if locator else None,
        "status": getattr(session, "status", None),
    }


def _check_session_ceiling(max_pages: int, config: ScrapingRuntimeConfig, errors: dict[str, str]) -> None:
    if "max_pages" not in errors and max_pages > config.max_pages_per_session:
        errors["max_pages"] = f"max_pages must not exceed {config.max_pages_per_session}"


class HSECaseStrategy:
    """
    Court cases from the HSE convictions and appeals databases.
    """

    granularity = Granularity.PAGE

    def validate_params(
        self,
        raw: Mapping[str, Any],
        *,
        config: ScrapingRuntimeConfig,
        actor: str | None = None,
        today: date | None = None,
    ) -> ValidatedParams:
        errors: dict[str, str] = {}
        start_page = coerce_positive_int(raw, "start_page", DEFAULT_START_PAGE, errors)
        max_pages = coerce_positive_int(raw, "max_pages", DEFAULT_MAX_PAGES, errors)
        _check_session_ceiling(max_pages, config, errors)
        database = coerce_choice(raw, "database", DEFAULT_CASE_DATABASE, HSE_CASE_DATABASES, errors)
        stop_on_existing = coerce_bool(raw, "stop_on_existing", True, errors)
        limits = build_run_limits(raw, config, errors)
        if errors:
            raise ValidationError(errors)

        return ValidatedParams(
            agency=Agency.HSE,
            enforcement_type=EnforcementType.CASE,
            granularity=self.granularity,
            locator=PageLocator(
                start_page=start_page,
                current_page=start_page,
                max_pages=max_pages,
                database=database,
            ),
            limits=limits,
            actor=optional_actor(raw, actor),
            stop_on_existing=stop_on_existing,
        )

    def calculate_progress(self, session: ScrapeSession) -> float:
        return _page_progress(session)

    def format_progress_display(self, session: ScrapeSession) -> dict[str, Any]:
        return _page_display(session, self.calculate_progress(session))

    def strategy_name(self) -> str:
        return "HSE Case Scraping"

    def agency_identifier(self) -> str:
        return Agency.HSE

    def enforcement_type(self) -> str:
        return EnforcementType.CASE


class HSENoticeStrategy:
    """
    Enforcement notices from the HSE notices database, filtered by country.
    """

    granularity = Granularity.PAGE

    def validate_params(
        self,
        raw: Mapping[str, Any],
        *,
        config: ScrapingRuntimeConfig,
        actor: str | None = None,
        today: date | None = None,
    ) -> ValidatedParams:
        errors: dict[str, str] = {}
        start_page = coerce_positive_int(raw, "start_page", DEFAULT_START_PAGE, errors)
        max_pages = coerce_positive_int(raw, "max_pages", DEFAULT_MAX_PAGES, errors)
        _check_session_ceiling(max_pages, config, errors)
        database = coerce_choice(raw, "database", HSE_NOTICE_DATABASE, {HSE_NOTICE_DATABASE}, errors)
        country = coerce_choice(raw, "country", DEFAULT_NOTICE_COUNTRY, HSE_NOTICE_COUNTRIES, errors)
        stop_on_existing = coerce_bool(raw, "stop_on_existing", True, errors)
        limits = build_run_limits(raw, config, errors)
        if errors:
            raise ValidationError(errors)

        return ValidatedParams(
            agency=Agency.HSE,
            enforcement_type=EnforcementType.NOTICE,
            granularity=self.granularity,
            locator=PageLocator(
                start_page=start_page,
                current_page=start_page,
                max_pages=max_pages,
                database=database,
                country=country,
            ),
            limits=limits,
            actor=optional_actor(raw, actor),
            stop_on_existing=stop_on_existing,
        )

    def calculate_progress(self, session: ScrapeSession) -> float:
        return _page_progress(session)

    def format_progress_display(self, session: ScrapeSession) -> dict[str, Any]:
        display = _page_display(session, self.calculate_progress(session))
        locator = getattr(session, "locator", None)
        display["country"] = locator.country if isinstance(locator, PageLocator) else None
        return notice_vocabulary(display)

    def strategy_name(self) -> str:
        return "HSE Notice Scraping"

    def agency_identifier(self) -> str:
        return Agency.HSE

    def enforcement_type(self) -> str:
        return EnforcementType.NOTICE
