"""
Date-range strategies for the Environment Agency public register.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from typing import Any

from app.domain.scrape_session import ScrapeSession
from app.scraping.config.models import ScrapingRuntimeConfig
from app.scraping.errors import ValidationError
from app.scraping.strategies.params import (
    build_run_limits,
    clamp_percentage,
    coerce_action_types,
    coerce_bool,
    coerce_date,
    counter,
    notice_vocabulary,
    optional_actor,
)
from app.scraping.types import (
    EA_CASE_ACTION_TYPES,
    EA_NOTICE_ACTION_TYPE,
    Agency,
    EnforcementType,
    Granularity,
    RangeLocator,
    ValidatedParams,
)

DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_CASE_ACTION_TYPES = ("court_case",)


def _resolve_range(
    raw: Mapping[str, Any],
    today: date,
    errors: dict[str, str],
) -> tuple[date, date]:
    date_from = coerce_date(raw, "date_from", errors) or today - timedelta(days=DEFAULT_LOOKBACK_DAYS)
    date_to = coerce_date(raw, "date_to", errors)
    if date_to is None:
        date_to = today if today >= date_from else date_from
    elif "date_from" not in errors and date_from > date_to:
        errors["date_to"] = "date_to must be on or after date_from"
    return date_from, date_to


def _range_progress(session: ScrapeSession) -> float:
    found = counter(session, "items_found")
    if found <= 0:
        return 0.0
    return clamp_percentage(counter(session, "items_processed") / found * 100)


def _range_display(session: ScrapeSession, percentage: float) -> dict[str, Any]:
    locator = getattr(session, "locator", None)
    if not isinstance(locator, RangeLocator):
        locator = None
    return {
        "percentage": round(percentage, 2),
        "cases_found": counter(session, "items_found"),
        "cases_processed": counter(session, "items_processed"),
        "cases_created": counter(session, "items_created"),
        "cases_exist_total": counter(session, "items_existing"),
        "errors_count": counter(session, "errors_count"),
        "date_from": locator.date_from.isoformat() if locator else None,
        "date_to": locator.date_to.isoformat() if locator else None,
        "action_types": list(locator.action_types) if locator else [],
        "status": getattr(session, "status", None),
    }


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class EACaseStrategy:
    """
    Court cases and cautions from the EA enforcement-action register.
    """

    granularity = Granularity.RANGE

    def validate_params(
        self,
        raw: Mapping[str, Any],
        *,
        config: ScrapingRuntimeConfig,
        actor: str | None = None,
        today: date | None = None,
    ) -> ValidatedParams:
        errors: dict[str, str] = {}
        date_from, date_to = _resolve_range(raw, today or _utc_today(), errors)
        action_types = coerce_action_types(
            raw,
            "action_types",
            DEFAULT_CASE_ACTION_TYPES,
            EA_CASE_ACTION_TYPES,
            errors,
        )
        stop_on_existing = coerce_bool(raw, "stop_on_existing", True, errors)
        limits = build_run_limits(raw, config, errors)
        if errors:
            raise ValidationError(errors)

        return ValidatedParams(
            agency=Agency.EA,
            enforcement_type=EnforcementType.CASE,
            granularity=self.granularity,
            locator=RangeLocator(date_from=date_from, date_to=date_to, action_types=action_types),
            limits=limits,
            actor=optional_actor(raw, actor),
            stop_on_existing=stop_on_existing,
        )

    def calculate_progress(self, session: ScrapeSession) -> float:
        return _range_progress(session)

    def format_progress_display(self, session: ScrapeSession) -> dict[str, Any]:
        return _range_display(session, self.calculate_progress(session))

    def strategy_name(self) -> str:
        return "Environment Agency Case Scraping"

    def agency_identifier(self) -> str:
        return Agency.EA

    def enforcement_type(self) -> str:
        return EnforcementType.CASE


class EANoticeStrategy:
    """
    Enforcement notices from the EA register; the action type is fixed.
    """

    granularity = Granularity.RANGE

    def validate_params(
        self,
        raw: Mapping[str, Any],
        *,
        config: ScrapingRuntimeConfig,
        actor: str | None = None,
        today: date | None = None,
    ) -> ValidatedParams:
        errors: dict[str, str] = {}
        date_from, date_to = _resolve_range(raw, today or _utc_today(), errors)
        stop_on_existing = coerce_bool(raw, "stop_on_existing", True, errors)
        limits = build_run_limits(raw, config, errors)
        if errors:
            raise ValidationError(errors)

        return ValidatedParams(
            agency=Agency.EA,
            enforcement_type=EnforcementType.NOTICE,
            granularity=self.granularity,
            locator=RangeLocator(
                date_from=date_from,
                date_to=date_to,
                action_types=(EA_NOTICE_ACTION_TYPE,),
            ),
            limits=limits,
            actor=optional_actor(raw, actor),
            stop_on_existing=stop_on_existing,
        )

    def calculate_progress(self, session: ScrapeSession) -> float:
        return _range_progress(session)

    def format_progress_display(self, session: ScrapeSession) -> dict[str, Any]:
        return notice_vocabulary(_range_display(session, self.calculate_progress(session)))

    def strategy_name(self) -> str:
        return "Environment Agency Notice Scraping"

    def agency_identifier(self) -> str:
        return Agency.EA

    def enforcement_type(self) -> str:
        return EnforcementType.NOTICE
