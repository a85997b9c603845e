"""
tests/test_strategies.py

Parameter validation, progress math and display formatting for each
agency strategy. Pure Python, no I/O.
"""

from __future__ import annotations

import dataclasses
from datetime import date

import pytest

from app.domain.scrape_session import ScrapeSession
from app.scraping.config.models import ScrapingRuntimeConfig
from app.scraping.errors import ValidationError
from app.scraping.strategies import EACaseStrategy, EANoticeStrategy, HSECaseStrategy, HSENoticeStrategy
from app.scraping.types import (
    Agency,
    EnforcementType,
    Granularity,
    PageLocator,
    RangeLocator,
    SessionStatus,
)

CONFIG = ScrapingRuntimeConfig(max_pages_per_session=20, max_consecutive_errors=4, pause_between_pages_ms=1500)
TODAY = date(2024, 2, 15)


def _page_session(**overrides) -> ScrapeSession:
    locator = PageLocator(start_page=1, current_page=1, max_pages=2, database="convictions")
    session = ScrapeSession(
        session_id="abc",
        agency=Agency.HSE,
        enforcement_type=EnforcementType.CASE,
        locator=locator,
        status=SessionStatus.RUNNING,
    )
    return dataclasses.replace(session, **overrides)


def _range_session(**overrides) -> ScrapeSession:
    session = ScrapeSession(
        session_id="def",
        agency=Agency.EA,
        enforcement_type=EnforcementType.CASE,
        locator=RangeLocator(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31), action_types=("court_case",)),
        status=SessionStatus.RUNNING,
    )
    return dataclasses.replace(session, **overrides)


# ---------------------------------------------------------------------------
# HSE cases
# ---------------------------------------------------------------------------


class TestHSECaseStrategy:
    strategy = HSECaseStrategy()

    def test_defaults(self) -> None:
        params = self.strategy.validate_params({}, config=CONFIG)

        assert params.agency == Agency.HSE
        assert params.enforcement_type == EnforcementType.CASE
        assert params.granularity == Granularity.PAGE
        assert params.locator == PageLocator(start_page=1, current_page=1, max_pages=10, database="convictions")
        assert params.limits.max_consecutive_errors == 4
        assert params.limits.pause_between_pages_ms == 1500
        assert params.stop_on_existing is True

    def test_string_inputs_are_coerced(self) -> None:
        params = self.strategy.validate_params(
            {"start_page": "3", "max_pages": " 5 ", "database": "APPEALS"},
            config=CONFIG,
        )

        assert params.locator.start_page == 3
        assert params.locator.current_page == 3
        assert params.locator.max_pages == 5
        assert params.locator.database == "appeals"

    def test_limit_overrides(self) -> None:
        params = self.strategy.validate_params(
            {"network_timeout_ms": 5000, "max_consecutive_errors": 1, "pause_between_pages_ms": 0},
            config=CONFIG,
        )

        assert params.limits.network_timeout_seconds == 5.0
        assert params.limits.max_consecutive_errors == 1
        assert params.limits.pause_seconds == 0

    def test_collects_every_field_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            self.strategy.validate_params(
                {"start_page": 0, "max_pages": "many", "database": "notices", "stop_on_existing": "perhaps"},
                config=CONFIG,
            )

        assert set(exc_info.value.field_errors) == {"start_page", "max_pages", "database", "stop_on_existing"}

    def test_max_pages_bounded_by_session_ceiling(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            self.strategy.validate_params({"max_pages": 21}, config=CONFIG)

        assert "max_pages" in exc_info.value.field_errors

    def test_boolean_is_not_an_integer(self) -> None:
        with pytest.raises(ValidationError):
            self.strategy.validate_params({"max_pages": True}, config=CONFIG)

    def test_actor_argument_wins_over_raw(self) -> None:
        params = self.strategy.validate_params({"actor": "raw"}, config=CONFIG, actor="caller")
        assert params.actor == "caller"

    @pytest.mark.parametrize(
        "current_page, max_pages, expected",
        [(0, 2, 0.0), (1, 2, 50.0), (2, 2, 100.0), (9, 2, 100.0), (1, 0, 0.0)],
    )
    def test_progress_is_bounded(self, current_page: int, max_pages: int, expected: float) -> None:
        locator = PageLocator(start_page=1, current_page=current_page, max_pages=max_pages, database="convictions")
        assert self.strategy.calculate_progress(_page_session(locator=locator)) == expected

    def test_progress_uses_absolute_page_cursor(self) -> None:
        locator = PageLocator(start_page=5, current_page=5, max_pages=10, database="convictions")
        assert self.strategy.calculate_progress(_page_session(locator=locator)) == 50.0

    def test_display(self) -> None:
        locator = PageLocator(start_page=1, current_page=2, max_pages=4, database="convictions")
        session = _page_session(
            locator=locator,
            items_found=5,
            items_processed=5,
            items_created=3,
            items_existing=2,
            batches_or_pages_processed=1,
        )

        display = self.strategy.format_progress_display(session)

        assert display == {
            "percentage": 50.0,
            "current_page": 2,
            "total_pages": 4,
            "pages_processed": 1,
            "cases_found": 5,
            "cases_processed": 5,
            "cases_created": 3,
            "cases_exist_total": 2,
            "errors_count": 0,
            "database": "convictions",
            "status": SessionStatus.RUNNING,
        }

    def test_metadata(self) -> None:
        assert self.strategy.strategy_name() == "HSE Case Scraping"
        assert self.strategy.agency_identifier() == Agency.HSE
        assert self.strategy.enforcement_type() == EnforcementType.CASE


class TestHSENoticeStrategy:
    strategy = HSENoticeStrategy()

    def test_defaults(self) -> None:
        params = self.strategy.validate_params({}, config=CONFIG)

        assert params.locator.database == "notices"
        assert params.locator.country == "All"

    def test_country_is_case_insensitive(self) -> None:
        params = self.strategy.validate_params({"country": "scotland"}, config=CONFIG)
        assert params.locator.country == "Scotland"

    def test_rejects_case_database_and_unknown_country(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            self.strategy.validate_params({"database": "convictions", "country": "France"}, config=CONFIG)

        assert set(exc_info.value.field_errors) == {"database", "country"}

    def test_display_uses_notice_vocabulary(self) -> None:
        locator = PageLocator(start_page=1, current_page=1, max_pages=3, database="notices", country="Wales")
        display = self.strategy.format_progress_display(
            _page_session(enforcement_type=EnforcementType.NOTICE, locator=locator, items_created=4)
        )

        assert display["notices_created"] == 4
        assert display["country"] == "Wales"
        assert not any(key.startswith("cases_") for key in display)

    def test_metadata(self) -> None:
        assert self.strategy.strategy_name() == "HSE Notice Scraping"
        assert self.strategy.enforcement_type() == EnforcementType.NOTICE


# ---------------------------------------------------------------------------
# Environment Agency
# ---------------------------------------------------------------------------


class TestEACaseStrategy:
    strategy = EACaseStrategy()

    def test_defaults_to_trailing_thirty_days(self) -> None:
        params = self.strategy.validate_params({}, config=CONFIG, today=TODAY)

        assert params.granularity == Granularity.RANGE
        assert params.locator.date_from == date(2024, 1, 16)
        assert params.locator.date_to == TODAY
        assert params.locator.action_types == ("court_case",)
        assert params.locator.batch_complete is False

    def test_explicit_range_and_action_types(self) -> None:
        params = self.strategy.validate_params(
            {"date_from": "2024-01-01", "date_to": "2024-01-31", "action_types": ["Court_Case", "caution", "caution"]},
            config=CONFIG,
            today=TODAY,
        )

        assert params.locator.date_from == date(2024, 1, 1)
        assert params.locator.date_to == date(2024, 1, 31)
        assert params.locator.action_types == ("court_case", "caution")

    def test_future_start_without_end_uses_start(self) -> None:
        params = self.strategy.validate_params({"date_from": "2024-03-01"}, config=CONFIG, today=TODAY)
        assert params.locator.date_to == date(2024, 3, 1)

    def test_inverted_range_is_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            self.strategy.validate_params(
                {"date_from": "2024-02-01", "date_to": "2024-01-01"},
                config=CONFIG,
                today=TODAY,
            )

        assert "date_to" in exc_info.value.field_errors

    def test_bad_date_and_action_type(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            self.strategy.validate_params(
                {"date_from": "01/02/2024", "action_types": ["enforcement_notice"]},
                config=CONFIG,
                today=TODAY,
            )

        assert set(exc_info.value.field_errors) == {"date_from", "action_types"}

    @pytest.mark.parametrize(
        "found, processed, expected",
        [(0, 0, 0.0), (10, 0, 0.0), (10, 5, 50.0), (10, 10, 100.0), (3, 1, 100 / 3)],
    )
    def test_progress_is_processed_over_found(self, found: int, processed: int, expected: float) -> None:
        session = _range_session(items_found=found, items_processed=processed)
        assert self.strategy.calculate_progress(session) == pytest.approx(expected)

    def test_display(self) -> None:
        display = self.strategy.format_progress_display(_range_session(items_found=2, items_processed=1))

        assert display["date_from"] == "2024-01-01"
        assert display["date_to"] == "2024-01-31"
        assert display["action_types"] == ["court_case"]
        assert display["percentage"] == 50.0

    def test_display_rounds_percentage(self) -> None:
        display = self.strategy.format_progress_display(_range_session(items_found=3, items_processed=1))

        assert display["percentage"] == 33.33

    def test_metadata(self) -> None:
        assert self.strategy.strategy_name() == "Environment Agency Case Scraping"
        assert self.strategy.agency_identifier() == Agency.EA


class TestEANoticeStrategy:
    strategy = EANoticeStrategy()

    def test_action_type_is_fixed(self) -> None:
        params = self.strategy.validate_params({"action_types": ["court_case"]}, config=CONFIG, today=TODAY)
        assert params.locator.action_types == ("enforcement_notice",)

    def test_display_uses_notice_vocabulary(self) -> None:
        display = self.strategy.format_progress_display(_range_session(items_existing=7))
        assert display["notices_exist_total"] == 7

    def test_metadata(self) -> None:
        assert self.strategy.strategy_name() == "Environment Agency Notice Scraping"
        assert self.strategy.enforcement_type() == EnforcementType.NOTICE
