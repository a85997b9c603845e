"""
tests/test_fetchers.py

HTTP fetchers against a stubbed requests session: URL building, parsing
hand-off, retry/backoff and error mapping.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import pytest
import requests

from app.scraping.config.models import FetcherHTTPSettings
from app.scraping.errors import NetworkError
from app.scraping.fetchers import (
    EANoticeFetcher,
    EARegisterFetcher,
    HSECaseFetcher,
    HSENoticeFetcher,
    HTTPRecordFetcherFactory,
)
from app.scraping.rate_limiter import CancellationToken
from app.scraping.types import EnforcementType, PageRequest, RangeRequest, RawSummary

SETTINGS = FetcherHTTPSettings(
    user_agent="TestBot/1.0",
    max_retries=2,
    backoff_initial_seconds=0.0,
    backoff_multiplier=2.0,
    hse_base_url="https://resources.hse.gov.uk/",
    ea_base_url="https://environment.data.gov.uk/public-register/enforcement-action",
)

CASE_LIST_HTML = """
<table>
  <tr>
    <td><a href="#">4567890</a></td><td>Acme Widgets Ltd</td><td>12/01/2024</td><td>Leeds</td><td>Metalwork</td>
  </tr>
</table>
"""

CASE_DETAIL_HTML = """
<table>
  <tr><td>Total Fine</td><td>£12,000.00</td></tr>
  <tr><td>Total Costs Awarded to HSE</td><td>£3,500.50</td></tr>
  <tr><td>Industry</td><td>Manufacturing</td></tr>
</table>
"""

NOTICE_DETAIL_HTML = """
<table>
  <tr><td>Compliance Date</td><td>01/03/2024</td></tr>
  <tr><td>Description</td><td>Guard the press brake</td></tr>
</table>
"""

EA_SEARCH_HTML = """
<table><tbody>
  <tr>
    <td><a href="/public-register/enforcement-action/registration/10000123">River Works Ltd</a></td>
    <td>1 Quay Street</td>
    <td>14/01/2024</td>
  </tr>
</tbody></table>
"""


def _response(status_code: int, body: str = "", url: str = "https://stub.test/") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    response.reason = "stub"
    return response


class _StubSession:
    """
    Replays queued outcomes; the last outcome repeats once the queue drains.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def get(self, url, *, params=None, headers=None, timeout=None, allow_redirects=True):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class _RecordingLimiter:
    def __init__(self) -> None:
        self.urls: list[str] = []

    def wait(self, *, url: str, token: CancellationToken | None = None) -> None:
        self.urls.append(url)


def _fetcher(cls, session: _StubSession, *, token: CancellationToken | None = None, settings=SETTINGS):
    return cls(
        settings=settings,
        session=session,
        rate_limiter=_RecordingLimiter(),
        timeout_seconds=7.5,
        token=token,
    )


# ---------------------------------------------------------------------------
# HSE
# ---------------------------------------------------------------------------


class TestHSECaseFetcher:
    def test_list_builds_page_url_and_tags_database(self) -> None:
        session = _StubSession(_response(200, CASE_LIST_HTML))
        fetcher = _fetcher(HSECaseFetcher, session)

        summaries = fetcher.list_summaries(PageRequest(page=4, database="appeals"))

        call = session.calls[0]
        assert call["url"].startswith("https://resources.hse.gov.uk/appeals/case/case_list.asp?PN=4&")
        assert call["headers"] == {"User-Agent": "TestBot/1.0"}
        assert call["timeout"] == 7.5
        assert summaries[0].regulator_id == "4567890"
        assert summaries[0].fields["database"] == "appeals"
        assert fetcher.rate_limiter.urls == [call["url"]]

    def test_detail_merges_amounts_and_attributes(self) -> None:
        session = _StubSession(_response(200, CASE_DETAIL_HTML))
        fetcher = _fetcher(HSECaseFetcher, session)
        summary = RawSummary(
            regulator_id="4567890",
            subject_name="Acme Widgets Ltd",
            action_date=date(2024, 1, 12),
            action_type="Court Case",
            fields={"database": "convictions", "local_authority": "Leeds", "main_activity": None},
        )

        record = fetcher.fetch_detail(summary)

        assert session.calls[0]["url"] == (
            "https://resources.hse.gov.uk/convictions/case/case_details.asp?SF=CN&SV=4567890"
        )
        assert record.fine_amount == Decimal("12000.00")
        assert record.costs_amount == Decimal("3500.50")
        assert record.attributes["industry"] == "Manufacturing"
        assert record.attributes["local_authority"] == "Leeds"
        assert "main_activity" not in record.attributes
        assert record.natural_key.enforcement_type == EnforcementType.CASE

    def test_range_request_is_rejected(self) -> None:
        fetcher = _fetcher(HSECaseFetcher, _StubSession(_response(200)))
        request = RangeRequest(date_from=date(2024, 1, 1), date_to=date(2024, 1, 2), action_type="caution")

        with pytest.raises(TypeError):
            fetcher.list_summaries(request)


def test_hse_notice_list_filters_by_country_and_detail_parses_compliance_date() -> None:
    session = _StubSession(_response(200, "<table></table>"), _response(200, NOTICE_DETAIL_HTML))
    fetcher = _fetcher(HSENoticeFetcher, session)

    assert fetcher.list_summaries(PageRequest(page=2, database="notices", country="Wales")) == []
    record = fetcher.fetch_detail(RawSummary(regulator_id="310987654", subject_name="Harbour Foods plc"))

    assert "PN=2" in session.calls[0]["url"]
    assert "SV=Wales" in session.calls[0]["url"]
    assert record.attributes["compliance_date"] == "2024-03-01"
    assert record.attributes["description"] == "Guard the press brake"
    assert record.fine_amount is None


# ---------------------------------------------------------------------------
# Environment Agency
# ---------------------------------------------------------------------------


class TestEARegisterFetcher:
    def test_search_params_per_action_type(self) -> None:
        session = _StubSession(_response(200, EA_SEARCH_HTML))
        fetcher = _fetcher(EARegisterFetcher, session)
        request = RangeRequest(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31), action_type="court_case")

        summaries = fetcher.list_summaries(request)

        call = session.calls[0]
        assert call["url"] == "https://environment.data.gov.uk/public-register/enforcement-action/registration"
        assert call["params"]["actionType"].endswith("/action-type/court-case")
        assert call["params"]["after"] == "2024-01-01"
        assert call["params"]["before"] == "2024-01-31"
        assert summaries[0].regulator_id == "10000123"
        assert summaries[0].detail_url == (
            "https://environment.data.gov.uk/public-register/enforcement-action/registration/10000123"
        )

    def test_notice_fetcher_tags_notice_type(self) -> None:
        session = _StubSession(_response(200, "<dl><dt>Total Fine</dt><dd>£900</dd></dl>"))
        fetcher = _fetcher(EANoticeFetcher, session)

        record = fetcher.fetch_detail(RawSummary(regulator_id="10000999", subject_name="Quarry Co"))

        assert session.calls[0]["url"].endswith("/registration/10000999")
        assert record.enforcement_type == EnforcementType.NOTICE
        assert record.fine_amount == Decimal("900")


# ---------------------------------------------------------------------------
# Retry and error mapping
# ---------------------------------------------------------------------------


class TestRetry:
    def test_retryable_status_then_success(self) -> None:
        session = _StubSession(_response(503), _response(200, "<table></table>"))
        fetcher = _fetcher(HSECaseFetcher, session)

        assert fetcher.list_summaries(PageRequest(page=1, database="convictions")) == []
        assert len(session.calls) == 2

    def test_connection_errors_exhaust_retries(self) -> None:
        session = _StubSession(requests.ConnectionError("refused"))
        fetcher = _fetcher(HSECaseFetcher, session)

        with pytest.raises(NetworkError, match="after retries"):
            fetcher.list_summaries(PageRequest(page=1, database="convictions"))

        assert len(session.calls) == SETTINGS.max_retries + 1

    def test_rate_limited_status_exhausts_retries(self) -> None:
        session = _StubSession(_response(429))
        fetcher = _fetcher(HSECaseFetcher, session)

        with pytest.raises(NetworkError) as exc_info:
            fetcher.list_summaries(PageRequest(page=1, database="convictions"))

        assert exc_info.value.status_code == 429
        assert len(session.calls) == 3

    def test_client_error_is_not_retried(self) -> None:
        session = _StubSession(_response(404))
        fetcher = _fetcher(HSECaseFetcher, session)

        with pytest.raises(NetworkError) as exc_info:
            fetcher.list_summaries(PageRequest(page=1, database="convictions"))

        assert exc_info.value.status_code == 404
        assert len(session.calls) == 1

    def test_cancellation_skips_backoff_retries(self) -> None:
        token = CancellationToken()
        token.cancel()
        settings = FetcherHTTPSettings(
            user_agent="TestBot/1.0",
            max_retries=5,
            backoff_initial_seconds=30.0,
            backoff_multiplier=2.0,
            hse_base_url=SETTINGS.hse_base_url,
            ea_base_url=SETTINGS.ea_base_url,
        )
        session = _StubSession(requests.Timeout("read timed out"))
        fetcher = _fetcher(HSECaseFetcher, session, token=token, settings=settings)

        with pytest.raises(NetworkError):
            fetcher.list_summaries(PageRequest(page=1, database="convictions"))

        assert len(session.calls) == 1


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def test_factory_builds_fetcher_per_pair_and_shares_limiters(validate) -> None:
    factory = HTTPRecordFetcherFactory(settings=SETTINGS, session=_StubSession(_response(200)))
    token = CancellationToken()

    hse = factory(validate("hse", "case", network_timeout_ms=4000), token)
    notices = factory(validate("hse", "notice"), token)
    ea = factory(validate("ea", "notice"), token)

    assert isinstance(hse, HSECaseFetcher)
    assert isinstance(notices, HSENoticeFetcher)
    assert isinstance(ea, EANoticeFetcher)
    assert hse.timeout_seconds == 4.0
    assert hse.token is token
    assert hse.rate_limiter is notices.rate_limiter is ea.rate_limiter
