"""
Base HTTP fetcher for regulator registers.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Protocol

import requests

from app.scraping.config.models import FetcherHTTPSettings
from app.scraping.errors import NetworkError
from app.scraping.logging_utils import log_event
from app.scraping.rate_limiter import CancellationToken, DomainRateLimiter
from app.scraping.types import EnrichedRecord, PageRequest, RangeRequest, RawSummary

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class RecordFetcher(Protocol):
    """
    Two-stage fetch: cheap list enumeration, then per-record enrichment.
    """

    def list_summaries(self, request: PageRequest | RangeRequest) -> list[RawSummary]:
        ...

    def fetch_detail(self, summary: RawSummary) -> EnrichedRecord:
        ...


class HTTPFetcher(ABC):
    """
    Shared retrying GET with per-domain rate limiting.
    """

    def __init__(
        self,
        *,
        settings: FetcherHTTPSettings,
        session: requests.Session,
        rate_limiter: DomainRateLimiter,
        timeout_seconds: float,
        token: CancellationToken | None = None,
    ) -> None:
        self.settings = settings
        self.session = session
        self.rate_limiter = rate_limiter
        self.timeout_seconds = timeout_seconds
        self.token = token
        self.request_headers = {"User-Agent": settings.user_agent}

    @abstractmethod
    def list_summaries(self, request: PageRequest | RangeRequest) -> list[RawSummary]:
        """
        Fetch and parse one listing page or one action-type result set.
        """

    @abstractmethod
    def fetch_detail(self, summary: RawSummary) -> EnrichedRecord:
        """
        Fetch the detail page for one summary and merge it in.
        """

    def _get_html(self, url: str, params: Mapping[str, Any] | None = None) -> str:
        return self._request_with_retry(url, params=params).text

    def _request_with_retry(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(self.settings.max_retries + 1):
            self.rate_limiter.wait(url=url, token=self.token)
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers=self.request_headers,
                    timeout=self.timeout_seconds,
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable status={response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except (requests.Timeout, requests.ConnectionError, requests.HTTPError) as exc:
                last_error = exc
                if isinstance(exc, requests.HTTPError):
                    status_code = exc.response.status_code if exc.response is not None else None
                    if status_code not in RETRYABLE_STATUS_CODES:
                        raise NetworkError(
                            f"Request to {url} failed with status={status_code}",
                            url=url,
                            status_code=status_code,
                        ) from exc

            if attempt >= self.settings.max_retries:
                break

            backoff_seconds = self.settings.backoff_initial_seconds * (
                self.settings.backoff_multiplier**attempt
            )
            log_event(
                logger,
                logging.WARNING,
                "fetch_retry_scheduled",
                url=url,
                attempt=attempt + 1,
                backoff_seconds=backoff_seconds,
                error=str(last_error),
            )
            if self._pause(backoff_seconds):
                break

        status_code = None
        if isinstance(last_error, requests.HTTPError) and last_error.response is not None:
            status_code = last_error.response.status_code
        raise NetworkError(
            f"Failed to fetch {url} after retries: {last_error}",
            url=url,
            status_code=status_code,
        ) from last_error

    def _pause(self, seconds: float) -> bool:
        if self.token is not None:
            return self.token.wait(seconds)
        time.sleep(seconds)
        return False
