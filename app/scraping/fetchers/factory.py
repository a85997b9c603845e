"""
Builds the record fetcher for a validated run.
"""

from __future__ import annotations

import threading
from typing import Protocol

import requests

from app.scraping.config.loader import get_fetcher_http_settings
from app.scraping.config.models import FetcherHTTPSettings
from app.scraping.fetchers.base import HTTPFetcher, RecordFetcher
from app.scraping.fetchers.ea import EANoticeFetcher, EARegisterFetcher
from app.scraping.fetchers.hse import HSECaseFetcher, HSENoticeFetcher
from app.scraping.rate_limiter import CancellationToken, DomainRateLimiter
from app.scraping.types import Agency, EnforcementType, ValidatedParams

_FETCHER_CLASSES: dict[tuple[str, str], type[HTTPFetcher]] = {
    (Agency.HSE, EnforcementType.CASE): HSECaseFetcher,
    (Agency.HSE, EnforcementType.NOTICE): HSENoticeFetcher,
    (Agency.EA, EnforcementType.CASE): EARegisterFetcher,
    (Agency.EA, EnforcementType.NOTICE): EANoticeFetcher,
}


class RecordFetcherFactory(Protocol):
    def __call__(self, params: ValidatedParams, token: CancellationToken) -> RecordFetcher:
        ...


class HTTPRecordFetcherFactory:
    """
    Creates HTTP fetchers that share one rate limiter per requests-per-minute budget.
    """

    def __init__(
        self,
        *,
        settings: FetcherHTTPSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or get_fetcher_http_settings()
        self._session = session or requests.Session()
        self._limiters: dict[int, DomainRateLimiter] = {}
        self._lock = threading.Lock()

    def __call__(self, params: ValidatedParams, token: CancellationToken) -> RecordFetcher:
        fetcher_class = _FETCHER_CLASSES.get((params.agency, params.enforcement_type))
        if fetcher_class is None:
            raise ValueError(
                f"No fetcher registered for agency={params.agency} type={params.enforcement_type}."
            )
        return fetcher_class(
            settings=self._settings,
            session=self._session,
            rate_limiter=self._limiter_for(params.limits.requests_per_minute),
            timeout_seconds=params.limits.network_timeout_seconds,
            token=token,
        )

    def _limiter_for(self, requests_per_minute: int) -> DomainRateLimiter:
        with self._lock:
            limiter = self._limiters.get(requests_per_minute)
            if limiter is None:
                limiter = DomainRateLimiter(requests_per_minute=requests_per_minute)
                self._limiters[requests_per_minute] = limiter
            return limiter
