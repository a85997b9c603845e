"""
Domain-aware request rate limiter and cooperative cancellation token.
"""

from __future__ import annotations

import threading
import time
from urllib.parse import urlparse


class CancellationToken:
    """
    Cooperative stop signal shared between a session worker and its controller.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """
        Sleep up to `seconds`; return True as soon as cancellation is requested.
        """

        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)


class DomainRateLimiter:
    """
    Enforces a requests-per-minute budget per domain.
    """

    def __init__(self, *, requests_per_minute: int) -> None:
        self._min_interval = 60.0 / max(1, requests_per_minute)
        self._last_request_by_domain: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def min_interval_seconds(self) -> float:
        return self._min_interval

    def wait(self, *, url: str, token: CancellationToken | None = None) -> None:
        """
        Block until the next request to this domain is allowed.
        """

        parsed = urlparse(url)
        domain = parsed.netloc.lower() or parsed.path.lower()
        if not domain:
            return

        with self._lock:
            now = time.monotonic()
            last_time = self._last_request_by_domain.get(domain)
            wait_seconds = 0.0 if last_time is None else self._min_interval - (now - last_time)
            # Reserve the slot before sleeping so concurrent sessions queue behind it.
            self._last_request_by_domain[domain] = now + max(0.0, wait_seconds)

        if wait_seconds > 0:
            if token is not None:
                token.wait(wait_seconds)
            else:
                time.sleep(wait_seconds)
