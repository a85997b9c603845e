"""
Best-effort progress publishing to a topic-per-event message bus.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Protocol

from app.domain.scrape_session import ScrapeSession
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

TOPIC_PREFIX = "scraping"

Subscriber = Callable[[str, dict[str, Any]], None]


def topic_for(event: str) -> str:
    return f"{TOPIC_PREFIX}:{event}"


class MessageBus(Protocol):
    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        ...


class InProcessMessageBus:
    """
    Synchronous in-process pub/sub; subscribers are called on the publishing thread.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers.get(topic, []):
                    self._subscribers[topic].remove(callback)

        return unsubscribe

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(topic, []))
        for callback in callbacks:
            callback(topic, payload)


class ProgressBroadcaster:
    """
    Publishes session snapshots after each state mutation.

    Failures are logged and swallowed: nothing in the scraping loop depends
    on its own broadcasts.
    """

    def __init__(self, bus: MessageBus | None = None, *, enabled: bool = True) -> None:
        self._bus = bus
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled and self._bus is not None

    def with_enabled(self, enabled: bool) -> "ProgressBroadcaster":
        return ProgressBroadcaster(self._bus, enabled=self._enabled and enabled)

    def publish(self, event: str, session: ScrapeSession, **fields: Any) -> None:
        if not self.enabled:
            return

        payload = {"event": event, "session": session.to_dict(), **fields}
        try:
            self._bus.publish(topic_for(event), payload)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "progress_publish_failed",
                session_id=session.session_id,
                progress_event=event,
                error=f"{type(exc).__name__}: {exc}",
            )
