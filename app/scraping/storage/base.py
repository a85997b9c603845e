"""
Storage layer interfaces for scrape sessions and processing logs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.scrape_session import ProcessingLogEntry, ScrapeSession


class SessionStore(ABC):
    """
    Persistence surface for session snapshots and audit logs.
    """

    @abstractmethod
    def save_session(self, session: ScrapeSession) -> None:
        """
        Insert or overwrite the stored snapshot for `session.session_id`.
        """

    @abstractmethod
    def get_session(self, session_id: str) -> ScrapeSession | None:
        """
        Return the last stored snapshot, or None.
        """

    @abstractmethod
    def list_sessions(self, *, active_only: bool = False, limit: int = 100) -> list[ScrapeSession]:
        """
        Most recent sessions first.
        """

    @abstractmethod
    def append_processing_log(self, entry: ProcessingLogEntry) -> None:
        """
        Persist one immutable processing log entry.
        """

    @abstractmethod
    def list_processing_logs(self, session_id: str) -> list[ProcessingLogEntry]:
        """
        Processing logs for one session in write order.
        """
