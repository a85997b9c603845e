"""
app/domain/scrape_session.py

Domain models for enforcement scrape sessions and their audit logs.
"""

from __future__ import annotations

import dataclasses
import secrets
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from app.scraping.types import (
    NaturalKey,
    PageLocator,
    RangeLocator,
    ScrapedItemSummary,
    SessionStatus,
)


def new_session_id() -> str:
    return secrets.token_hex(8)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScrapeSession:
    """
    One tracked scraping run.

    Instances are owned by a single worker. Readers on other threads only
    ever see copies produced by `snapshot()`.
    """

    session_id: str
    agency: str
    enforcement_type: str
    locator: PageLocator | RangeLocator
    status: str = SessionStatus.PENDING
    items_found: int = 0
    items_processed: int = 0
    items_created: int = 0
    items_existing: int = 0
    errors_count: int = 0
    batches_or_pages_processed: int = 0
    actor: str | None = None
    trigger: str | None = None
    stop_reason: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in SessionStatus.TERMINAL

    def counters_consistent(self) -> bool:
        return self.items_processed == self.items_created + self.items_existing + self.errors_count

    def snapshot(self) -> "ScrapeSession":
        # Locators are frozen, so a shallow copy is a full copy.
        return dataclasses.replace(self)

    def duration_seconds(self) -> float:
        return max(0.0, (self.updated_at - self.created_at).total_seconds())

    def success_rate(self) -> float:
        if self.items_found <= 0:
            return 0.0
        return round(self.items_created / self.items_found * 100, 2)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "session_id": self.session_id,
            "agency": self.agency,
            "enforcement_type": self.enforcement_type,
            "status": self.status,
            "items_found": self.items_found,
            "items_processed": self.items_processed,
            "items_created": self.items_created,
            "items_existing": self.items_existing,
            "errors_count": self.errors_count,
            "batches_or_pages_processed": self.batches_or_pages_processed,
            "actor": self.actor,
            "trigger": self.trigger,
            "stop_reason": self.stop_reason,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        payload["locator"] = locator_to_dict(self.locator)
        return payload


def locator_to_dict(locator: PageLocator | RangeLocator) -> dict[str, Any]:
    if isinstance(locator, PageLocator):
        return {
            "start_page": locator.start_page,
            "current_page": locator.current_page,
            "max_pages": locator.max_pages,
            "database": locator.database,
            "country": locator.country,
        }
    return {
        "date_from": locator.date_from.isoformat(),
        "date_to": locator.date_to.isoformat(),
        "action_types": list(locator.action_types),
        "batch_complete": locator.batch_complete,
    }


@dataclass(frozen=True)
class ProcessingLogEntry:
    """
    Immutable audit record for one page or batch of one session.
    """

    session_id: str
    agency: str
    enforcement_type: str
    batch_or_page: int
    items_found: int
    items_created: int
    items_existing: int
    items_failed: int
    action_type: str | None = None
    creation_errors: tuple[str, ...] = ()
    scraped_items: tuple[ScrapedItemSummary, ...] = ()
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "agency": self.agency,
            "enforcement_type": self.enforcement_type,
            "batch_or_page": self.batch_or_page,
            "action_type": self.action_type,
            "items_found": self.items_found,
            "items_created": self.items_created,
            "items_existing": self.items_existing,
            "items_failed": self.items_failed,
            "creation_errors": list(self.creation_errors),
            "scraped_items": [item.to_dict() for item in self.scraped_items],
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    agency: str
    enforcement_type: str
    status: str
    items_found: int
    items_created: int
    items_existing: int
    errors_count: int
    pages_processed: int
    duration_seconds: float
    success_rate: float

    @classmethod
    def from_session(cls, session: ScrapeSession) -> "SessionSummary":
        return cls(
            session_id=session.session_id,
            agency=session.agency,
            enforcement_type=session.enforcement_type,
            status=session.status,
            items_found=session.items_found,
            items_created=session.items_created,
            items_existing=session.items_existing,
            errors_count=session.errors_count,
            pages_processed=session.batches_or_pages_processed,
            duration_seconds=session.duration_seconds(),
            success_rate=session.success_rate(),
        )


@dataclass(frozen=True)
class EnforcementRecordInput:
    """
    Domain entity payload written to the enforcement record repository.
    """

    natural_key: NaturalKey
    offender_name: str
    action_date: date | None
    action_type: str | None = None
    fine_amount: Decimal | None = None
    costs_amount: Decimal | None = None
    regulator_url: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StoredEnforcementRecord:
    id: Any
    natural_key: NaturalKey
    offender_name: str
    last_synced_at: datetime | None = None
