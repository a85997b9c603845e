"""
Shared scraping runtime data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any


class Agency:
    HSE = "hse"
    EA = "ea"

    ALL = frozenset({HSE, EA})


class EnforcementType:
    CASE = "case"
    NOTICE = "notice"

    ALL = frozenset({CASE, NOTICE})


class SessionStatus:
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"

    TERMINAL = frozenset({COMPLETED, FAILED, STOPPED})
    ACTIVE = frozenset({PENDING, RUNNING})


class RecordOutcome:
    CREATED = "created"
    EXISTING = "existing"
    ERROR = "error"


class Granularity:
    PAGE = "page"
    RANGE = "range"


class ScrapeTrigger:
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class ProgressEvent:
    SESSION_CREATED = "session_created"
    RECORD_PROCESSED = "record_processed"
    BATCH_COMPLETED = "batch_completed"
    SESSION_COMPLETED = "session_completed"
    SESSION_FAILED = "session_failed"
    SESSION_STOPPED = "session_stopped"
    ERROR = "error"


HSE_CASE_DATABASES = frozenset({"convictions", "appeals"})
HSE_NOTICE_DATABASE = "notices"
HSE_NOTICE_COUNTRIES = ("All", "England", "Scotland", "Wales")
EA_CASE_ACTION_TYPES = frozenset({"court_case", "caution"})
EA_NOTICE_ACTION_TYPE = "enforcement_notice"


@dataclass(frozen=True)
class PageLocator:
    """
    Page cursor for agencies that publish paginated listings.
    """

    start_page: int
    current_page: int
    max_pages: int
    database: str
    country: str | None = None

    @property
    def pages_into_run(self) -> int:
        return max(0, self.current_page - self.start_page)


@dataclass(frozen=True)
class RangeLocator:
    """
    Date range plus action-type filter for agencies queried by date.
    """

    date_from: date
    date_to: date
    action_types: tuple[str, ...]
    batch_complete: bool = False


@dataclass(frozen=True)
class RunLimits:
    network_timeout_ms: int
    max_consecutive_errors: int
    pause_between_pages_ms: int
    batch_size: int
    consecutive_existing_threshold: int
    requests_per_minute: int = 10

    @property
    def network_timeout_seconds(self) -> float:
        return self.network_timeout_ms / 1000.0

    @property
    def pause_seconds(self) -> float:
        return max(0, self.pause_between_pages_ms) / 1000.0


@dataclass(frozen=True)
class ValidatedParams:
    """
    Normalized run configuration produced by a strategy.
    """

    agency: str
    enforcement_type: str
    granularity: str
    locator: PageLocator | RangeLocator
    limits: RunLimits
    actor: str | None = None
    stop_on_existing: bool = True


@dataclass(frozen=True)
class NaturalKey:
    agency: str
    enforcement_type: str
    regulator_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "agency": self.agency,
            "enforcement_type": self.enforcement_type,
            "regulator_id": self.regulator_id,
        }


@dataclass(frozen=True)
class PageRequest:
    page: int
    database: str
    country: str | None = None


@dataclass(frozen=True)
class RangeRequest:
    date_from: date
    date_to: date
    action_type: str


@dataclass(frozen=True)
class RawSummary:
    """
    Cheap list-stage view of one regulator record.
    """

    regulator_id: str
    subject_name: str | None = None
    action_date: date | None = None
    action_type: str | None = None
    detail_url: str | None = None
    page: int | None = None
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EnrichedRecord:
    """
    Summary merged with its detail page.
    """

    agency: str
    enforcement_type: str
    regulator_id: str
    subject_name: str | None
    action_date: date | None
    action_type: str | None = None
    fine_amount: Decimal | None = None
    costs_amount: Decimal | None = None
    regulator_url: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def natural_key(self) -> NaturalKey:
        return NaturalKey(
            agency=self.agency,
            enforcement_type=self.enforcement_type,
            regulator_id=self.regulator_id,
        )


@dataclass(frozen=True)
class ScrapedItemSummary:
    regulator_id: str
    subject_name: str | None
    action_date: date | None
    amount: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "regulator_id": self.regulator_id,
            "subject_name": self.subject_name,
            "action_date": self.action_date.isoformat() if self.action_date else None,
            "amount": str(self.amount) if self.amount is not None else None,
        }


@dataclass
class BatchTally:
    """
    Outcome counts for one page or action-type batch.
    """

    batch_or_page: int
    action_type: str | None = None
    items_found: int = 0
    items_created: int = 0
    items_existing: int = 0
    items_failed: int = 0
    creation_errors: list[str] = field(default_factory=list)
    scraped_items: list[ScrapedItemSummary] = field(default_factory=list)

    @property
    def items_processed(self) -> int:
        return self.items_created + self.items_existing + self.items_failed

    @property
    def all_existing(self) -> bool:
        return self.items_processed > 0 and self.items_existing == self.items_processed

    def record(self, outcome: str, *, item: ScrapedItemSummary | None = None, error: str | None = None) -> None:
        self.items_found += 1
        if outcome == RecordOutcome.CREATED:
            self.items_created += 1
        elif outcome == RecordOutcome.EXISTING:
            self.items_existing += 1
        else:
            self.items_failed += 1
            if error:
                self.creation_errors.append(error)
        if item is not None:
            self.scraped_items.append(item)

    def merge(self, other: "BatchTally") -> None:
        self.items_found += other.items_found
        self.items_created += other.items_created
        self.items_existing += other.items_existing
        self.items_failed += other.items_failed
        self.creation_errors.extend(other.creation_errors)
        self.scraped_items.extend(other.scraped_items)
