"""
app/schemas/scraping.py

Request and response schemas for enforcement scraping endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.scrape_session import ProcessingLogEntry, ScrapeSession, SessionSummary


class StartScrapeRequest(BaseModel):
    """
    Start one scraping run. `params` is validated by the agency strategy.
    """

    agency: str = Field(..., min_length=1, description="hse or ea")
    enforcement_type: str = Field(..., min_length=1, description="case or notice")
    params: dict[str, Any] = Field(default_factory=dict)
    actor: str | None = Field(default=None, max_length=255)


class StrategyResponse(BaseModel):
    agency: str
    enforcement_type: str
    name: str
    granularity: str


class SessionResponse(BaseModel):
    session_id: str
    agency: str
    enforcement_type: str
    status: str
    items_found: int = Field(..., ge=0)
    items_processed: int = Field(..., ge=0)
    items_created: int = Field(..., ge=0)
    items_existing: int = Field(..., ge=0)
    errors_count: int = Field(..., ge=0)
    batches_or_pages_processed: int = Field(..., ge=0)
    actor: str | None = None
    trigger: str | None = None
    stop_reason: str | None = None
    locator: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    progress: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_session(cls, session: ScrapeSession, progress: dict[str, Any] | None = None) -> "SessionResponse":
        payload = session.to_dict()
        payload["created_at"] = session.created_at
        payload["updated_at"] = session.updated_at
        return cls(**payload, progress=progress or {})


class ScrapedItemResponse(BaseModel):
    regulator_id: str
    subject_name: str | None = None
    action_date: str | None = None
    amount: str | None = None


class ProcessingLogResponse(BaseModel):
    session_id: str
    agency: str
    enforcement_type: str
    batch_or_page: int
    action_type: str | None = None
    items_found: int = Field(..., ge=0)
    items_created: int = Field(..., ge=0)
    items_existing: int = Field(..., ge=0)
    items_failed: int = Field(..., ge=0)
    creation_errors: list[str] = Field(default_factory=list)
    scraped_items: list[ScrapedItemResponse] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: ProcessingLogEntry) -> "ProcessingLogResponse":
        payload = entry.to_dict()
        payload["created_at"] = entry.created_at
        return cls(**payload)


class SessionSummaryResponse(BaseModel):
    session_id: str
    agency: str
    enforcement_type: str
    status: str
    items_found: int = Field(..., ge=0)
    items_created: int = Field(..., ge=0)
    items_existing: int = Field(..., ge=0)
    errors_count: int = Field(..., ge=0)
    pages_processed: int = Field(..., ge=0)
    duration_seconds: float = Field(..., ge=0)
    success_rate: float = Field(..., ge=0, le=100)

    @classmethod
    def from_summary(cls, summary: SessionSummary) -> "SessionSummaryResponse":
        return cls(
            session_id=summary.session_id,
            agency=summary.agency,
            enforcement_type=summary.enforcement_type,
            status=summary.status,
            items_found=summary.items_found,
            items_created=summary.items_created,
            items_existing=summary.items_existing,
            errors_count=summary.errors_count,
            pages_processed=summary.pages_processed,
            duration_seconds=summary.duration_seconds,
            success_rate=summary.success_rate,
        )
