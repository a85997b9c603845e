"""
app/domain package marker.
"""

from app.domain.scrape_session import (
    EnforcementRecordInput,
    ProcessingLogEntry,
    ScrapeSession,
    SessionSummary,
    StoredEnforcementRecord,
)

__all__ = [
    "EnforcementRecordInput",
    "ProcessingLogEntry",
    "ScrapeSession",
    "SessionSummary",
    "StoredEnforcementRecord",
]
