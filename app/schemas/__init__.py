"""
app/schemas package marker.
"""

from app.schemas.scraping import (
    ProcessingLogResponse,
    ScrapedItemResponse,
    SessionResponse,
    SessionSummaryResponse,
    StartScrapeRequest,
    StrategyResponse,
)

__all__ = [
    "ProcessingLogResponse",
    "ScrapedItemResponse",
    "SessionResponse",
    "SessionSummaryResponse",
    "StartScrapeRequest",
    "StrategyResponse",
]
