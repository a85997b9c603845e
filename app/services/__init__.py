"""
app/services package marker.
"""

from app.services.enforcement_scraping_service import (
    build_coordinator,
    get_progress_bus,
    get_scraping_coordinator,
)

__all__ = [
    "build_coordinator",
    "get_progress_bus",
    "get_scraping_coordinator",
]
