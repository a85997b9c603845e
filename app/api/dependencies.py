"""
app/api/dependencies.py

Shared FastAPI dependencies and error translation for scraping endpoints.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from app.scraping.coordinator import ScrapingCoordinator
from app.scraping.errors import ConfigError, ScrapingError, SessionNotFoundError, ValidationError
from app.services.enforcement_scraping_service import get_scraping_coordinator


def get_coordinator() -> ScrapingCoordinator:
    return get_scraping_coordinator()


def to_http_exception(exc: ScrapingError) -> HTTPException:
    """
    Map a scraping error to the HTTP status callers should see.
    """

    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "field_errors": dict(exc.field_errors)},
        )
    if isinstance(exc, ConfigError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, SessionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
