"""
Scraping-layer exceptions.
"""

from __future__ import annotations

from collections.abc import Mapping

from app.scraping.types import NaturalKey


class ScrapingError(Exception):
    """Base exception for enforcement scraping failures."""


class ValidationError(ScrapingError):
    """Raised when run parameters are missing or invalid."""

    def __init__(self, field_errors: Mapping[str, str]) -> None:
        self.field_errors = dict(field_errors)
        joined = "; ".join(f"{name}: {message}" for name, message in sorted(self.field_errors.items()))
        super().__init__(f"Invalid scraping parameters ({joined})")


class ConfigError(ScrapingError):
    """Raised when scraping is disabled for an agency or trigger."""


class NetworkError(ScrapingError):
    """Raised when a list or detail fetch cannot be completed."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DuplicateError(ScrapingError):
    """Raised by the record repository when the natural key already exists."""

    def __init__(self, natural_key: NaturalKey) -> None:
        super().__init__(
            f"Record already exists agency={natural_key.agency} "
            f"type={natural_key.enforcement_type} regulator_id={natural_key.regulator_id}"
        )
        self.natural_key = natural_key


class ProcessingError(ScrapingError):
    """Raised when a record cannot be transformed or persisted."""


class SessionNotFoundError(ScrapingError, LookupError):
    """Raised when a session id is unknown."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Scrape session not found: {session_id}")
        self.session_id = session_id
