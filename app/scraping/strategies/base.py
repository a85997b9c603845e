"""
Contract implemented by every (agency, enforcement type) strategy.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any, Protocol

from app.domain.scrape_session import ScrapeSession
from app.scraping.config.models import ScrapingRuntimeConfig
from app.scraping.types import ValidatedParams


class AgencyStrategy(Protocol):
    """
    Parameter validation, progress math and metadata for one agency/type pair.
    """

    granularity: str

    def validate_params(
        self,
        raw: Mapping[str, Any],
        *,
        config: ScrapingRuntimeConfig,
        actor: str | None = None,
        today: date | None = None,
    ) -> ValidatedParams:
        ...

    def calculate_progress(self, session: ScrapeSession) -> float:
        ...

    def format_progress_display(self, session: ScrapeSession) -> dict[str, Any]:
        ...

    def strategy_name(self) -> str:
        ...

    def agency_identifier(self) -> str:
        ...

    def enforcement_type(self) -> str:
        ...
