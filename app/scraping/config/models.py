"""
Scraping configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.scraping.types import Agency, RunLimits, ScrapeTrigger


@dataclass(frozen=True)
class ScrapingRuntimeConfig:
    """
    Active run-time settings for enforcement scraping.
    """

    name: str = "default"
    max_pages_per_session: int = 100
    network_timeout_ms: int = 30000
    max_consecutive_errors: int = 3
    pause_between_pages_ms: int = 3000
    batch_size: int = 50
    consecutive_existing_threshold: int = 10
    requests_per_minute: int = 10
    hse_enabled: bool = True
    ea_enabled: bool = True
    manual_scraping_enabled: bool = True
    scheduled_scraping_enabled: bool = True
    real_time_progress_enabled: bool = True

    def agency_enabled(self, agency: str) -> bool:
        if agency == Agency.HSE:
            return self.hse_enabled
        if agency == Agency.EA:
            return self.ea_enabled
        return False

    def trigger_enabled(self, trigger: str) -> bool:
        if trigger == ScrapeTrigger.SCHEDULED:
            return self.scheduled_scraping_enabled
        return self.manual_scraping_enabled

    def run_limits(self) -> RunLimits:
        return RunLimits(
            network_timeout_ms=self.network_timeout_ms,
            max_consecutive_errors=self.max_consecutive_errors,
            pause_between_pages_ms=self.pause_between_pages_ms,
            batch_size=self.batch_size,
            consecutive_existing_threshold=self.consecutive_existing_threshold,
            requests_per_minute=self.requests_per_minute,
        )


@dataclass(frozen=True)
class FetcherHTTPSettings:
    """
    HTTP behaviour shared by the regulator fetchers.
    """

    user_agent: str
    max_retries: int
    backoff_initial_seconds: float
    backoff_multiplier: float
    hse_base_url: str
    ea_base_url: str
