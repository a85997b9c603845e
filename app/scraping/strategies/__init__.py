"""
Per-agency scraping strategies.
"""

from app.scraping.strategies.base import AgencyStrategy
from app.scraping.strategies.ea import EACaseStrategy, EANoticeStrategy
from app.scraping.strategies.hse import HSECaseStrategy, HSENoticeStrategy

__all__ = [
    "AgencyStrategy",
    "EACaseStrategy",
    "EANoticeStrategy",
    "HSECaseStrategy",
    "HSENoticeStrategy",
]
