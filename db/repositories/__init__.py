"""
Repository layer exports.
"""

from db.repositories.enforcement_record_repository import EnforcementRecordRepository
from db.repositories.errors import RecordConflictError, RepositoryError
from db.repositories.scrape_session_repository import ScrapeSessionRepository
from db.repositories.scraping_config_repository import ScrapingConfigRepository

__all__ = [
    "EnforcementRecordRepository",
    "RecordConflictError",
    "RepositoryError",
    "ScrapeSessionRepository",
    "ScrapingConfigRepository",
]
