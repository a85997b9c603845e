"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.enforcement_record import EnforcementRecord
from db.models.processing_log import ProcessingLog
from db.models.scrape_session import ScrapeSessionRecord
from db.models.scraping_config import ScrapingConfig

__all__ = [
    "EnforcementRecord",
    "ProcessingLog",
    "ScrapeSessionRecord",
    "ScrapingConfig",
]
