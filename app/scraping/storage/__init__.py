"""
Storage layer exports.
"""

from app.scraping.storage.base import SessionStore
from app.scraping.storage.sqlalchemy_storage import (
    SQLAlchemyConfigSource,
    SQLAlchemyEnforcementRecordStore,
    SQLAlchemySessionStore,
)

__all__ = [
    "SQLAlchemyConfigSource",
    "SQLAlchemyEnforcementRecordStore",
    "SQLAlchemySessionStore",
    "SessionStore",
]
