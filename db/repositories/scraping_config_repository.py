"""
Repository for named scraping configurations.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.scraping_config import ScrapingConfig


class ScrapingConfigRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_active(self) -> ScrapingConfig | None:
        stmt = (
            select(ScrapingConfig)
            .where(ScrapingConfig.is_active.is_(True))
            .order_by(ScrapingConfig.updated_at.desc())
        )
        return self._session.scalars(stmt).first()

    def get_by_name(self, name: str) -> ScrapingConfig | None:
        stmt = select(ScrapingConfig).where(ScrapingConfig.name == name)
        return self._session.scalars(stmt).first()
