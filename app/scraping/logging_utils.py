"""
Structured logging helpers for scraping workflows.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.domain.scrape_session import ScrapeSession


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def session_fields(session: ScrapeSession) -> dict[str, Any]:
    """
    Identity and counter fields attached to every session-scoped log line.
    """

    return {
        "session_id": session.session_id,
        "agency": session.agency,
        "enforcement_type": session.enforcement_type,
        "status": session.status,
        "items_processed": session.items_processed,
        "errors_count": session.errors_count,
    }
