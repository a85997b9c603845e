"""
Parameter coercion helpers shared by the agency strategies.

Every helper records a message in `errors` instead of raising so a strategy
can report all offending fields at once.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from app.domain.scrape_session import ScrapeSession
from app.scraping.config.models import ScrapingRuntimeConfig
from app.scraping.types import RunLimits

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_positive_int(
    raw: Mapping[str, Any],
    name: str,
    default: int,
    errors: dict[str, str],
    *,
    minimum: int = 1,
) -> int:
    value = raw.get(name)
    if is_blank(value):
        return default
    if isinstance(value, bool):
        errors[name] = f"{name} must be an integer >= {minimum}"
        return default
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            errors[name] = f"{name} must be an integer >= {minimum}"
            return default
    else:
        errors[name] = f"{name} must be an integer >= {minimum}"
        return default

    if parsed < minimum:
        errors[name] = f"{name} must be an integer >= {minimum}"
        return default
    return parsed


def coerce_bool(raw: Mapping[str, Any], name: str, default: bool, errors: dict[str, str]) -> bool:
    value = raw.get(name)
    if is_blank(value):
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    errors[name] = f"{name} must be a boolean"
    return default


def coerce_choice(
    raw: Mapping[str, Any],
    name: str,
    default: str,
    allowed: Iterable[str],
    errors: dict[str, str],
    *,
    case_sensitive: bool = False,
) -> str:
    value = raw.get(name)
    if is_blank(value):
        return default
    allowed_list = sorted(allowed)
    if not isinstance(value, str):
        errors[name] = f"{name} must be one of {allowed_list}"
        return default

    candidate = value.strip()
    if case_sensitive:
        if candidate in allowed_list:
            return candidate
    else:
        for option in allowed_list:
            if option.lower() == candidate.lower():
                return option
    errors[name] = f"{name} must be one of {allowed_list}"
    return default


def coerce_date(raw: Mapping[str, Any], name: str, errors: dict[str, str]) -> date | None:
    value = raw.get(name)
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    errors[name] = f"{name} must be a valid date in YYYY-MM-DD format"
    return None


def coerce_action_types(
    raw: Mapping[str, Any],
    name: str,
    default: tuple[str, ...],
    allowed: Iterable[str],
    errors: dict[str, str],
) -> tuple[str, ...]:
    value = raw.get(name)
    if is_blank(value):
        return default

    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = [str(part).strip() for part in value]
    else:
        errors[name] = f"{name} must be a list of action types"
        return default

    normalized: list[str] = []
    for item in items:
        if not item:
            continue
        candidate = item.lower()
        if candidate not in normalized:
            normalized.append(candidate)

    allowed_set = set(allowed)
    invalid = [item for item in normalized if item not in allowed_set]
    if invalid:
        errors[name] = f"{name} contains unsupported values {invalid}; allowed {sorted(allowed_set)}"
        return default
    if not normalized:
        errors[name] = f"{name} must not be empty"
        return default
    return tuple(normalized)


def build_run_limits(
    raw: Mapping[str, Any],
    config: ScrapingRuntimeConfig,
    errors: dict[str, str],
) -> RunLimits:
    """
    Run limits from the active configuration with optional per-run overrides.
    """

    return RunLimits(
        network_timeout_ms=coerce_positive_int(raw, "network_timeout_ms", config.network_timeout_ms, errors),
        max_consecutive_errors=coerce_positive_int(
            raw,
            "max_consecutive_errors",
            config.max_consecutive_errors,
            errors,
        ),
        pause_between_pages_ms=coerce_positive_int(
            raw,
            "pause_between_pages_ms",
            config.pause_between_pages_ms,
            errors,
            minimum=0,
        ),
        batch_size=config.batch_size,
        consecutive_existing_threshold=config.consecutive_existing_threshold,
        requests_per_minute=config.requests_per_minute,
    )


def optional_actor(raw: Mapping[str, Any], actor: str | None) -> str | None:
    if actor:
        return actor
    value = raw.get("actor")
    if is_blank(value):
        return None
    return str(value).strip()


def counter(session: ScrapeSession | Any, name: str) -> int:
    """
    Read a counter, treating missing or null values as zero.
    """

    value = getattr(session, name, None)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def clamp_percentage(value: float) -> float:
    return min(100.0, max(0.0, value))


def notice_vocabulary(display: dict[str, Any]) -> dict[str, Any]:
    """
    Rename case counters to notice counters for notice strategies.
    """

    renamed: dict[str, Any] = {}
    for key, value in display.items():
        if key.startswith("cases_"):
            renamed["notices_" + key[len("cases_"):]] = value
        else:
            renamed[key] = value
    return renamed
