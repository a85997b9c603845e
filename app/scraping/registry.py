"""
Strategy registry keyed by (agency, enforcement type).
"""

from __future__ import annotations

from collections.abc import Mapping

from app.scraping.errors import ValidationError
from app.scraping.strategies import (
    AgencyStrategy,
    EACaseStrategy,
    EANoticeStrategy,
    HSECaseStrategy,
    HSENoticeStrategy,
)
from app.scraping.types import Agency, EnforcementType

StrategyKey = tuple[str, str]


class StrategyRegistry:
    """
    Dispatch table from (agency, enforcement type) to a strategy instance.
    """

    def __init__(self, registrations: Mapping[StrategyKey, AgencyStrategy] | None = None) -> None:
        builtins: dict[StrategyKey, AgencyStrategy] = {
            (Agency.HSE, EnforcementType.CASE): HSECaseStrategy(),
            (Agency.HSE, EnforcementType.NOTICE): HSENoticeStrategy(),
            (Agency.EA, EnforcementType.CASE): EACaseStrategy(),
            (Agency.EA, EnforcementType.NOTICE): EANoticeStrategy(),
        }
        if registrations:
            builtins.update(registrations)
        self._registrations = builtins

    def register(self, *, agency: str, enforcement_type: str, strategy: AgencyStrategy) -> None:
        self._registrations[self._key(agency, enforcement_type)] = strategy

    def get(self, agency: str, enforcement_type: str) -> AgencyStrategy:
        key = self._key(agency, enforcement_type)
        resolved = self._registrations.get(key)
        if resolved is None:
            allowed = ", ".join(f"{a}/{t}" for a, t in sorted(self._registrations))
            field_errors: dict[str, str] = {}
            known_agencies = {a for a, _ in self._registrations}
            if key[0] not in known_agencies:
                field_errors["agency"] = f"unknown agency '{agency}'; supported: {allowed}"
            else:
                field_errors["enforcement_type"] = (
                    f"unsupported enforcement type '{enforcement_type}' for agency '{agency}'; "
                    f"supported: {allowed}"
                )
            raise ValidationError(field_errors)
        return resolved

    def exists(self, agency: str, enforcement_type: str) -> bool:
        return self._key(agency, enforcement_type) in self._registrations

    def list(self) -> list[tuple[str, str, AgencyStrategy]]:
        return [(agency, kind, strategy) for (agency, kind), strategy in sorted(self._registrations.items())]

    def count(self) -> int:
        return len(self._registrations)

    @staticmethod
    def _key(agency: str, enforcement_type: str) -> StrategyKey:
        return (str(agency or "").strip().lower(), str(enforcement_type or "").strip().lower())
