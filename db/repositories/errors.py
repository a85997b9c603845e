"""
Repository-layer exceptions for enforcement persistence.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class RecordConflictError(RepositoryError):
    """Raised when an insert collides with an existing natural key."""

    def __init__(self, agency: str, enforcement_type: str, regulator_id: str) -> None:
        super().__init__(
            f"Enforcement record already exists agency={agency} "
            f"type={enforcement_type} regulator_id={regulator_id}"
        )
        self.agency = agency
        self.enforcement_type = enforcement_type
        self.regulator_id = regulator_id
