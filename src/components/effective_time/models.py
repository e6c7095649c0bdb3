"""
Effective time component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.domain.entities import InvalidTimeReason

DEFAULT_DAILY_LIMIT_SECONDS = 8 * 3600

DAILY_LIMIT_EXCEEDED_DESCRIPTION = "daily accumulated limit exceeded"
PARTIAL_OVER_LIMIT_DESCRIPTION = "partial time exceeds daily limit"


@dataclass(frozen=True)
class DailyLimitResult:
    """Outcome of the daily cap check."""

    valid: bool
    reason: InvalidTimeReason | None = None
    description: str | None = None
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"valid": self.valid, "truncated": self.truncated}
        if self.reason is not None:
            data["reason"] = self.reason.value
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class DailyBudget:
    """Snapshot of a user's daily budget at check time."""

    used_seconds: float
    limit_seconds: float

    @property
    def remaining_seconds(self) -> float:
        # Negative when the user is already over the limit
        return self.limit_seconds - self.used_seconds
