"""
Study validator models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.domain.entities import InvalidTimeReason

BROWSING_DESCRIPTION = "browsing/testing time excluded from effective study time."
IDENTITY_DESCRIPTION = "study time after a failed identity verification is excluded."
INTERACTION_TIMEOUT_FALLBACK = "interaction timeout detected"
INCOMPLETE_TEST_DESCRIPTION = "course test not completed; study time is not recognized."


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of the validity rule chain. Rejections are values, never raised."""

    valid: bool
    reason: InvalidTimeReason | None = None
    description: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: InvalidTimeReason, description: str) -> ValidationResult:
        return cls(valid=False, reason=reason, description=description)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"valid": self.valid}
        if self.reason is not None:
            data["reason"] = self.reason.value
        if self.description is not None:
            data["description"] = self.description
        return data
