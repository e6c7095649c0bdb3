"""
Behavior signal models.

A behavior event is a plain mapping with at least an ``action`` key and
optionally ``timestamp`` (epoch seconds) and ``duration`` (seconds). Extra keys
are carried along untouched.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from src.rules.models import SignalRules

BehaviorEvent = Mapping[str, Any]
BehaviorEvents = Sequence[BehaviorEvent]


# --- Configuration ---


@dataclass(frozen=True)
class SignalConfig:
    """Action vocabularies and thresholds used by signal extraction."""

    continuity_gap_seconds: int = 120
    unfocused_actions: frozenset[str] = frozenset({"window_blur", "mouse_leave", "tab_switch"})
    interactive_actions: frozenset[str] = frozenset(
        {"click", "scroll", "key_press", "video_control"}
    )
    browsing_actions: frozenset[str] = frozenset(
        {"browse_info", "view_materials", "take_test", "quiz_attempt"}
    )
    auth_failure_actions: frozenset[str] = frozenset({"auth_failed"})
    test_completion_actions: frozenset[str] = frozenset({"test_completed"})

    @classmethod
    def from_rules(cls, rules: SignalRules) -> SignalConfig:
        return cls(
            continuity_gap_seconds=rules.continuity_gap_seconds,
            unfocused_actions=frozenset(rules.unfocused_actions),
            interactive_actions=frozenset(rules.interactive_actions),
            browsing_actions=frozenset(rules.browsing_actions),
            auth_failure_actions=frozenset(rules.auth_failure_actions),
            test_completion_actions=frozenset(rules.test_completion_actions),
        )


DEFAULT_SIGNAL_CONFIG = SignalConfig()


# --- Output Models ---


@dataclass(frozen=True)
class InteractionTimeoutResult:
    """Outcome of the interaction-interval check."""

    valid: bool
    description: str | None = None


@dataclass(frozen=True)
class TimestampRange:
    start: int
    end: int


@dataclass(frozen=True)
class EvidenceData:
    """Behavior summary attached to a study record as evidence."""

    total_behaviors: int
    unique_actions: tuple[str, ...]
    timestamp_range: TimestampRange | None
    interaction_frequency: float  # events per minute
    generated_at: int  # epoch seconds
    evidence_type: str = field(default="behavior_summary")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.evidence_type,
            "total_behaviors": self.total_behaviors,
            "unique_actions": list(self.unique_actions),
            "timestamp_range": (
                None
                if self.timestamp_range is None
                else {"start": self.timestamp_range.start, "end": self.timestamp_range.end}
            ),
            "interaction_frequency": self.interaction_frequency,
            "timestamp": self.generated_at,
        }
