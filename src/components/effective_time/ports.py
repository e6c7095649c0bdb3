"""
Effective time component port definitions.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from src.components.behavior_signals.models import BehaviorEvents


class DailyAggregatePort(Protocol):
    """Reader for effective time already committed for a user on a day."""

    def get_daily_effective_time(
        self,
        user_id: str,
        study_date: date,
        exclude_record_id: str | None = None,
    ) -> float:
        """
        Sum of committed effective durations for the user on that calendar day.

        The record currently being processed must not be included; callers
        recalculating a persisted record pass its id as exclude_record_id.
        """
        ...


class DailyLimitPort(Protocol):
    """Per-user daily effective time ceiling."""

    def get_user_daily_limit(self, user_id: str) -> float:
        """Daily limit in seconds (default 28800 when no override exists)."""
        ...


class EffectiveRatiosPort(Protocol):
    def calculate_focus_ratio(self, events: BehaviorEvents) -> float: ...

    def calculate_interaction_ratio(self, events: BehaviorEvents) -> float: ...

    def calculate_continuity_ratio(self, events: BehaviorEvents) -> float: ...
