"""
Quality component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.components.behavior_signals.models import BehaviorEvents


class RatioSignalsPort(Protocol):
    """The three behavioral ratios, possibly outside [0, 1]."""

    def calculate_focus_ratio(self, events: BehaviorEvents) -> float: ...

    def calculate_interaction_ratio(self, events: BehaviorEvents) -> float: ...

    def calculate_continuity_ratio(self, events: BehaviorEvents) -> float: ...
