"""
Study validator port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.components.behavior_signals.models import BehaviorEvents, InteractionTimeoutResult
from src.domain.entities import StudyTimeRecord


class ValidationSignalsPort(Protocol):
    """Behavior markers consulted by the rule chain."""

    def is_browsing_or_testing(self, events: BehaviorEvents) -> bool: ...

    def has_authentication_failure(self, events: BehaviorEvents) -> bool: ...

    def check_interaction_timeout(
        self, events: BehaviorEvents, max_interval_seconds: int
    ) -> InteractionTimeoutResult: ...

    def has_completed_test(self, events: BehaviorEvents) -> bool: ...


class CourseTestPolicy(Protocol):
    """Decides whether a course test must be completed for a record to count."""

    def is_test_required(self, record: StudyTimeRecord) -> bool:
        """Return True when the record's course/lesson requires a completed test."""
        ...
