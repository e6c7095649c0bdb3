"""
Study time validator - Ordered, short-circuiting validity rule chain.

Rule order (first failing rule wins):
1. Browsing / online testing   -> BROWSING_WEB_INFO
2. Authentication failure      -> IDENTITY_VERIFICATION_FAILED
3. Interaction interval        -> INTERACTION_TIMEOUT
4. Required test not completed -> INCOMPLETE_COURSE_TEST
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from src.components.behavior_signals.models import BehaviorEvents
from src.domain.entities import InvalidTimeReason, StudyTimeRecord

from .models import (
    BROWSING_DESCRIPTION,
    IDENTITY_DESCRIPTION,
    INCOMPLETE_TEST_DESCRIPTION,
    INTERACTION_TIMEOUT_FALLBACK,
    ValidationResult,
)
from .ports import CourseTestPolicy, ValidationSignalsPort

logger = logging.getLogger(__name__)

DEFAULT_INTERACTION_TIMEOUT_SECONDS = 300


# --- Test Requirement Policies ---


class NeverRequireTest:
    """Default policy: no course currently requires a completed test."""

    def is_test_required(self, record: StudyTimeRecord) -> bool:
        return False


class PredicateTestPolicy:
    """Adapts a plain callable to the CourseTestPolicy port."""

    def __init__(self, predicate: Callable[[StudyTimeRecord], bool]) -> None:
        self._predicate = predicate

    def is_test_required(self, record: StudyTimeRecord) -> bool:
        return bool(self._predicate(record))


# --- Validator ---


class StudyTimeValidator:
    """Decides whether a session's time counts at all."""

    def __init__(
        self,
        signals: ValidationSignalsPort,
        test_policy: CourseTestPolicy | None = None,
        interaction_timeout_seconds: int = DEFAULT_INTERACTION_TIMEOUT_SECONDS,
    ) -> None:
        self._signals = signals
        self._test_policy = test_policy or NeverRequireTest()
        self._interaction_timeout = interaction_timeout_seconds

    @property
    def interaction_timeout_seconds(self) -> int:
        return self._interaction_timeout

    def is_test_required(self, record: StudyTimeRecord) -> bool:
        return self._test_policy.is_test_required(record)

    def validate_study_time(
        self, record: StudyTimeRecord, events: BehaviorEvents
    ) -> ValidationResult:
        """Run the rule chain; the record is only read."""
        result = self._evaluate(record, events)
        if not result.valid:
            logger.info(
                "Study record %s for user %s rejected: %s",
                record.id,
                record.user_id,
                result.reason.value if result.reason else "unknown",
            )
        return result

    def _evaluate(self, record: StudyTimeRecord, events: BehaviorEvents) -> ValidationResult:
        if self._signals.is_browsing_or_testing(events):
            return ValidationResult.reject(InvalidTimeReason.BROWSING_WEB_INFO, BROWSING_DESCRIPTION)

        if self._signals.has_authentication_failure(events):
            return ValidationResult.reject(
                InvalidTimeReason.IDENTITY_VERIFICATION_FAILED, IDENTITY_DESCRIPTION
            )

        timeout = self._signals.check_interaction_timeout(events, self._interaction_timeout)
        if not timeout.valid:
            return ValidationResult.reject(
                InvalidTimeReason.INTERACTION_TIMEOUT,
                timeout.description or INTERACTION_TIMEOUT_FALLBACK,
            )

        if self.is_test_required(record) and not self._signals.has_completed_test(events):
            return ValidationResult.reject(
                InvalidTimeReason.INCOMPLETE_COURSE_TEST, INCOMPLETE_TEST_DESCRIPTION
            )

        return ValidationResult.ok()
