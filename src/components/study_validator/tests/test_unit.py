"""
Unit tests for the study validator component.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from src.components.behavior_signals import BehaviorSignalExtractor, InteractionTimeoutResult
from src.components.study_validator.component import (
    NeverRequireTest,
    PredicateTestPolicy,
    StudyTimeValidator,
)
from src.components.study_validator.models import BROWSING_DESCRIPTION, ValidationResult
from src.domain.entities import InvalidTimeReason, StudyTimeRecord

T0 = 1_700_000_000


def _record(**overrides) -> StudyTimeRecord:
    values = {
        "user_id": "user-1",
        "study_date": date(2026, 1, 14),
        "course_id": "course-1",
        "start_time": datetime(2026, 1, 14, 9, 0, tzinfo=UTC),
        "end_time": datetime(2026, 1, 14, 10, 0, tzinfo=UTC),
        "total_duration": 3600.0,
    }
    values.update(overrides)
    return StudyTimeRecord(**values)


# --- Test Doubles ---


@dataclass
class CountingSignals:
    """Signals double recording how often each marker is consulted."""

    browsing: bool = False
    auth_failure: bool = False
    timeout: InteractionTimeoutResult = field(
        default_factory=lambda: InteractionTimeoutResult(valid=True)
    )
    completed_test: bool = False
    calls: dict[str, int] = field(default_factory=dict)

    def _count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    def is_browsing_or_testing(self, events) -> bool:
        self._count("browsing")
        return self.browsing

    def has_authentication_failure(self, events) -> bool:
        self._count("auth")
        return self.auth_failure

    def check_interaction_timeout(self, events, max_interval_seconds: int):
        self._count("timeout")
        self.calls["timeout_interval"] = max_interval_seconds
        return self.timeout

    def has_completed_test(self, events) -> bool:
        self._count("test")
        return self.completed_test


# --- Rule Chain ---


class TestRuleOrder:
    def test_browsing_short_circuits_all_later_rules(self) -> None:
        signals = CountingSignals(
            browsing=True,
            auth_failure=True,
            timeout=InteractionTimeoutResult(valid=False, description="gap"),
        )
        validator = StudyTimeValidator(signals, PredicateTestPolicy(lambda r: True))

        result = validator.validate_study_time(_record(), [])

        assert result == ValidationResult(
            valid=False,
            reason=InvalidTimeReason.BROWSING_WEB_INFO,
            description=BROWSING_DESCRIPTION,
        )
        assert signals.calls == {"browsing": 1}

    def test_auth_failure_stops_before_timeout(self) -> None:
        signals = CountingSignals(auth_failure=True)
        result = StudyTimeValidator(signals).validate_study_time(_record(), [])

        assert result.reason == InvalidTimeReason.IDENTITY_VERIFICATION_FAILED
        assert "timeout" not in signals.calls
        assert "test" not in signals.calls

    def test_interaction_timeout_uses_check_description(self) -> None:
        signals = CountingSignals(
            timeout=InteractionTimeoutResult(valid=False, description="gap of 400s")
        )
        result = StudyTimeValidator(signals).validate_study_time(_record(), [])

        assert result.reason == InvalidTimeReason.INTERACTION_TIMEOUT
        assert result.description == "gap of 400s"
        assert signals.calls["timeout_interval"] == 300

    def test_interaction_timeout_fallback_description(self) -> None:
        signals = CountingSignals(timeout=InteractionTimeoutResult(valid=False))
        result = StudyTimeValidator(signals).validate_study_time(_record(), [])

        assert result.reason == InvalidTimeReason.INTERACTION_TIMEOUT
        assert result.description

    def test_custom_interaction_timeout(self) -> None:
        signals = CountingSignals()
        StudyTimeValidator(signals, interaction_timeout_seconds=90).validate_study_time(
            _record(), []
        )
        assert signals.calls["timeout_interval"] == 90

    def test_valid_when_no_rule_fails(self) -> None:
        result = StudyTimeValidator(CountingSignals()).validate_study_time(_record(), [])
        assert result == ValidationResult.ok()
        assert result.reason is None
        assert result.description is None


class TestCourseTestRequirement:
    def test_default_policy_never_requires_test(self) -> None:
        signals = CountingSignals(completed_test=False)
        validator = StudyTimeValidator(signals)

        assert not validator.is_test_required(_record())
        assert validator.validate_study_time(_record(), []).valid
        assert "test" not in signals.calls

    def test_required_and_missing(self) -> None:
        policy = PredicateTestPolicy(lambda record: record.course_id == "course-1")
        result = StudyTimeValidator(CountingSignals(), policy).validate_study_time(_record(), [])

        assert not result.valid
        assert result.reason == InvalidTimeReason.INCOMPLETE_COURSE_TEST

    def test_required_and_completed(self) -> None:
        policy = PredicateTestPolicy(lambda record: True)
        signals = CountingSignals(completed_test=True)
        assert StudyTimeValidator(signals, policy).validate_study_time(_record(), []).valid

    def test_policy_only_applies_to_matching_course(self) -> None:
        policy = PredicateTestPolicy(lambda record: record.course_id == "exam-course")
        result = StudyTimeValidator(CountingSignals(), policy).validate_study_time(_record(), [])
        assert result.valid

    def test_never_require_test(self) -> None:
        assert NeverRequireTest().is_test_required(_record()) is False


class TestWithRealSignals:
    def test_real_events_timeout(self) -> None:
        events = [
            {"action": "click", "timestamp": T0},
            {"action": "click", "timestamp": T0 + 301},
        ]
        result = StudyTimeValidator(BehaviorSignalExtractor()).validate_study_time(
            _record(), events
        )
        assert result.reason == InvalidTimeReason.INTERACTION_TIMEOUT
        assert result.description == "interaction gap exceeded 300 seconds"

    def test_real_events_quiz(self) -> None:
        result = StudyTimeValidator(BehaviorSignalExtractor()).validate_study_time(
            _record(), [{"action": "quiz_attempt"}]
        )
        assert result.reason == InvalidTimeReason.BROWSING_WEB_INFO

    def test_result_to_dict(self) -> None:
        result = ValidationResult.reject(InvalidTimeReason.INTERACTION_TIMEOUT, "gap")
        assert result.to_dict() == {
            "valid": False,
            "reason": "interaction_timeout",
            "description": "gap",
        }
