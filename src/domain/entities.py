"""
Study time domain entities.

StudyTimeRecord is the unit of work of the effective study time engine. It is
created empty when a session closes, mutated by the pipeline in a single pass,
and handed to a store for persistence.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

# --- Errors ---


class StudyTimeError(Exception):
    """Base error for the study time engine."""


class InvalidStudyInputError(StudyTimeError):
    """Raised when session bounds or durations are impossible."""


class DailyLimitLookupError(StudyTimeError):
    """Raised when the daily aggregate or the user's daily limit cannot be read."""


class InvalidStatusTransitionError(StudyTimeError):
    """Raised when a record is moved along a transition the lifecycle forbids."""

    def __init__(self, from_status: StudyTimeStatus, to_status: StudyTimeStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot transition study record from '{from_status.value}' to '{to_status.value}'"
        )


# --- Enums ---


class StudyTimeStatus(str, Enum):
    """
    Study time lifecycle.

    APPROVED, REJECTED and EXPIRED are terminal. Only VALID, PARTIAL and
    APPROVED count toward daily and course totals.
    """

    VALID = "valid"
    INVALID = "invalid"
    PENDING = "pending"
    PARTIAL = "partial"
    EXCLUDED = "excluded"
    SUSPENDED = "suspended"
    REVIEWING = "reviewing"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"

    def is_final(self) -> bool:
        return self in _FINAL_STATUSES

    def is_countable(self) -> bool:
        return self in _COUNTABLE_STATUSES

    def needs_review(self) -> bool:
        return self in (StudyTimeStatus.PENDING, StudyTimeStatus.REVIEWING)

    def is_modifiable(self) -> bool:
        return not self.is_final()

    def requires_notification(self) -> bool:
        return self in (
            StudyTimeStatus.INVALID,
            StudyTimeStatus.EXCLUDED,
            StudyTimeStatus.SUSPENDED,
            StudyTimeStatus.REJECTED,
            StudyTimeStatus.EXPIRED,
        )

    def next_possible_statuses(self) -> tuple[StudyTimeStatus, ...]:
        return STATUS_TRANSITIONS[self]

    def can_transition_to(self, status: StudyTimeStatus) -> bool:
        return status in STATUS_TRANSITIONS[self]

    @classmethod
    def countable_statuses(cls) -> tuple[StudyTimeStatus, ...]:
        return tuple(s for s in cls if s.is_countable())

    @classmethod
    def from_string(cls, value: str) -> StudyTimeStatus | None:
        """Lenient lookup by value or member name; None when unknown."""
        normalized = value.strip().lower()
        for status in cls:
            if status.value == normalized:
                return status
        return None


_FINAL_STATUSES = frozenset(
    {StudyTimeStatus.APPROVED, StudyTimeStatus.REJECTED, StudyTimeStatus.EXPIRED}
)
_COUNTABLE_STATUSES = frozenset(
    {StudyTimeStatus.VALID, StudyTimeStatus.PARTIAL, StudyTimeStatus.APPROVED}
)

STATUS_TRANSITIONS: dict[StudyTimeStatus, tuple[StudyTimeStatus, ...]] = {
    StudyTimeStatus.PENDING: (
        StudyTimeStatus.VALID,
        StudyTimeStatus.INVALID,
        StudyTimeStatus.PARTIAL,
        StudyTimeStatus.REVIEWING,
    ),
    StudyTimeStatus.REVIEWING: (
        StudyTimeStatus.APPROVED,
        StudyTimeStatus.REJECTED,
        StudyTimeStatus.PARTIAL,
    ),
    StudyTimeStatus.VALID: (
        StudyTimeStatus.APPROVED,
        StudyTimeStatus.EXCLUDED,
        StudyTimeStatus.REVIEWING,
    ),
    StudyTimeStatus.INVALID: (StudyTimeStatus.EXCLUDED, StudyTimeStatus.REVIEWING),
    StudyTimeStatus.PARTIAL: (
        StudyTimeStatus.APPROVED,
        StudyTimeStatus.REJECTED,
        StudyTimeStatus.REVIEWING,
    ),
    StudyTimeStatus.SUSPENDED: (
        StudyTimeStatus.VALID,
        StudyTimeStatus.INVALID,
        StudyTimeStatus.PENDING,
    ),
    StudyTimeStatus.EXCLUDED: (),
    StudyTimeStatus.APPROVED: (),
    StudyTimeStatus.REJECTED: (),
    StudyTimeStatus.EXPIRED: (),
}


class InvalidTimeReason(str, Enum):
    """Why (part of) a session does not count as effective study time."""

    # Regulation a: browsing site information and online tests
    BROWSING_WEB_INFO = "browsing_web_info"
    ONLINE_TESTING = "online_testing"
    # Regulation b: time after a failed identity verification
    IDENTITY_VERIFICATION_FAILED = "identity_verification_failed"
    # Regulation c: interaction interval above the configured maximum
    INTERACTION_TIMEOUT = "interaction_timeout"
    IDLE_TIMEOUT = "idle_timeout"
    NO_ACTIVITY_DETECTED = "no_activity_detected"
    # Regulation d: portion above the daily accumulated limit
    DAILY_LIMIT_EXCEEDED = "daily_limit_exceeded"
    # Regulation e: course test not completed
    INCOMPLETE_COURSE_TEST = "incomplete_course_test"
    # Technical reasons
    WINDOW_FOCUS_LOST = "window_focus_lost"
    PAGE_HIDDEN = "page_hidden"
    MULTIPLE_DEVICE_LOGIN = "multiple_device_login"
    NETWORK_DISCONNECTED = "network_disconnected"
    SYSTEM_ERROR = "system_error"
    SUSPICIOUS_BEHAVIOR = "suspicious_behavior"
    MANUAL_EXCLUSION = "manual_exclusion"

    def regulation_category(self) -> str:
        return _REGULATION_CATEGORIES.get(self, "technical_reason")

    def severity(self) -> str:
        if self in (
            InvalidTimeReason.INCOMPLETE_COURSE_TEST,
            InvalidTimeReason.IDENTITY_VERIFICATION_FAILED,
        ):
            return "critical"
        if self in (
            InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
            InvalidTimeReason.MULTIPLE_DEVICE_LOGIN,
            InvalidTimeReason.SUSPICIOUS_BEHAVIOR,
        ):
            return "high"
        if self in (
            InvalidTimeReason.INTERACTION_TIMEOUT,
            InvalidTimeReason.IDLE_TIMEOUT,
            InvalidTimeReason.WINDOW_FOCUS_LOST,
        ):
            return "medium"
        return "low"

    def affects_whole_course(self) -> bool:
        return self in (
            InvalidTimeReason.INCOMPLETE_COURSE_TEST,
            InvalidTimeReason.IDENTITY_VERIFICATION_FAILED,
        )

    def requires_student_notification(self) -> bool:
        return self in (
            InvalidTimeReason.BROWSING_WEB_INFO,
            InvalidTimeReason.ONLINE_TESTING,
            InvalidTimeReason.IDENTITY_VERIFICATION_FAILED,
            InvalidTimeReason.INTERACTION_TIMEOUT,
            InvalidTimeReason.IDLE_TIMEOUT,
            InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
            InvalidTimeReason.INCOMPLETE_COURSE_TEST,
        )

    @classmethod
    def regulation_reasons(cls) -> tuple[InvalidTimeReason, ...]:
        return tuple(r for r in cls if r.regulation_category() != "technical_reason")


_REGULATION_CATEGORIES: dict[InvalidTimeReason, str] = {
    InvalidTimeReason.BROWSING_WEB_INFO: "regulation_a",
    InvalidTimeReason.ONLINE_TESTING: "regulation_a",
    InvalidTimeReason.IDENTITY_VERIFICATION_FAILED: "regulation_b",
    InvalidTimeReason.INTERACTION_TIMEOUT: "regulation_c",
    InvalidTimeReason.IDLE_TIMEOUT: "regulation_c",
    InvalidTimeReason.NO_ACTIVITY_DETECTED: "regulation_c",
    InvalidTimeReason.DAILY_LIMIT_EXCEEDED: "regulation_d",
    InvalidTimeReason.INCOMPLETE_COURSE_TEST: "regulation_e",
}


# --- Study Time Record ---


def _new_record_id() -> str:
    return f"esr_{uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StudyTimeRecord(BaseModel):
    id: str = Field(default_factory=_new_record_id)
    user_id: str
    study_date: date
    session_id: str | None = None
    course_id: str | None = None
    lesson_id: str | None = None

    start_time: datetime
    end_time: datetime
    total_duration: float = 0.0
    effective_duration: float = 0.0
    invalid_duration: float = 0.0

    status: StudyTimeStatus = StudyTimeStatus.PENDING
    invalid_reason: InvalidTimeReason | None = None
    description: str | None = None

    # Sub-scores are stored as the extractor returned them
    quality_score: float | None = Field(default=None, ge=0.0, le=10.0)
    focus_score: float | None = None
    interaction_score: float | None = None
    continuity_score: float | None = None

    behavior_stats: dict[str, Any] | None = None
    evidence_data: list[dict[str, Any]] | None = None
    validation_result: dict[str, Any] | None = None

    review_comment: str | None = None
    reviewed_by: str | None = None
    review_time: datetime | None = None

    include_in_daily_total: bool = True
    student_notified: bool = False

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    # --- Derived values ---

    def effective_rate(self) -> float:
        if self.total_duration == 0:
            return 0.0
        return self.effective_duration / self.total_duration

    def invalid_rate(self) -> float:
        if self.total_duration == 0:
            return 0.0
        return self.invalid_duration / self.total_duration

    def is_high_quality(self) -> bool:
        return self.quality_score is not None and self.quality_score >= 8.0

    def needs_review(self) -> bool:
        return self.status.needs_review()

    # --- Mutations ---

    def set_durations(self, effective_duration: float) -> None:
        """Set effective time and derive invalid time so both sum to the total."""
        self.effective_duration = effective_duration
        self.invalid_duration = self.total_duration - effective_duration
        self.touch()

    def append_description(self, text: str) -> None:
        if self.description:
            self.description = f"{self.description}; {text}"
        else:
            self.description = text
        self.touch()

    def mark_as_invalid(self, reason: InvalidTimeReason, description: str | None = None) -> None:
        self.status = StudyTimeStatus.INVALID
        self.invalid_reason = reason
        self.description = description
        self.effective_duration = 0.0
        self.invalid_duration = self.total_duration
        self.include_in_daily_total = False
        self.touch()

    def mark_as_valid(self, effective_duration: float | None = None) -> None:
        self.status = StudyTimeStatus.VALID
        self.invalid_reason = None
        self.include_in_daily_total = True
        self.set_durations(
            self.total_duration if effective_duration is None else effective_duration
        )

    def mark_as_reviewed(
        self,
        status: StudyTimeStatus,
        reviewed_by: str,
        comment: str | None = None,
        now: datetime | None = None,
    ) -> None:
        if not self.status.can_transition_to(status):
            raise InvalidStatusTransitionError(self.status, status)
        self.status = status
        self.reviewed_by = reviewed_by
        self.review_comment = comment
        self.review_time = now or _utcnow()
        self.touch(self.review_time)

    def add_evidence(self, evidence_type: str, data: dict[str, Any]) -> None:
        if self.evidence_data is None:
            self.evidence_data = []
        self.evidence_data.append(
            {"type": evidence_type, "data": data, "timestamp": int(_utcnow().timestamp())}
        )

    def touch(self, now: datetime | None = None) -> None:
        self.updated_at = now or _utcnow()


class UserStudyTimeStats(BaseModel):
    """Aggregated efficiency figures for one user over a date range."""

    user_id: str
    start_date: date
    end_date: date
    total_records: int = 0
    total_time: float = 0.0
    effective_time: float = 0.0
    invalid_time: float = 0.0
    avg_quality: float | None = None
    avg_focus: float | None = None
    avg_interaction: float | None = None
    avg_continuity: float | None = None

    def efficiency_rate(self) -> float:
        if self.total_time == 0:
            return 0.0
        return self.effective_time / self.total_time


class CourseStudyTimeStats(BaseModel):
    """Counted study time of one course across all of its students."""

    course_id: str
    total_students: int = 0
    total_records: int = 0
    total_study_time: float = 0.0
    total_effective_time: float = 0.0
    avg_effective_time: float | None = None
    avg_quality: float | None = None

    def efficiency_rate(self) -> float:
        if self.total_study_time == 0:
            return 0.0
        return self.total_effective_time / self.total_study_time


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
