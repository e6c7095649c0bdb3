"""
Study time orchestration port definitions.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Protocol

from src.components.behavior_signals.models import BehaviorEvents, EvidenceData
from src.components.effective_time.models import DailyLimitResult
from src.components.quality.models import QualityScores
from src.components.study_validator.models import ValidationResult
from src.domain.entities import CourseStudyTimeStats, StudyTimeRecord, UserStudyTimeStats


class ValidatorPort(Protocol):
    def validate_study_time(
        self, record: StudyTimeRecord, events: BehaviorEvents
    ) -> ValidationResult: ...


class AssessorPort(Protocol):
    def calculate_quality_scores(
        self, record: StudyTimeRecord, events: BehaviorEvents
    ) -> QualityScores: ...

    def needs_quality_review(self, record: StudyTimeRecord) -> bool: ...


class CalculatorPort(Protocol):
    def calculate_effective_time(
        self, record: StudyTimeRecord, events: BehaviorEvents
    ) -> float: ...

    def check_daily_limit(
        self, record: StudyTimeRecord, exclude_record_id: str | None = None
    ) -> DailyLimitResult: ...


class EvidenceSignalsPort(Protocol):
    def build_evidence_data(
        self, events: BehaviorEvents, total_duration: float, now: datetime | None = None
    ) -> EvidenceData: ...


class DayLockPort(Protocol):
    """Serialization point for one user's study day."""

    def hold(self, user_id: str, study_date: date) -> AbstractContextManager[None]:
        """
        Context manager held across the daily cap check and the commit.

        Two holders for the same (user_id, study_date) never overlap.
        """
        ...


class StudyRecordStorePort(Protocol):
    """Persistence for finalized study records."""

    def save(self, record: StudyTimeRecord) -> StudyTimeRecord:
        """Insert or update the record by id."""
        ...

    def get_user_efficiency_stats(
        self, user_id: str, start_date: date, end_date: date
    ) -> UserStudyTimeStats:
        """Totals and average scores over records with study_date in [start, end]."""
        ...

    def get_course_study_time_stats(self, course_id: str) -> CourseStudyTimeStats:
        """Student count, totals and averages over the course's counted records."""
        ...
