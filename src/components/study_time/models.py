"""
Study time orchestration input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from src.domain.entities import StudyTimeRecord


# --- Session Identity ---


@dataclass(frozen=True)
class StudySession:
    """
    Opaque identity of the session being closed.

    Supplied by the caller; references are copied onto the record and never
    resolved here.
    """

    session_id: str | None
    user_id: str
    course_id: str | None = None
    lesson_id: str | None = None


class SessionDescriptor(BaseModel):
    """One batch item: a closed session plus its behavior payload."""

    user_id: str
    session_id: str | None = None
    course_id: str | None = None
    lesson_id: str | None = None
    start_time: datetime
    end_time: datetime
    # Derived from the session bounds when omitted
    total_duration: float | None = None
    behavior_data: list[dict[str, Any]] = Field(default_factory=list)

    def to_session(self) -> StudySession:
        return StudySession(
            session_id=self.session_id,
            user_id=self.user_id,
            course_id=self.course_id,
            lesson_id=self.lesson_id,
        )

    def resolved_total_duration(self) -> float:
        if self.total_duration is not None:
            return self.total_duration
        return (self.end_time - self.start_time).total_seconds()


# --- Input Error ---


@dataclass(frozen=True)
class StudyInputError:
    """Input rejected before any record was built."""

    code: str
    message: str
    field_name: str | None = None


# --- Batch Results ---


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of one batch item; failures keep the descriptor and the error."""

    index: int
    success: bool
    record: StudyTimeRecord | None = None
    error: str | None = None
    error_type: str | None = None
    descriptor: Any = None


@dataclass(frozen=True)
class BatchProcessOutput:
    results: tuple[BatchItemResult, ...] = ()

    @property
    def records(self) -> list[StudyTimeRecord]:
        return [r.record for r in self.results if r.success and r.record is not None]

    @property
    def failures(self) -> list[BatchItemResult]:
        return [r for r in self.results if not r.success]

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0


# --- Entry Point Inputs ---


@dataclass(frozen=True)
class ProcessStudyTimeInput:
    session: StudySession
    start_time: datetime
    end_time: datetime
    total_duration: float
    behavior_data: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class BatchProcessInput:
    descriptors: tuple[SessionDescriptor | dict[str, Any], ...]
    max_workers: int | None = None


@dataclass(frozen=True)
class RecalculateInput:
    record: StudyTimeRecord


@dataclass(frozen=True)
class StudyStatsInput:
    user_id: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class CourseStatsInput:
    course_id: str


# --- Entry Point Outputs ---


@dataclass(frozen=True)
class ProcessStudyTimeOutput:
    record: StudyTimeRecord | None
    errors: list[StudyInputError] = field(default_factory=list)
    success: bool = True
