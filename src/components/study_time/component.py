"""
Study time component - Effective study time determination per closed session.

Pipeline for one session:
raw events -> validation gate -> quality scoring -> effective time
-> daily cap -> (optional) commit

Invariants:
- effective_duration + invalid_duration == total_duration on every returned record
- Rejected sessions are never scored and never reach the daily cap
- Daily cap check and commit run under the same per-user, per-day lock, so the
  committed effective time of a user's day never exceeds the limit. This holds
  across processes only when the lock is the store's own transaction
  (SQLiteStudyRecordRepo.hold). Without a store the lock is released before the
  caller persists, so callers committing records themselves must serialize
  their own commits.
- Records whose status has no further transition (EXCLUDED and the final
  statuses) are never recalculated
- A failing batch item never aborts the rest of the batch
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Any

from src.components.behavior_signals import (
    BehaviorSignalExtractor,
    SignalConfig,
    events_from_stats,
    summarize_behavior,
)
from src.components.behavior_signals.models import BehaviorEvents
from src.components.effective_time import (
    DailyAggregatePort,
    DailyLimitPort,
    EffectiveTimeCalculator,
)
from src.components.quality import QualityAssessor, QualityConfig
from src.components.study_validator import CourseTestPolicy, StudyTimeValidator
from src.domain.entities import (
    CourseStudyTimeStats,
    InvalidStudyInputError,
    InvalidTimeReason,
    StudyTimeError,
    StudyTimeRecord,
    StudyTimeStatus,
    UserStudyTimeStats,
)
from src.ports.clock import ClockPort
from src.rules.models import StudyTimeRules

from .models import (
    BatchItemResult,
    BatchProcessInput,
    BatchProcessOutput,
    CourseStatsInput,
    ProcessStudyTimeInput,
    ProcessStudyTimeOutput,
    RecalculateInput,
    SessionDescriptor,
    StudyInputError,
    StudySession,
    StudyStatsInput,
)
from .ports import (
    AssessorPort,
    CalculatorPort,
    DayLockPort,
    EvidenceSignalsPort,
    StudyRecordStorePort,
    ValidatorPort,
)

logger = logging.getLogger(__name__)


# --- Input Checks ---


def check_session_bounds(start_time: datetime, end_time: datetime, total_duration: float) -> None:
    """
    Reject impossible session inputs before a record exists.

    Raises:
        InvalidStudyInputError: negative or non-finite duration, end before start,
            or bounds that cannot be compared (naive vs aware).
    """
    if not math.isfinite(total_duration) or total_duration < 0:
        raise InvalidStudyInputError(
            f"total_duration must be a non-negative number of seconds, got {total_duration}"
        )
    try:
        reversed_bounds = end_time < start_time
    except TypeError as e:
        raise InvalidStudyInputError(f"Session bounds are not comparable: {e}") from e
    if reversed_bounds:
        raise InvalidStudyInputError(
            f"end_time {end_time.isoformat()} is before start_time {start_time.isoformat()}"
        )


class _ProcessWideLock:
    """Fallback day lock: one lock for every user and day."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def hold(self, user_id: str, study_date: date) -> AbstractContextManager[Any]:
        return self._lock


# --- Orchestrator ---


class EffectiveStudyTimeOrchestrator:
    """Turns a closed session into a finalized StudyTimeRecord."""

    def __init__(
        self,
        validator: ValidatorPort,
        assessor: AssessorPort,
        calculator: CalculatorPort,
        signals: EvidenceSignalsPort,
        day_lock: DayLockPort | None = None,
        store: StudyRecordStorePort | None = None,
        clock: ClockPort | None = None,
        hold_low_quality_for_review: bool = False,
        max_workers: int | None = None,
    ) -> None:
        self._validator = validator
        self._assessor = assessor
        self._calculator = calculator
        self._signals = signals
        self._day_lock = day_lock or _ProcessWideLock()
        self._store = store
        self._clock = clock
        self._hold_low_quality = hold_low_quality_for_review
        self._max_workers = max_workers

    @property
    def store(self) -> StudyRecordStorePort | None:
        return self._store

    def _now(self) -> datetime | None:
        return self._clock.now_utc() if self._clock is not None else None

    # --- Single Session ---

    def process_study_time(
        self,
        session: StudySession,
        start_time: datetime,
        end_time: datetime,
        total_duration: float,
        behavior_data: BehaviorEvents | None = None,
    ) -> StudyTimeRecord:
        """
        Build, evaluate and (when a store is configured) commit one record.

        Raises:
            InvalidStudyInputError: for impossible session bounds.
            DailyLimitLookupError: when the daily aggregate or limit cannot be read.
        """
        check_session_bounds(start_time, end_time, total_duration)
        events = list(behavior_data or [])

        record = StudyTimeRecord(
            user_id=session.user_id,
            session_id=session.session_id,
            course_id=session.course_id,
            lesson_id=session.lesson_id,
            study_date=start_time.date(),
            start_time=start_time,
            end_time=end_time,
            total_duration=float(total_duration),
            invalid_duration=float(total_duration),
            behavior_stats=summarize_behavior(events),
        )
        now = self._now()
        if now is not None:
            record.created_at = now
            record.updated_at = now

        return self._finalize(record, events)

    def recalculate_record(self, record: StudyTimeRecord) -> StudyTimeRecord:
        """
        Re-run the pipeline from the record's stored behavior stats.

        The record's own committed time is left out of the daily aggregate.

        Raises:
            StudyTimeError: when the record's status is a dead end (EXCLUDED,
                APPROVED, REJECTED, EXPIRED).
        """
        if not record.status.next_possible_statuses():
            raise StudyTimeError(
                f"Record {record.id} is {record.status.value} and can no longer be recalculated"
            )

        events = events_from_stats(record.behavior_stats)
        record.status = StudyTimeStatus.PENDING
        record.invalid_reason = None
        record.description = None
        record.quality_score = None
        record.focus_score = None
        record.interaction_score = None
        record.continuity_score = None
        record.set_durations(0.0)

        logger.info("Recalculating study record %s from %d stored events", record.id, len(events))
        return self._finalize(record, events, exclude_record_id=record.id)

    def _finalize(
        self,
        record: StudyTimeRecord,
        events: BehaviorEvents,
        exclude_record_id: str | None = None,
    ) -> StudyTimeRecord:
        with self._day_lock.hold(record.user_id, record.study_date):
            self._evaluate(record, events, exclude_record_id)
            evidence = self._signals.build_evidence_data(events, record.total_duration, self._now())
            record.evidence_data = [evidence.to_dict()]
            record.touch(self._now())
            if self._store is not None:
                self._store.save(record)

        logger.info(
            "Study record %s finalized for user %s: status=%s effective=%.1fs total=%.1fs",
            record.id,
            record.user_id,
            record.status.value,
            record.effective_duration,
            record.total_duration,
        )
        return record

    def _evaluate(
        self,
        record: StudyTimeRecord,
        events: BehaviorEvents,
        exclude_record_id: str | None,
    ) -> None:
        validation = self._validator.validate_study_time(record, events)
        record.validation_result = validation.to_dict()

        if not validation.valid:
            record.mark_as_invalid(
                validation.reason or InvalidTimeReason.SYSTEM_ERROR,
                validation.description,
            )
            return

        self._assessor.calculate_quality_scores(record, events)
        record.mark_as_valid(self._calculator.calculate_effective_time(record, events))

        daily = self._calculator.check_daily_limit(record, exclude_record_id)
        record.validation_result["daily_limit"] = daily.to_dict()
        if not daily.valid:
            record.mark_as_invalid(
                daily.reason or InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
                daily.description,
            )
            return

        if (
            self._hold_low_quality
            and record.status == StudyTimeStatus.VALID
            and self._assessor.needs_quality_review(record)
        ):
            record.status = StudyTimeStatus.PENDING
            record.append_description("held for quality review")

    # --- Batch ---

    def batch_process_study_time(
        self,
        descriptors: Iterable[SessionDescriptor | Mapping[str, Any]],
        max_workers: int | None = None,
    ) -> BatchProcessOutput:
        """
        Process each descriptor independently; results follow input order.

        Per-item failures (including descriptor validation errors) are reported
        as failed BatchItemResult entries.
        """
        items = list(descriptors)
        workers = max_workers if max_workers is not None else self._max_workers

        if workers is not None and workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(self._process_item, range(len(items)), items))
        else:
            results = [self._process_item(i, item) for i, item in enumerate(items)]

        output = BatchProcessOutput(results=tuple(results))
        if output.failed:
            logger.warning(
                "Batch finished with %d of %d items failed", output.failed, len(items)
            )
        return output

    def _process_item(
        self, index: int, descriptor: SessionDescriptor | Mapping[str, Any]
    ) -> BatchItemResult:
        try:
            parsed = (
                descriptor
                if isinstance(descriptor, SessionDescriptor)
                else SessionDescriptor.model_validate(dict(descriptor))
            )
            record = self.process_study_time(
                parsed.to_session(),
                parsed.start_time,
                parsed.end_time,
                parsed.resolved_total_duration(),
                parsed.behavior_data,
            )
        except Exception as e:
            logger.exception(
                "Batch item %d failed (session %s)", index, _session_ref(descriptor)
            )
            return BatchItemResult(
                index=index,
                success=False,
                error=str(e),
                error_type=type(e).__name__,
                descriptor=descriptor,
            )
        return BatchItemResult(index=index, success=True, record=record, descriptor=descriptor)

    # --- Queries ---

    def get_user_study_time_stats(
        self, user_id: str, start_date: date, end_date: date
    ) -> UserStudyTimeStats:
        if self._store is None:
            raise StudyTimeError("No study record store configured")
        if end_date < start_date:
            raise InvalidStudyInputError(
                f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}"
            )
        return self._store.get_user_efficiency_stats(user_id, start_date, end_date)

    def get_course_study_time_stats(self, course_id: str) -> CourseStudyTimeStats:
        if self._store is None:
            raise StudyTimeError("No study record store configured")
        return self._store.get_course_study_time_stats(course_id)


def _session_ref(descriptor: Any) -> str:
    if isinstance(descriptor, SessionDescriptor):
        return descriptor.session_id or "unknown"
    if isinstance(descriptor, Mapping):
        return str(descriptor.get("session_id") or "unknown")
    return "unknown"


# --- Wiring ---


def build_orchestrator(
    rules: StudyTimeRules,
    aggregate: DailyAggregatePort,
    limits: DailyLimitPort,
    *,
    store: StudyRecordStorePort | None = None,
    day_lock: DayLockPort | None = None,
    clock: ClockPort | None = None,
    test_policy: CourseTestPolicy | None = None,
) -> EffectiveStudyTimeOrchestrator:
    """Assemble the pipeline from a loaded rules file."""
    signals = BehaviorSignalExtractor(SignalConfig.from_rules(rules.signals))
    return EffectiveStudyTimeOrchestrator(
        validator=StudyTimeValidator(
            signals,
            test_policy=test_policy,
            interaction_timeout_seconds=rules.validation.interaction_timeout_seconds,
        ),
        assessor=QualityAssessor(signals, QualityConfig.from_rules(rules.quality)),
        calculator=EffectiveTimeCalculator(signals, aggregate, limits),
        signals=signals,
        day_lock=day_lock,
        store=store,
        clock=clock,
        hold_low_quality_for_review=rules.quality.hold_for_review,
        max_workers=rules.batch.max_workers,
    )


# --- Component Entry Points ---


def run_process(
    inp: ProcessStudyTimeInput,
    *,
    orchestrator: EffectiveStudyTimeOrchestrator,
) -> ProcessStudyTimeOutput:
    """
    Process one closed session.

    Impossible inputs come back as errors; collaborator failures propagate.
    """
    try:
        record = orchestrator.process_study_time(
            inp.session,
            inp.start_time,
            inp.end_time,
            inp.total_duration,
            inp.behavior_data,
        )
    except InvalidStudyInputError as e:
        return ProcessStudyTimeOutput(
            record=None,
            errors=[StudyInputError(code="INVALID_SESSION_INPUT", message=str(e))],
            success=False,
        )
    return ProcessStudyTimeOutput(record=record)


def run_batch(
    inp: BatchProcessInput,
    *,
    orchestrator: EffectiveStudyTimeOrchestrator,
) -> BatchProcessOutput:
    return orchestrator.batch_process_study_time(inp.descriptors, inp.max_workers)


def run_recalculate(
    inp: RecalculateInput,
    *,
    orchestrator: EffectiveStudyTimeOrchestrator,
) -> StudyTimeRecord:
    return orchestrator.recalculate_record(inp.record)


def run(
    inp: (
        ProcessStudyTimeInput
        | BatchProcessInput
        | RecalculateInput
        | StudyStatsInput
        | CourseStatsInput
    ),
    *,
    orchestrator: EffectiveStudyTimeOrchestrator,
) -> (
    ProcessStudyTimeOutput
    | BatchProcessOutput
    | StudyTimeRecord
    | UserStudyTimeStats
    | CourseStudyTimeStats
):
    """
    Main entry point for the study time component.

    Dispatches to the appropriate handler based on input type.
    """
    if isinstance(inp, ProcessStudyTimeInput):
        return run_process(inp, orchestrator=orchestrator)
    elif isinstance(inp, BatchProcessInput):
        return run_batch(inp, orchestrator=orchestrator)
    elif isinstance(inp, RecalculateInput):
        return run_recalculate(inp, orchestrator=orchestrator)
    elif isinstance(inp, StudyStatsInput):
        return orchestrator.get_user_study_time_stats(inp.user_id, inp.start_date, inp.end_date)
    elif isinstance(inp, CourseStatsInput):
        return orchestrator.get_course_study_time_stats(inp.course_id)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
