"""
Study time component - Effective study time determination per closed session.
"""

from .component import (
    EffectiveStudyTimeOrchestrator,
    build_orchestrator,
    check_session_bounds,
    run,
    run_batch,
    run_process,
    run_recalculate,
)
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
from .ports import DayLockPort, StudyRecordStorePort

__all__ = [
    "EffectiveStudyTimeOrchestrator",
    "build_orchestrator",
    "check_session_bounds",
    "run",
    "run_process",
    "run_batch",
    "run_recalculate",
    "StudySession",
    "SessionDescriptor",
    "StudyInputError",
    "BatchItemResult",
    "BatchProcessOutput",
    "BatchProcessInput",
    "ProcessStudyTimeInput",
    "ProcessStudyTimeOutput",
    "RecalculateInput",
    "StudyStatsInput",
    "CourseStatsInput",
    "DayLockPort",
    "StudyRecordStorePort",
]
