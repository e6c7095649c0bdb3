"""
Study validator component - Validity rule chain for study sessions.
"""

from .component import (
    DEFAULT_INTERACTION_TIMEOUT_SECONDS,
    NeverRequireTest,
    PredicateTestPolicy,
    StudyTimeValidator,
)
from .models import ValidationResult
from .ports import CourseTestPolicy, ValidationSignalsPort

__all__ = [
    "StudyTimeValidator",
    "NeverRequireTest",
    "PredicateTestPolicy",
    "ValidationResult",
    "CourseTestPolicy",
    "ValidationSignalsPort",
    "DEFAULT_INTERACTION_TIMEOUT_SECONDS",
]
