"""
Behavior signals component - Ratios and markers derived from behavior events.
"""

from .component import (
    BehaviorSignalExtractor,
    build_evidence_data,
    calculate_continuity_ratio,
    calculate_focus_ratio,
    calculate_interaction_ratio,
    check_interaction_timeout,
    count_time_gaps,
    events_from_stats,
    extract_duration,
    extract_timestamp,
    has_authentication_failure,
    has_completed_test,
    is_browsing_or_testing,
    summarize_behavior,
)
from .models import (
    DEFAULT_SIGNAL_CONFIG,
    BehaviorEvent,
    BehaviorEvents,
    EvidenceData,
    InteractionTimeoutResult,
    SignalConfig,
    TimestampRange,
)

__all__ = [
    # Extractor
    "BehaviorSignalExtractor",
    # Pure functions
    "calculate_focus_ratio",
    "calculate_interaction_ratio",
    "calculate_continuity_ratio",
    "count_time_gaps",
    "is_browsing_or_testing",
    "has_authentication_failure",
    "has_completed_test",
    "check_interaction_timeout",
    "build_evidence_data",
    "summarize_behavior",
    "events_from_stats",
    "extract_duration",
    "extract_timestamp",
    # Models
    "BehaviorEvent",
    "BehaviorEvents",
    "EvidenceData",
    "InteractionTimeoutResult",
    "SignalConfig",
    "TimestampRange",
    "DEFAULT_SIGNAL_CONFIG",
]
