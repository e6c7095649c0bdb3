"""
Behavior signal extraction - pure functions over behavior event lists.

Derives the three behavioral ratios (focus, interaction, continuity) and the
boolean markers the validator needs from a raw event stream.

Invariants:
- No function raises on malformed events; missing or non-numeric
  ``timestamp``/``duration`` values are treated as absent.
- Every ratio is 0.0 on empty input.
- Ratios are returned unclamped; consumers clamp at the point of use.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterator, Mapping
from datetime import UTC, datetime
from typing import Any

from .models import (
    DEFAULT_SIGNAL_CONFIG,
    BehaviorEvent,
    BehaviorEvents,
    EvidenceData,
    InteractionTimeoutResult,
    SignalConfig,
    TimestampRange,
)

# --- Field Extraction ---


def _iter_events(events: BehaviorEvents) -> Iterator[BehaviorEvent]:
    """Yield only mapping events; anything else is ignored."""
    for event in events:
        if isinstance(event, Mapping):
            yield event


def _action(event: BehaviorEvent) -> str:
    action = event.get("action", "")
    return action if isinstance(action, str) else ""


def _to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def extract_duration(event: BehaviorEvent) -> float:
    """Event duration in seconds; 0.0 when missing or malformed."""
    number = _to_number(event.get("duration"))
    return number if number is not None else 0.0


def extract_timestamp(event: BehaviorEvent) -> int | None:
    """Event timestamp in epoch seconds; None when missing or malformed."""
    number = _to_number(event.get("timestamp"))
    return int(number) if number is not None else None


def _timestamps(events: BehaviorEvents) -> list[int]:
    """Timestamps in list order, skipping events without one."""
    result: list[int] = []
    for event in _iter_events(events):
        ts = extract_timestamp(event)
        if ts is not None:
            result.append(ts)
    return result


def _any_action(events: BehaviorEvents, actions: frozenset[str]) -> bool:
    return any(_action(event) in actions for event in _iter_events(events))


# --- Ratios ---


def calculate_focus_ratio(
    events: BehaviorEvents, config: SignalConfig = DEFAULT_SIGNAL_CONFIG
) -> float:
    """Share of observed duration spent on focused (non focus-loss) actions."""
    total_time = 0.0
    focus_time = 0.0

    for event in _iter_events(events):
        duration = extract_duration(event)
        total_time += duration
        if _action(event) not in config.unfocused_actions:
            focus_time += duration

    if total_time <= 0:
        return 0.0
    return focus_time / total_time


def calculate_interaction_ratio(
    events: BehaviorEvents, config: SignalConfig = DEFAULT_SIGNAL_CONFIG
) -> float:
    """Share of events that are deliberate interactions."""
    if not events:
        return 0.0
    interactions = sum(
        1 for event in _iter_events(events) if _action(event) in config.interactive_actions
    )
    return interactions / len(events)


def count_time_gaps(timestamps: list[int], gap_threshold: int) -> int:
    """Count consecutive pairs further apart than the threshold."""
    return sum(1 for prev, cur in zip(timestamps, timestamps[1:]) if cur - prev > gap_threshold)


def calculate_continuity_ratio(
    events: BehaviorEvents, config: SignalConfig = DEFAULT_SIGNAL_CONFIG
) -> float:
    """
    One minus the fraction of consecutive timestamped pairs that form a gap.

    Events without a usable timestamp are skipped entirely. With zero or one
    timestamped event there is no pair to break, so continuity is 1.0.
    """
    if not events:
        return 0.0

    timestamps = _timestamps(events)
    pairs = len(timestamps) - 1
    if pairs <= 0:
        return 1.0

    gaps = count_time_gaps(timestamps, config.continuity_gap_seconds)
    return 1.0 - gaps / pairs


# --- Markers ---


def is_browsing_or_testing(
    events: BehaviorEvents, config: SignalConfig = DEFAULT_SIGNAL_CONFIG
) -> bool:
    return _any_action(events, config.browsing_actions)


def has_authentication_failure(
    events: BehaviorEvents, config: SignalConfig = DEFAULT_SIGNAL_CONFIG
) -> bool:
    return _any_action(events, config.auth_failure_actions)


def has_completed_test(
    events: BehaviorEvents, config: SignalConfig = DEFAULT_SIGNAL_CONFIG
) -> bool:
    return _any_action(events, config.test_completion_actions)


def check_interaction_timeout(
    events: BehaviorEvents, max_interval_seconds: int
) -> InteractionTimeoutResult:
    """Fail on the first consecutive timestamped pair further apart than allowed."""
    last: int | None = None
    for ts in _timestamps(events):
        if last is not None and ts - last > max_interval_seconds:
            return InteractionTimeoutResult(
                valid=False,
                description=f"interaction gap exceeded {max_interval_seconds} seconds",
            )
        last = ts
    return InteractionTimeoutResult(valid=True)


# --- Evidence & Stats ---


def build_evidence_data(
    events: BehaviorEvents,
    total_duration: float,
    now: datetime | None = None,
) -> EvidenceData:
    """Summarize the event stream for the record's evidence trail."""
    unique_actions: dict[str, None] = {}
    for event in _iter_events(events):
        if "action" in event:
            unique_actions.setdefault(_action(event), None)

    timestamps = _timestamps(events)
    timestamp_range = (
        TimestampRange(start=min(timestamps), end=max(timestamps)) if timestamps else None
    )

    frequency = len(events) / (total_duration / 60) if total_duration > 0 else 0.0
    generated_at = now or datetime.now(UTC)

    return EvidenceData(
        total_behaviors=len(events),
        unique_actions=tuple(unique_actions),
        timestamp_range=timestamp_range,
        interaction_frequency=frequency,
        generated_at=int(generated_at.timestamp()),
    )


def summarize_behavior(events: BehaviorEvents) -> dict[str, Any] | None:
    """Build the opaque behavior_stats bag stored on a record (None when empty)."""
    if not events:
        return None

    mapped = [dict(event) for event in _iter_events(events)]
    action_counts = Counter(_action(event) for event in mapped)
    return {
        "event_count": len(mapped),
        "action_counts": dict(action_counts),
        "total_event_duration": sum(extract_duration(event) for event in mapped),
        "events": mapped,
    }


def events_from_stats(stats: Mapping[str, Any] | None) -> list[dict[str, Any]]:
    """Recover the event list from a behavior_stats bag."""
    if not stats:
        return []
    events = stats.get("events")
    if not isinstance(events, list):
        return []
    return [dict(event) for event in events if isinstance(event, Mapping)]


# --- Configured Extractor ---


class BehaviorSignalExtractor:
    """
    Signal extraction bound to one action vocabulary.

    The validator, assessor and calculator depend on this object rather than
    on the module functions so tests can substitute a double.
    """

    def __init__(self, config: SignalConfig | None = None) -> None:
        self._config = config or DEFAULT_SIGNAL_CONFIG

    @property
    def config(self) -> SignalConfig:
        return self._config

    def calculate_focus_ratio(self, events: BehaviorEvents) -> float:
        return calculate_focus_ratio(events, self._config)

    def calculate_interaction_ratio(self, events: BehaviorEvents) -> float:
        return calculate_interaction_ratio(events, self._config)

    def calculate_continuity_ratio(self, events: BehaviorEvents) -> float:
        return calculate_continuity_ratio(events, self._config)

    def is_browsing_or_testing(self, events: BehaviorEvents) -> bool:
        return is_browsing_or_testing(events, self._config)

    def has_authentication_failure(self, events: BehaviorEvents) -> bool:
        return has_authentication_failure(events, self._config)

    def has_completed_test(self, events: BehaviorEvents) -> bool:
        return has_completed_test(events, self._config)

    def check_interaction_timeout(
        self, events: BehaviorEvents, max_interval_seconds: int
    ) -> InteractionTimeoutResult:
        return check_interaction_timeout(events, max_interval_seconds)

    def build_evidence_data(
        self, events: BehaviorEvents, total_duration: float, now: datetime | None = None
    ) -> EvidenceData:
        return build_evidence_data(events, total_duration, now)
