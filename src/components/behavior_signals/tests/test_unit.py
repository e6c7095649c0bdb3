"""
Unit tests for the behavior signals component.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from src.components.behavior_signals.component import (
    BehaviorSignalExtractor,
    build_evidence_data,
    calculate_continuity_ratio,
    calculate_focus_ratio,
    calculate_interaction_ratio,
    check_interaction_timeout,
    events_from_stats,
    extract_duration,
    extract_timestamp,
    has_authentication_failure,
    has_completed_test,
    is_browsing_or_testing,
    summarize_behavior,
)
from src.components.behavior_signals.models import SignalConfig, TimestampRange

T0 = 1_700_000_000


def _timed(*offsets: int, action: str = "click") -> list[dict]:
    return [{"action": action, "timestamp": T0 + offset} for offset in offsets]


# --- Field Extraction ---


class TestFieldExtraction:
    @pytest.mark.parametrize(
        "value,expected",
        [(12, 12.0), (2.5, 2.5), ("3", 3.0), (None, 0.0), ("", 0.0), ("abc", 0.0), (True, 0.0)],
    )
    def test_extract_duration(self, value, expected) -> None:
        assert extract_duration({"action": "click", "duration": value}) == expected

    def test_extract_duration_missing_key(self) -> None:
        assert extract_duration({"action": "click"}) == 0.0

    @pytest.mark.parametrize(
        "value,expected",
        [(T0, T0), (float(T0), T0), (str(T0), T0), (None, None), ("", None), ("soon", None)],
    )
    def test_extract_timestamp(self, value, expected) -> None:
        assert extract_timestamp({"action": "click", "timestamp": value}) == expected


# --- Focus Ratio ---


class TestFocusRatio:
    def test_empty_is_zero(self) -> None:
        assert calculate_focus_ratio([]) == 0.0

    def test_unfocused_duration_excluded(self) -> None:
        events = [
            {"action": "play", "duration": 80},
            {"action": "window_blur", "duration": 10},
            {"action": "tab_switch", "duration": 10},
        ]
        assert calculate_focus_ratio(events) == pytest.approx(0.8)

    def test_missing_durations_do_not_crash(self) -> None:
        events = [{"action": "play"}, {"action": "play", "duration": "n/a"}]
        assert calculate_focus_ratio(events) == 0.0

    def test_events_without_duration_are_neutral(self) -> None:
        events = [{"action": "play", "duration": 50}, {"action": "mouse_leave"}]
        assert calculate_focus_ratio(events) == 1.0

    def test_custom_unfocused_set(self) -> None:
        config = SignalConfig(unfocused_actions=frozenset({"idle"}))
        events = [{"action": "idle", "duration": 30}, {"action": "window_blur", "duration": 70}]
        assert calculate_focus_ratio(events, config) == pytest.approx(0.7)


# --- Interaction Ratio ---


class TestInteractionRatio:
    def test_empty_is_zero(self) -> None:
        assert calculate_interaction_ratio([]) == 0.0

    def test_counts_interactive_actions(self) -> None:
        events = [
            {"action": "click"},
            {"action": "scroll"},
            {"action": "key_press"},
            {"action": "play"},
        ]
        assert calculate_interaction_ratio(events) == pytest.approx(0.75)

    def test_missing_action_is_not_interactive(self) -> None:
        assert calculate_interaction_ratio([{"timestamp": T0}, {"action": "click"}]) == 0.5


# --- Continuity Ratio ---


class TestContinuityRatio:
    def test_empty_is_zero(self) -> None:
        assert calculate_continuity_ratio([]) == 0.0

    def test_single_timestamp_is_fully_continuous(self) -> None:
        assert calculate_continuity_ratio(_timed(0)) == 1.0

    def test_no_timestamps_is_fully_continuous(self) -> None:
        assert calculate_continuity_ratio([{"action": "click"}, {"action": "scroll"}]) == 1.0

    def test_sixty_second_spacing_has_no_gap(self) -> None:
        assert calculate_continuity_ratio(_timed(0, 60, 120)) == 1.0

    def test_exactly_threshold_is_not_a_gap(self) -> None:
        assert calculate_continuity_ratio(_timed(0, 120)) == 1.0

    def test_one_gap_reduces_by_one_over_pair_count(self) -> None:
        # 4 timestamps -> 3 pairs, one of them 121s apart
        events = _timed(0, 60, 181, 241)
        assert calculate_continuity_ratio(events) == pytest.approx(1.0 - 1 / 3)

    def test_null_timestamps_skipped(self) -> None:
        events = [
            {"action": "click", "timestamp": T0},
            {"action": "click", "timestamp": None},
            {"action": "click", "timestamp": ""},
            {"action": "click", "timestamp": T0 + 100},
        ]
        assert calculate_continuity_ratio(events) == 1.0

    def test_every_pair_a_gap(self) -> None:
        assert calculate_continuity_ratio(_timed(0, 500, 1000)) == 0.0

    def test_custom_gap_threshold(self) -> None:
        config = SignalConfig(continuity_gap_seconds=30)
        assert calculate_continuity_ratio(_timed(0, 60), config) == 0.0


class TestRatioBounds:
    @pytest.mark.parametrize(
        "events",
        [
            [],
            [{"action": "click", "duration": -5, "timestamp": T0}],
            [{"action": "window_blur", "duration": 10}, "garbage", None],
            _timed(0, 10, 1000, 1010),
        ],
    )
    def test_all_ratios_clamp_into_unit_interval(self, events) -> None:
        for fn in (calculate_focus_ratio, calculate_interaction_ratio, calculate_continuity_ratio):
            value = max(0.0, min(1.0, fn(events)))
            assert 0.0 <= value <= 1.0


# --- Markers ---


class TestMarkers:
    @pytest.mark.parametrize("action", ["browse_info", "view_materials", "take_test", "quiz_attempt"])
    def test_browsing_or_testing(self, action: str) -> None:
        assert is_browsing_or_testing([{"action": "click"}, {"action": action}])

    def test_not_browsing(self) -> None:
        assert not is_browsing_or_testing([{"action": "click"}, {"action": "play"}])

    def test_auth_failure(self) -> None:
        assert has_authentication_failure([{"action": "auth_failed"}])
        assert not has_authentication_failure([{"action": "auth_ok"}])

    def test_completed_test(self) -> None:
        assert has_completed_test([{"action": "test_completed"}])
        assert not has_completed_test([])


# --- Interaction Timeout ---


class TestInteractionTimeout:
    def test_empty_is_valid(self) -> None:
        assert check_interaction_timeout([], 300).valid

    def test_within_interval(self) -> None:
        assert check_interaction_timeout(_timed(0, 300, 600), 300).valid

    def test_gap_exceeded(self) -> None:
        result = check_interaction_timeout(_timed(0, 301), 300)
        assert not result.valid
        assert result.description == "interaction gap exceeded 300 seconds"

    def test_null_timestamps_skipped(self) -> None:
        events = [{"action": "click", "timestamp": T0}, {"action": "click"}]
        assert check_interaction_timeout(events, 300).valid


# --- Evidence ---


class TestEvidenceData:
    def test_summary(self) -> None:
        events = [
            {"action": "play", "timestamp": T0 + 30},
            {"action": "click", "timestamp": T0},
            {"action": "play", "timestamp": T0 + 60},
        ]
        now = datetime(2026, 1, 14, 12, 0, 0, tzinfo=UTC)

        evidence = build_evidence_data(events, 120.0, now)

        assert evidence.total_behaviors == 3
        assert evidence.unique_actions == ("play", "click")
        assert evidence.timestamp_range == TimestampRange(start=T0, end=T0 + 60)
        assert evidence.interaction_frequency == pytest.approx(1.5)
        assert evidence.generated_at == int(now.timestamp())

    def test_zero_duration_frequency(self) -> None:
        evidence = build_evidence_data([{"action": "click"}], 0.0)
        assert evidence.interaction_frequency == 0.0
        assert evidence.timestamp_range is None

    def test_to_dict(self) -> None:
        evidence = build_evidence_data(_timed(0, 10), 60.0)
        data = evidence.to_dict()
        assert data["type"] == "behavior_summary"
        assert data["timestamp_range"] == {"start": T0, "end": T0 + 10}


class TestBehaviorStats:
    def test_empty_is_none(self) -> None:
        assert summarize_behavior([]) is None

    def test_events_survive_roundtrip_through_stats(self) -> None:
        events = [{"action": "click", "duration": 3, "extra": "x"}, {"action": "play"}]
        stats = summarize_behavior(events)

        assert stats is not None
        assert stats["event_count"] == 2
        assert stats["action_counts"] == {"click": 1, "play": 1}
        assert events_from_stats(stats) == events

    def test_events_from_unknown_stats(self) -> None:
        assert events_from_stats(None) == []
        assert events_from_stats({"focus": 1}) == []


class TestExtractor:
    def test_extractor_uses_config(self) -> None:
        extractor = BehaviorSignalExtractor(SignalConfig(browsing_actions=frozenset({"faq"})))
        assert extractor.is_browsing_or_testing([{"action": "faq"}])
        assert not extractor.is_browsing_or_testing([{"action": "browse_info"}])
