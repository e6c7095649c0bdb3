"""
Quality assessor - Composite study quality score on a 0-10 scale.

score = 10 * (0.4 * focus + 0.3 * interaction + 0.3 * continuity)

Ratios are clamped to [0, 1] before weighting and the composite is clamped to
[0, 10]. The raw ratios are stored on the record as sub-scores.
"""

from __future__ import annotations

import math

from src.components.behavior_signals.models import BehaviorEvents
from src.domain.entities import StudyTimeRecord

from .models import DEFAULT_QUALITY_CONFIG, QualityConfig, QualityScores
from .ports import RatioSignalsPort

MAX_QUALITY_SCORE = 10.0


# --- Pure Functions ---


def clamp_ratio(value: float) -> float:
    return max(0.0, min(1.0, value))


def score_from_ratios(
    focus: float,
    interaction: float,
    continuity: float,
    config: QualityConfig = DEFAULT_QUALITY_CONFIG,
) -> float:
    """Weighted composite of clamped ratios, scaled to 0-10."""
    weighted = math.fsum(
        (
            config.focus_weight * clamp_ratio(focus),
            config.interaction_weight * clamp_ratio(interaction),
            config.continuity_weight * clamp_ratio(continuity),
        )
    )
    return max(0.0, min(MAX_QUALITY_SCORE, MAX_QUALITY_SCORE * weighted))


def needs_quality_review(
    record: StudyTimeRecord, config: QualityConfig = DEFAULT_QUALITY_CONFIG
) -> bool:
    """Low quality or low focus needs a human look; unscored records always do."""
    if record.quality_score is None or record.focus_score is None:
        return True
    return (
        record.quality_score < config.review_quality_threshold
        or record.focus_score < config.review_focus_threshold
    )


# --- Assessor ---


class QualityAssessor:
    def __init__(
        self, signals: RatioSignalsPort, config: QualityConfig | None = None
    ) -> None:
        self._signals = signals
        self._config = config or DEFAULT_QUALITY_CONFIG

    def assess(self, events: BehaviorEvents) -> QualityScores:
        focus = self._signals.calculate_focus_ratio(events)
        interaction = self._signals.calculate_interaction_ratio(events)
        continuity = self._signals.calculate_continuity_ratio(events)

        return QualityScores(
            quality_score=score_from_ratios(focus, interaction, continuity, self._config),
            focus_score=focus,
            interaction_score=interaction,
            continuity_score=continuity,
        )

    def calculate_quality_scores(
        self, record: StudyTimeRecord, events: BehaviorEvents
    ) -> QualityScores:
        """Score the events and write the four values onto the record."""
        scores = self.assess(events)
        record.quality_score = scores.quality_score
        record.focus_score = scores.focus_score
        record.interaction_score = scores.interaction_score
        record.continuity_score = scores.continuity_score
        record.touch()
        return scores

    def needs_quality_review(self, record: StudyTimeRecord) -> bool:
        return needs_quality_review(record, self._config)
