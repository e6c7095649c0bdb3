"""
Quality component models.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.rules.models import QualityRules


@dataclass(frozen=True)
class QualityConfig:
    """Composite score weights and review thresholds."""

    focus_weight: float = 0.4
    interaction_weight: float = 0.3
    continuity_weight: float = 0.3
    review_quality_threshold: float = 6.0
    review_focus_threshold: float = 0.7

    @classmethod
    def from_rules(cls, rules: QualityRules) -> QualityConfig:
        return cls(
            focus_weight=rules.weights.focus,
            interaction_weight=rules.weights.interaction,
            continuity_weight=rules.weights.continuity,
            review_quality_threshold=rules.review_quality_threshold,
            review_focus_threshold=rules.review_focus_threshold,
        )


DEFAULT_QUALITY_CONFIG = QualityConfig()


@dataclass(frozen=True)
class QualityScores:
    """Scores written onto a study record."""

    quality_score: float  # 0.0 - 10.0, clamped
    focus_score: float  # raw ratio
    interaction_score: float  # raw ratio
    continuity_score: float  # raw ratio
