"""
Quality component - Composite quality scoring and review flagging.
"""

from .component import (
    MAX_QUALITY_SCORE,
    QualityAssessor,
    clamp_ratio,
    needs_quality_review,
    score_from_ratios,
)
from .models import DEFAULT_QUALITY_CONFIG, QualityConfig, QualityScores
from .ports import RatioSignalsPort

__all__ = [
    "QualityAssessor",
    "clamp_ratio",
    "score_from_ratios",
    "needs_quality_review",
    "QualityConfig",
    "QualityScores",
    "RatioSignalsPort",
    "DEFAULT_QUALITY_CONFIG",
    "MAX_QUALITY_SCORE",
]
