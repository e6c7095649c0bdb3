"""
Effective time component - Effective seconds and daily cap enforcement.
"""

from .component import (
    EffectiveTimeCalculator,
    apply_daily_cap,
    effective_seconds,
)
from .models import (
    DAILY_LIMIT_EXCEEDED_DESCRIPTION,
    DEFAULT_DAILY_LIMIT_SECONDS,
    PARTIAL_OVER_LIMIT_DESCRIPTION,
    DailyBudget,
    DailyLimitResult,
)
from .ports import DailyAggregatePort, DailyLimitPort, EffectiveRatiosPort

__all__ = [
    "EffectiveTimeCalculator",
    "effective_seconds",
    "apply_daily_cap",
    "DailyBudget",
    "DailyLimitResult",
    "DailyAggregatePort",
    "DailyLimitPort",
    "EffectiveRatiosPort",
    "DEFAULT_DAILY_LIMIT_SECONDS",
    "DAILY_LIMIT_EXCEEDED_DESCRIPTION",
    "PARTIAL_OVER_LIMIT_DESCRIPTION",
]
