"""
Effective time calculator - Effective seconds and daily cap enforcement.

effective = total_duration * focus * interaction * continuity, kept within
[0, total_duration].

Daily cap: with remaining = limit - already committed,
- remaining <= 0: the whole record is disallowed (effective 0, rejected)
- effective > remaining: truncate to remaining, status PARTIAL, still valid
- otherwise: unchanged

The cap never silently drops a whole session while budget remains.
"""

from __future__ import annotations

import logging

from src.components.behavior_signals.models import BehaviorEvents
from src.domain.entities import (
    DailyLimitLookupError,
    InvalidTimeReason,
    StudyTimeRecord,
    StudyTimeStatus,
)

from .models import (
    DAILY_LIMIT_EXCEEDED_DESCRIPTION,
    PARTIAL_OVER_LIMIT_DESCRIPTION,
    DailyBudget,
    DailyLimitResult,
)
from .ports import DailyAggregatePort, DailyLimitPort, EffectiveRatiosPort

logger = logging.getLogger(__name__)


# --- Pure Functions ---


def effective_seconds(
    total_duration: float, focus: float, interaction: float, continuity: float
) -> float:
    """Scale the observed duration by the raw ratios, capped to [0, total]."""
    if total_duration <= 0:
        return 0.0
    computed = total_duration * focus * interaction * continuity
    return max(0.0, min(computed, total_duration))


def apply_daily_cap(record: StudyTimeRecord, budget: DailyBudget) -> DailyLimitResult:
    """Split the record's effective/invalid time at the remaining budget."""
    remaining = budget.remaining_seconds

    if remaining <= 0:
        exceeded = budget.used_seconds + record.effective_duration - budget.limit_seconds
        record.set_durations(0.0)
        return DailyLimitResult(
            valid=False,
            reason=InvalidTimeReason.DAILY_LIMIT_EXCEEDED,
            description=(
                f"{DAILY_LIMIT_EXCEEDED_DESCRIPTION}: {budget.used_seconds / 3600:.1f}h "
                f"already studied today, {exceeded / 3600:.1f}h over the "
                f"{budget.limit_seconds / 3600:.1f}h limit"
            ),
        )

    if record.effective_duration > remaining:
        exceeded = record.effective_duration - remaining
        record.set_durations(remaining)
        record.status = StudyTimeStatus.PARTIAL
        record.append_description(
            f"{PARTIAL_OVER_LIMIT_DESCRIPTION}: {remaining / 60:.1f} min counted, "
            f"{exceeded / 60:.1f} min over the daily limit"
        )
        return DailyLimitResult(valid=True, truncated=True)

    return DailyLimitResult(valid=True)


# --- Calculator ---


class EffectiveTimeCalculator:
    def __init__(
        self,
        signals: EffectiveRatiosPort,
        aggregate: DailyAggregatePort,
        limits: DailyLimitPort,
    ) -> None:
        self._signals = signals
        self._aggregate = aggregate
        self._limits = limits

    def calculate_effective_time(
        self, record: StudyTimeRecord, events: BehaviorEvents
    ) -> float:
        return effective_seconds(
            record.total_duration,
            self._signals.calculate_focus_ratio(events),
            self._signals.calculate_interaction_ratio(events),
            self._signals.calculate_continuity_ratio(events),
        )

    def read_daily_budget(
        self, user_id: str, record: StudyTimeRecord, exclude_record_id: str | None = None
    ) -> DailyBudget:
        """
        Read the committed aggregate and the user's limit.

        Raises:
            DailyLimitLookupError: if either collaborator fails. There is no
                fallback limit; a failed read is never treated as "no limit".
        """
        try:
            used = float(
                self._aggregate.get_daily_effective_time(
                    user_id, record.study_date, exclude_record_id
                )
            )
            limit = float(self._limits.get_user_daily_limit(user_id))
        except DailyLimitLookupError:
            raise
        except Exception as e:
            raise DailyLimitLookupError(
                f"Daily limit lookup failed for user {user_id} on {record.study_date}: {e}"
            ) from e
        return DailyBudget(used_seconds=used, limit_seconds=limit)

    def check_daily_limit(
        self, record: StudyTimeRecord, exclude_record_id: str | None = None
    ) -> DailyLimitResult:
        """
        Enforce the user's daily ceiling on the record, mutating it when exceeded.

        Must run under the per-user, per-day serialization point when sessions
        can close concurrently.
        """
        budget = self.read_daily_budget(record.user_id, record, exclude_record_id)
        result = apply_daily_cap(record, budget)

        if not result.valid:
            logger.warning(
                "Daily limit reached for user %s on %s (%.0fs used of %.0fs); record %s rejected",
                record.user_id,
                record.study_date,
                budget.used_seconds,
                budget.limit_seconds,
                record.id,
            )
        elif result.truncated:
            logger.warning(
                "Record %s for user %s truncated to %.0fs by daily limit",
                record.id,
                record.user_id,
                record.effective_duration,
            )
        return result
