"""
Rules-backed daily limit provider.

Resolves a user's daily effective-time ceiling from the daily_limit section of
study_time_rules.yaml: a per-user override when present, the default
(28800 s) otherwise. Resolved values are cached per user for
cache_ttl_seconds; a TTL of 0 disables caching.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from src.components.effective_time.models import DEFAULT_DAILY_LIMIT_SECONDS
from src.rules.models import DailyLimitRules

logger = logging.getLogger(__name__)


class RulesDailyLimitProvider:
    def __init__(
        self,
        rules: DailyLimitRules | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rules = rules or DailyLimitRules(default_seconds=DEFAULT_DAILY_LIMIT_SECONDS)
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._cache: dict[str, tuple[float, float]] = {}

    @property
    def default_seconds(self) -> float:
        return self._rules.default_seconds

    def get_user_daily_limit(self, user_id: str) -> float:
        ttl = self._rules.cache_ttl_seconds
        now = self._monotonic()

        if ttl > 0:
            with self._lock:
                cached = self._cache.get(user_id)
                if cached is not None and cached[1] > now:
                    return cached[0]

        limit = self._resolve(user_id)

        if ttl > 0:
            with self._lock:
                self._cache[user_id] = (limit, now + ttl)
        return limit

    def _resolve(self, user_id: str) -> float:
        override = self._rules.user_overrides.get(user_id)
        if override is not None:
            logger.debug("Daily limit override for user %s: %.0fs", user_id, override)
            return float(override)
        return float(self._rules.default_seconds)

    def update_rules(self, rules: DailyLimitRules) -> None:
        """Swap in reloaded rules and drop cached limits."""
        with self._lock:
            self._rules = rules
            self._cache.clear()
        logger.info("Daily limit rules updated; %d user overrides", len(rules.user_overrides))

    def invalidate(self, user_id: str | None = None) -> None:
        with self._lock:
            if user_id is None:
                self._cache.clear()
            else:
                self._cache.pop(user_id, None)
