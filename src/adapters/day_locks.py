"""
Per-user, per-day lock registry.

Serializes the daily cap read-then-truncate and the commit for one
(user_id, study_date) within a process. Different users or days never block
each other. Entries are dropped once no thread holds or waits on them.

Workers in separate processes sharing one database must use
SQLiteStudyRecordRepo.hold instead, which keeps the aggregate read and the save
in one BEGIN IMMEDIATE transaction.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

logger = logging.getLogger(__name__)

DayKey = tuple[str, date]


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedDayLock:
    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._entries: dict[DayKey, _Entry] = {}

    @contextmanager
    def hold(self, user_id: str, study_date: date) -> Iterator[None]:
        key = (user_id, study_date)
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def active_keys(self) -> list[DayKey]:
        """Keys currently held or waited on."""
        with self._registry_lock:
            return list(self._entries)
