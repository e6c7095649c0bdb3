from datetime import UTC, datetime

from src.adapters.clock import FixedClock, SystemClock


def test_system_clock():
    clock = SystemClock()
    now = clock.now_utc()
    assert now.tzinfo is not None
    # Sanity check: is it close to real now?
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_fixed_clock():
    instant = datetime(2026, 1, 14, 12, 0, tzinfo=UTC)
    clock = FixedClock(instant)
    assert clock.now_utc() == instant

    later = datetime(2026, 1, 14, 13, 0, tzinfo=UTC)
    clock.set(later)
    assert clock.now_utc() == later
