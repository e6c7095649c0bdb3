import os
from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from src.adapters.clock import FixedClock
from src.adapters.daily_limit import RulesDailyLimitProvider
from src.adapters.day_locks import KeyedDayLock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteStudyRecordRepo
from src.components.study_time import EffectiveStudyTimeOrchestrator, build_orchestrator
from src.rules.loader import load_rules
from src.rules.models import StudyTimeRules

PROJECT_ROOT = Path(__file__).parent.parent
MIGRATIONS_DIR = str(PROJECT_ROOT / "migrations")

STUDY_DATE = date(2026, 1, 14)


@pytest.fixture
def rules() -> StudyTimeRules:
    """The real rules file from the project root."""
    rules_path = PROJECT_ROOT / "study_time_rules.yaml"
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def db_path(tmp_path) -> str:
    path = os.path.join(str(tmp_path), "study_time.db")
    SQLiteMigrator(path, MIGRATIONS_DIR).run_migrations()
    return path


@pytest.fixture
def repo(db_path) -> SQLiteStudyRecordRepo:
    return SQLiteStudyRecordRepo(db_path)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 14, 18, 0, tzinfo=UTC))


@pytest.fixture
def orchestrator(rules, repo, clock) -> EffectiveStudyTimeOrchestrator:
    """Fully wired pipeline backed by a temporary SQLite DB."""
    return build_orchestrator(
        rules,
        aggregate=repo,
        limits=RulesDailyLimitProvider(rules.daily_limit),
        store=repo,
        day_lock=KeyedDayLock(),
        clock=clock,
    )
