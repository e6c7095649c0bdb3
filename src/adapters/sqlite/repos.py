import json
import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any

from src.domain.entities import (
    CourseStudyTimeStats,
    InvalidTimeReason,
    StudyTimeRecord,
    StudyTimeStatus,
    UserStudyTimeStats,
)

logger = logging.getLogger(__name__)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _dump_json(value: Any) -> str | None:
    return json.dumps(value, default=str) if value is not None else None


def _load_json(value: str | None) -> Any:
    return json.loads(value) if value else None


def _parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


_COLUMNS = (
    "id",
    "user_id",
    "study_date",
    "session_id",
    "course_id",
    "lesson_id",
    "start_time",
    "end_time",
    "total_duration",
    "effective_duration",
    "invalid_duration",
    "status",
    "invalid_reason",
    "description",
    "quality_score",
    "focus_score",
    "interaction_score",
    "continuity_score",
    "behavior_stats_json",
    "evidence_data_json",
    "validation_result_json",
    "review_comment",
    "reviewed_by",
    "review_time",
    "include_in_daily_total",
    "student_notified",
    "created_at",
    "updated_at",
)


class SQLiteStudyRecordRepo:
    """
    Study record store, daily aggregate reader and database-backed day lock.

    Writes run under BEGIN IMMEDIATE so concurrent writers from other
    connections queue behind the SQLite reserved lock. Inside hold() every
    read and write made through this repo on the holding thread shares one
    BEGIN IMMEDIATE transaction, which commits when the block exits.
    """

    def __init__(self, db_path: str, busy_timeout_seconds: float = 5.0):
        self.db_path = db_path
        self.busy_timeout_seconds = busy_timeout_seconds
        self._local = threading.local()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path, timeout=self.busy_timeout_seconds, isolation_level=None
        )
        conn.row_factory = dict_factory
        return conn

    def _held_conn(self) -> sqlite3.Connection | None:
        return getattr(self._local, "conn", None)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        held = self._held_conn()
        if held is not None:
            yield held
            return
        conn = self._get_conn()
        try:
            yield conn
        finally:
            conn.close()

    # --- Day Lock ---

    @contextmanager
    def hold(self, user_id: str, study_date: date) -> Iterator[None]:
        """
        Hold the database write lock for the daily cap check and the commit.

        The lock covers the whole database, so holders for other users or days
        wait too. Holders on other connections, threads or processes wait up to
        busy_timeout_seconds and then fail with sqlite3.OperationalError.
        Nested holds on the same thread join the outer transaction.
        """
        if self._held_conn() is not None:
            yield
            return

        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            self._local.conn = conn
            try:
                yield
                conn.execute("COMMIT")
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                logger.warning(
                    "Rolled back study day transaction for %s on %s",
                    user_id,
                    study_date.isoformat(),
                )
                raise
            finally:
                self._local.conn = None
        finally:
            conn.close()

    # --- Store ---

    def save(self, record: StudyTimeRecord) -> StudyTimeRecord:
        values = self._to_row(record)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        updates = ", ".join(f"{col}=excluded.{col}" for col in _COLUMNS if col != "id")
        sql = (
            f"INSERT INTO study_records ({', '.join(_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}"
        )

        held = self._held_conn()
        if held is not None:
            # Committed by hold()
            held.execute(sql, values)
        else:
            conn = self._get_conn()
            try:
                conn.execute("BEGIN IMMEDIATE")
                conn.execute(sql, values)
                conn.execute("COMMIT")
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            finally:
                conn.close()
        logger.debug("Saved study record %s (status=%s)", record.id, record.status.value)
        return record

    def get(self, record_id: str) -> StudyTimeRecord | None:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM study_records WHERE id = ?", (record_id,)).fetchone()
        return self._from_row(row) if row else None

    def list_by_user_and_date(self, user_id: str, study_date: date) -> list[StudyTimeRecord]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM study_records WHERE user_id = ? AND study_date = ? "
                "ORDER BY start_time ASC",
                (user_id, study_date.isoformat()),
            ).fetchall()
        return [self._from_row(r) for r in rows]

    def list_by_status(
        self, status: StudyTimeStatus, limit: int | None = None
    ) -> list[StudyTimeRecord]:
        sql = "SELECT * FROM study_records WHERE status = ? ORDER BY created_at ASC"
        params: list[Any] = [status.value]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._from_row(r) for r in rows]

    # --- Aggregates ---

    def get_daily_effective_time(
        self,
        user_id: str,
        study_date: date,
        exclude_record_id: str | None = None,
    ) -> float:
        countable = StudyTimeStatus.countable_statuses()
        sql = (
            "SELECT COALESCE(SUM(effective_duration), 0) AS total FROM study_records "
            "WHERE user_id = ? AND study_date = ? AND include_in_daily_total = 1 "
            f"AND status IN ({', '.join('?' for _ in countable)})"
        )
        params: list[Any] = [user_id, study_date.isoformat(), *(s.value for s in countable)]
        if exclude_record_id is not None:
            sql += " AND id != ?"
            params.append(exclude_record_id)

        with self._connection() as conn:
            row = conn.execute(sql, params).fetchone()
        return float(row["total"])

    def get_user_efficiency_stats(
        self, user_id: str, start_date: date, end_date: date
    ) -> UserStudyTimeStats:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT
                    COUNT(id) AS total_records,
                    COALESCE(SUM(total_duration), 0) AS total_time,
                    COALESCE(SUM(effective_duration), 0) AS effective_time,
                    COALESCE(SUM(invalid_duration), 0) AS invalid_time,
                    AVG(quality_score) AS avg_quality,
                    AVG(focus_score) AS avg_focus,
                    AVG(interaction_score) AS avg_interaction,
                    AVG(continuity_score) AS avg_continuity
                FROM study_records
                WHERE user_id = ? AND study_date BETWEEN ? AND ?
                """,
                (user_id, start_date.isoformat(), end_date.isoformat()),
            ).fetchone()

        return UserStudyTimeStats(user_id=user_id, start_date=start_date, end_date=end_date, **row)

    def get_course_study_time_stats(self, course_id: str) -> CourseStudyTimeStats:
        """Totals over the course's counted records (countable status, included)."""
        countable = StudyTimeStatus.countable_statuses()
        with self._connection() as conn:
            row = conn.execute(
                f"""
                SELECT
                    COUNT(DISTINCT user_id) AS total_students,
                    COUNT(id) AS total_records,
                    COALESCE(SUM(total_duration), 0) AS total_study_time,
                    COALESCE(SUM(effective_duration), 0) AS total_effective_time,
                    AVG(effective_duration) AS avg_effective_time,
                    AVG(quality_score) AS avg_quality
                FROM study_records
                WHERE course_id = ? AND include_in_daily_total = 1
                  AND status IN ({', '.join('?' for _ in countable)})
                """,
                (course_id, *(s.value for s in countable)),
            ).fetchone()

        return CourseStudyTimeStats(course_id=course_id, **row)

    # --- Mapping ---

    def _to_row(self, record: StudyTimeRecord) -> tuple[Any, ...]:
        return (
            record.id,
            record.user_id,
            record.study_date.isoformat(),
            record.session_id,
            record.course_id,
            record.lesson_id,
            record.start_time.isoformat(),
            record.end_time.isoformat(),
            record.total_duration,
            record.effective_duration,
            record.invalid_duration,
            record.status.value,
            record.invalid_reason.value if record.invalid_reason else None,
            record.description,
            record.quality_score,
            record.focus_score,
            record.interaction_score,
            record.continuity_score,
            _dump_json(record.behavior_stats),
            _dump_json(record.evidence_data),
            _dump_json(record.validation_result),
            record.review_comment,
            record.reviewed_by,
            record.review_time.isoformat() if record.review_time else None,
            1 if record.include_in_daily_total else 0,
            1 if record.student_notified else 0,
            record.created_at.isoformat(),
            record.updated_at.isoformat(),
        )

    def _from_row(self, row: dict[str, Any]) -> StudyTimeRecord:
        return StudyTimeRecord(
            id=row["id"],
            user_id=row["user_id"],
            study_date=date.fromisoformat(row["study_date"]),
            session_id=row["session_id"],
            course_id=row["course_id"],
            lesson_id=row["lesson_id"],
            start_time=datetime.fromisoformat(row["start_time"]),
            end_time=datetime.fromisoformat(row["end_time"]),
            total_duration=row["total_duration"],
            effective_duration=row["effective_duration"],
            invalid_duration=row["invalid_duration"],
            status=StudyTimeStatus(row["status"]),
            invalid_reason=(
                InvalidTimeReason(row["invalid_reason"]) if row["invalid_reason"] else None
            ),
            description=row["description"],
            quality_score=row["quality_score"],
            focus_score=row["focus_score"],
            interaction_score=row["interaction_score"],
            continuity_score=row["continuity_score"],
            behavior_stats=_load_json(row["behavior_stats_json"]),
            evidence_data=_load_json(row["evidence_data_json"]),
            validation_result=_load_json(row["validation_result_json"]),
            review_comment=row["review_comment"],
            reviewed_by=row["reviewed_by"],
            review_time=_parse_dt(row["review_time"]),
            include_in_daily_total=bool(row["include_in_daily_total"]),
            student_notified=bool(row["student_notified"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
