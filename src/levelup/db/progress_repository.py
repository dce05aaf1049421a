"""Repository functions for the progress (best-score ledger) table.

write_progress is a single conditional upsert: the row is inserted, or
replaced only when the incoming percentage is strictly higher. SQLite holds
the write lock for the whole statement, so concurrent writers for the same
key always leave the highest percentage stored.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from levelup.core.models import ORDERED_TIERS, DifficultyTier, ProgressRecord
from levelup.db.database import get_db

logger = structlog.get_logger(__name__)


def read_progress(
    student_id: str,
    course_id: str,
    tier: DifficultyTier,
    db_path: Path | None = None,
) -> ProgressRecord | None:
    """Get the ledger row for one (student, course, tier).

    Returns:
        ProgressRecord if found, None otherwise
    """
    with get_db(db_path) as conn:
        row = conn.execute(
            """
            SELECT * FROM progress
            WHERE student_id = ? AND course_id = ? AND tier = ?
            """,
            (student_id, course_id, tier.value),
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def write_progress(record: ProgressRecord, db_path: Path | None = None) -> ProgressRecord:
    """Store a candidate record if it beats the stored one.

    Args:
        record: Candidate best result

    Returns:
        The record stored after the write (the candidate, or the unchanged
        previous best)
    """
    with get_db(db_path) as conn:
        cursor = conn.execute(
            """
            INSERT INTO progress (
                student_id, course_id, tier,
                best_percentage, best_scaled, passed, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(student_id, course_id, tier) DO UPDATE SET
                best_percentage = excluded.best_percentage,
                best_scaled = excluded.best_scaled,
                passed = excluded.passed,
                updated_at = excluded.updated_at
            WHERE excluded.best_percentage > progress.best_percentage
            """,
            (
                record.student_id,
                record.course_id,
                record.tier.value,
                record.best_percentage,
                record.best_scaled,
                int(record.passed),
                record.updated_at,
            ),
        )
        changed = cursor.rowcount > 0

        # Same transaction: the write lock is still held
        row = conn.execute(
            """
            SELECT * FROM progress
            WHERE student_id = ? AND course_id = ? AND tier = ?
            """,
            (record.student_id, record.course_id, record.tier.value),
        ).fetchone()

    logger.debug(
        "progress.written",
        student_id=record.student_id,
        course_id=record.course_id,
        tier=record.tier.value,
        changed=changed,
    )

    return _row_to_record(row)


def list_progress(
    student_id: str,
    course_id: str | None = None,
    db_path: Path | None = None,
) -> list[ProgressRecord]:
    """Get all ledger rows for a student, optionally limited to one course.

    Returns:
        Records ordered by course, then EASY, MEDIUM, HARD
    """
    with get_db(db_path) as conn:
        if course_id is None:
            rows = conn.execute(
                "SELECT * FROM progress WHERE student_id = ?", (student_id,)
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM progress WHERE student_id = ? AND course_id = ?",
                (student_id, course_id),
            ).fetchall()

    records = [_row_to_record(row) for row in rows]
    records.sort(key=lambda r: (r.course_id, ORDERED_TIERS.index(r.tier)))
    return records


class SqliteProgressStore:
    """Ledger storage bound to one SQLite database."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def read_progress(
        self, student_id: str, course_id: str, tier: DifficultyTier
    ) -> ProgressRecord | None:
        return read_progress(student_id, course_id, tier, db_path=self.db_path)

    def write_progress(self, record: ProgressRecord) -> ProgressRecord:
        return write_progress(record, db_path=self.db_path)

    def list_progress(
        self, student_id: str, course_id: str | None = None
    ) -> list[ProgressRecord]:
        return list_progress(student_id, course_id, db_path=self.db_path)


def _row_to_record(row) -> ProgressRecord:
    """Convert database row to ProgressRecord."""
    return ProgressRecord(
        student_id=row["student_id"],
        course_id=row["course_id"],
        tier=DifficultyTier(row["tier"]),
        best_percentage=row["best_percentage"],
        best_scaled=row["best_scaled"],
        passed=bool(row["passed"]),
        updated_at=row["updated_at"],
    )
