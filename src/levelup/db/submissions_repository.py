"""Repository functions for the submissions table.

Submissions are append-only: there is an insert and there are reads, nothing
else.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from levelup.core.models import (
    DifficultyTier,
    QuestionResponse,
    SectionScore,
    SubjectCategory,
    SubmissionRecord,
)
from levelup.db.database import get_db

logger = structlog.get_logger(__name__)


def insert_submission(record: SubmissionRecord, db_path: Path | None = None) -> str:
    """Insert a graded submission.

    Args:
        record: Submission to store

    Returns:
        The submission id

    Raises:
        sqlite3.IntegrityError: If the submission id already exists
    """
    with get_db(db_path) as conn:
        conn.execute(
            """
            INSERT INTO submissions (
                submission_id, student_id, course_id, tier,
                raw_score, total_questions, percentage, scaled_score,
                sections, responses, duration_seconds, submitted_at, degraded
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.submission_id,
                record.student_id,
                record.course_id,
                record.tier.value,
                record.raw_score,
                record.total_questions,
                record.percentage,
                record.scaled_score,
                json.dumps({c.value: s.to_dict() for c, s in record.sections.items()}),
                json.dumps([r.to_dict() for r in record.responses], ensure_ascii=False),
                record.duration_seconds,
                record.submitted_at,
                int(record.degraded),
            ),
        )

    logger.debug("submissions.inserted", submission_id=record.submission_id)
    return record.submission_id


def get_submission(submission_id: str, db_path: Path | None = None) -> SubmissionRecord | None:
    """Get submission by ID.

    Returns:
        SubmissionRecord if found, None otherwise
    """
    with get_db(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM submissions WHERE submission_id = ?", (submission_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def list_submissions(
    student_id: str,
    course_id: str,
    newest_first: bool = True,
    db_path: Path | None = None,
) -> list[SubmissionRecord]:
    """Get a student's submissions for one course.

    Args:
        student_id: Student identifier
        course_id: Course identifier
        newest_first: Order by submission time descending (default) or ascending
    """
    order = "DESC" if newest_first else "ASC"
    with get_db(db_path) as conn:
        rows = conn.execute(
            f"""
            SELECT * FROM submissions
            WHERE student_id = ? AND course_id = ?
            ORDER BY submitted_at {order}, rowid {order}
            """,
            (student_id, course_id),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


class SqliteSubmissionStore:
    """Submission storage bound to one SQLite database."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def persist_submission(self, record: SubmissionRecord) -> str:
        return insert_submission(record, db_path=self.db_path)

    def get_submission(self, submission_id: str) -> SubmissionRecord | None:
        return get_submission(submission_id, db_path=self.db_path)

    def list_submissions(
        self, student_id: str, course_id: str, newest_first: bool = True
    ) -> list[SubmissionRecord]:
        return list_submissions(
            student_id, course_id, newest_first=newest_first, db_path=self.db_path
        )


def _row_to_record(row) -> SubmissionRecord:
    """Convert database row to SubmissionRecord."""
    sections_data = json.loads(row["sections"]) if row["sections"] else {}
    responses_data = json.loads(row["responses"]) if row["responses"] else []
    return SubmissionRecord(
        submission_id=row["submission_id"],
        student_id=row["student_id"],
        course_id=row["course_id"],
        tier=DifficultyTier(row["tier"]),
        raw_score=row["raw_score"],
        total_questions=row["total_questions"],
        percentage=row["percentage"],
        scaled_score=row["scaled_score"],
        sections={
            SubjectCategory(key): SectionScore.from_dict(value)
            for key, value in sections_data.items()
        },
        duration_seconds=row["duration_seconds"],
        submitted_at=row["submitted_at"],
        responses=tuple(
            QuestionResponse(
                question_id=r["question_id"],
                given_answer=r.get("given_answer", ""),
                is_correct=bool(r.get("is_correct", False)),
            )
            for r in responses_data
        ),
        degraded=bool(row["degraded"]),
    )
