"""Repository functions for courses, questions and diagnostic baselines.

These tables belong to collaborators (course CRUD, question import,
diagnostic wizard). The engine only reads them; the write helpers exist for
seeding and tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import structlog

from levelup.core.models import (
    DiagnosticBaseline,
    DifficultyTier,
    Question,
    SubjectCategory,
    infer_course_category,
    try_parse_category,
)
from levelup.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class CourseRecord:
    """Course record from database."""

    course_id: str
    name: str
    tutor_type: str | None
    category: SubjectCategory | None

    @property
    def resolved_category(self) -> SubjectCategory:
        """Explicit category, else inferred from tutor type and name."""
        if self.category is not None:
            return self.category
        return infer_course_category(self.tutor_type, self.name)


# =============================================================================
# COURSES
# =============================================================================


def upsert_course(
    course_id: str,
    name: str,
    tutor_type: str | None = None,
    category: SubjectCategory | None = None,
    db_path: Path | None = None,
) -> None:
    """Insert or replace a course's metadata."""
    with get_db(db_path) as conn:
        conn.execute(
            """
            INSERT INTO courses (course_id, name, tutor_type, category)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(course_id) DO UPDATE SET
                name = excluded.name,
                tutor_type = excluded.tutor_type,
                category = excluded.category
            """,
            (course_id, name, tutor_type, category.value if category else None),
        )

    logger.debug("courses.upserted", course_id=course_id)


def get_course(course_id: str, db_path: Path | None = None) -> CourseRecord | None:
    """Get course by ID.

    Returns:
        CourseRecord if found, None otherwise
    """
    with get_db(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM courses WHERE course_id = ?", (course_id,)
        ).fetchone()

    if row is None:
        return None

    return CourseRecord(
        course_id=row["course_id"],
        name=row["name"],
        tutor_type=row["tutor_type"],
        category=try_parse_category(row["category"]),
    )


def get_course_category(course_id: str, db_path: Path | None = None) -> SubjectCategory:
    """Resolve a course's category. Unknown courses are READING_WRITING."""
    course = get_course(course_id, db_path=db_path)
    if course is None:
        logger.debug("courses.category_defaulted", course_id=course_id)
        return SubjectCategory.READING_WRITING
    return course.resolved_category


# =============================================================================
# QUESTIONS
# =============================================================================


def insert_question(
    course_id: str,
    tier: DifficultyTier,
    question: Question,
    position: int = 0,
    db_path: Path | None = None,
) -> None:
    """Insert a question for a course tier."""
    with get_db(db_path) as conn:
        conn.execute(
            """
            INSERT INTO questions (
                question_id, course_id, tier, position, type,
                prompt, options, correct_answer, explanation, section
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                question.question_id,
                course_id,
                tier.value,
                position,
                question.type,
                question.prompt,
                json.dumps(question.options) if question.options is not None else None,
                question.correct_answer,
                question.explanation,
                question.section,
            ),
        )


def get_questions(
    course_id: str,
    tier: DifficultyTier,
    db_path: Path | None = None,
) -> list[Question]:
    """Get the quiz questions of a course tier in display order."""
    with get_db(db_path) as conn:
        rows = conn.execute(
            """
            SELECT * FROM questions
            WHERE course_id = ? AND tier = ?
            ORDER BY position, question_id
            """,
            (course_id, tier.value),
        ).fetchall()

    return [_row_to_question(row) for row in rows]


def get_questions_by_ids(
    question_ids: list[str],
    db_path: Path | None = None,
) -> list[Question | None]:
    """Get questions in the order of the given ids (None where missing)."""
    if not question_ids:
        return []

    placeholders = ", ".join("?" for _ in question_ids)
    with get_db(db_path) as conn:
        rows = conn.execute(
            f"SELECT * FROM questions WHERE question_id IN ({placeholders})",
            tuple(question_ids),
        ).fetchall()

    by_id = {row["question_id"]: _row_to_question(row) for row in rows}
    return [by_id.get(qid) for qid in question_ids]


def _row_to_question(row) -> Question:
    """Convert database row to Question."""
    return Question(
        question_id=row["question_id"],
        prompt=row["prompt"],
        correct_answer=row["correct_answer"],
        options=json.loads(row["options"]) if row["options"] else None,
        explanation=row["explanation"],
        section=row["section"],
        type=row["type"],
    )


# =============================================================================
# DIAGNOSTIC BASELINES
# =============================================================================


def save_diagnostic_baseline(
    student_id: str,
    math_score: int | None,
    rw_score: int | None,
    target_score: int | None,
    db_path: Path | None = None,
) -> None:
    """Insert or replace a student's diagnostic answers."""
    with get_db(db_path) as conn:
        conn.execute(
            """
            INSERT INTO diagnostic_baselines (student_id, math_score, rw_score, target_score)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(student_id) DO UPDATE SET
                math_score = excluded.math_score,
                rw_score = excluded.rw_score,
                target_score = excluded.target_score,
                updated_at = datetime('now')
            """,
            (student_id, math_score, rw_score, target_score),
        )


def get_diagnostic_baseline(
    student_id: str,
    defaults: DiagnosticBaseline | None = None,
    db_path: Path | None = None,
) -> DiagnosticBaseline | None:
    """Get a student's baseline, with missing fields defaulted.

    Returns:
        DiagnosticBaseline if the student has one, None otherwise
    """
    with get_db(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM diagnostic_baselines WHERE student_id = ?", (student_id,)
        ).fetchone()

    if row is None:
        return None

    return DiagnosticBaseline.from_raw(
        {
            "math_score": row["math_score"],
            "rw_score": row["rw_score"],
            "target_score": row["target_score"],
        },
        defaults=defaults,
    )
