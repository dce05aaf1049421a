"""Fixtures for F4 tests - Aggregation, history and the engine facade."""

from datetime import datetime, timezone

import pytest

from levelup.config.app_config import config_from_dict
from levelup.core.engine import ProgressionEngine
from levelup.core.models import (
    DifficultyTier,
    ProgressRecord,
    Question,
    SubjectCategory,
)
from levelup.db import courses_repository
from levelup.db.database import init_db


def course_categories(course_id: str) -> SubjectCategory:
    if course_id.startswith("math"):
        return SubjectCategory.MATH
    return SubjectCategory.READING_WRITING


def progress(course_id: str, tier: DifficultyTier, pct: float, scaled: int = 0) -> ProgressRecord:
    """Ledger record; ``scaled`` is deliberately stale to check recomputation."""
    return ProgressRecord(
        student_id="s1",
        course_id=course_id,
        tier=tier,
        best_percentage=pct,
        best_scaled=scaled,
        passed=pct >= 40,
        updated_at=datetime.now(timezone.utc).isoformat(),
    )


@pytest.fixture
def app_config():
    return config_from_dict({})


@pytest.fixture(name="category_of")
def category_of_fixture():
    return course_categories


@pytest.fixture(name="progress")
def progress_fixture():
    return progress


@pytest.fixture
def db_path(tmp_path):
    return init_db(tmp_path / "db" / "levelup.db")


@pytest.fixture
def seeded_db(db_path):
    """A Math course and a Reading/Writing course, each with a 4-question Easy quiz."""
    courses_repository.upsert_course(
        "math-101", "SAT Math", tutor_type="sat_math", db_path=db_path
    )
    courses_repository.upsert_course(
        "rw-101", "SAT Reading & Writing", tutor_type="reading_writing", db_path=db_path
    )
    for course_id in ("math-101", "rw-101"):
        for i in range(1, 5):
            courses_repository.insert_question(
                course_id,
                DifficultyTier.EASY,
                Question(
                    question_id=f"{course_id}-e{i}",
                    prompt=f"{course_id} question {i}",
                    correct_answer="A",
                    options=["A", "B", "C", "D"],
                    explanation=f"A is right for question {i}.",
                ),
                position=i,
                db_path=db_path,
            )
    return db_path


@pytest.fixture
def engine(seeded_db, app_config) -> ProgressionEngine:
    return ProgressionEngine.from_db(seeded_db, app_config)
