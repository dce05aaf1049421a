"""Fixtures for F3 tests - Grading pipeline."""

import pytest

from levelup.config.app_config import config_from_dict
from levelup.core.grading_pipeline import GradingPipeline
from levelup.core.ledger import BestScoreLedger, InMemoryProgressStore
from levelup.core.models import Question, SubjectCategory, SubmissionRecord


class RecordingSubmissionStore:
    """In-memory submission store that remembers what it was given."""

    def __init__(self):
        self.records: list[SubmissionRecord] = []

    def persist_submission(self, record: SubmissionRecord) -> str:
        self.records.append(record)
        return record.submission_id


def course_categories(course_id: str) -> SubjectCategory:
    if course_id.startswith("math"):
        return SubjectCategory.MATH
    return SubjectCategory.READING_WRITING


def make_questions(n: int, section: str | None = None, prefix: str = "q") -> list[Question]:
    """n multiple-choice questions whose correct answer is 'A'."""
    return [
        Question(
            question_id=f"{prefix}{i}",
            prompt=f"Question {i}",
            correct_answer="A",
            options=["A", "B", "C", "D"],
            section=section,
        )
        for i in range(1, n + 1)
    ]


def answers_with(correct: int, total: int) -> list[str]:
    """Answers with the first ``correct`` right and the rest wrong."""
    return ["A"] * correct + ["B"] * (total - correct)


@pytest.fixture
def scoring():
    return config_from_dict({}).scoring


@pytest.fixture
def submissions() -> RecordingSubmissionStore:
    return RecordingSubmissionStore()


@pytest.fixture
def ledger(scoring) -> BestScoreLedger:
    return BestScoreLedger(InMemoryProgressStore(), course_categories, scoring)


@pytest.fixture
def pipeline(ledger, submissions, scoring) -> GradingPipeline:
    counter = iter(range(1, 10_000))
    return GradingPipeline(
        ledger,
        submissions,
        course_categories,
        scoring,
        id_factory=lambda: f"sub-{next(counter)}",
    )


@pytest.fixture(name="make_questions")
def make_questions_fixture():
    return make_questions


@pytest.fixture(name="answers_with")
def answers_with_fixture():
    return answers_with
