"""Progression engine facade.

Wires the ledger, level gate, grading pipeline, aggregator and history
views to one set of collaborators. Identities are always explicit
parameters; the engine keeps no per-user state.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from pathlib import Path
from typing import Any, Protocol

from levelup.config.app_config import AppConfig, load_app_config
from levelup.core.aggregator import ScoreAggregator
from levelup.core.errors import InvalidSubmissionError, SubmissionNotFoundError
from levelup.core.grading_pipeline import GradingPipeline
from levelup.core.history import SectionAnalysis, SubmissionReview, build_review, section_analysis
from levelup.core.ledger import BestScoreLedger, ProgressStore
from levelup.core.level_gate import LevelGate
from levelup.core.models import (
    DiagnosticBaseline,
    DifficultyTier,
    LevelStatus,
    ProgressRecord,
    Question,
    ScoreSummary,
    SubjectCategory,
    SubmissionRecord,
    SubmissionResult,
)


class SubmissionHistoryStore(Protocol):
    """Submission storage with the reads the history views need."""

    def persist_submission(self, record: SubmissionRecord) -> str: ...

    def get_submission(self, submission_id: str) -> SubmissionRecord | None: ...

    def list_submissions(
        self, student_id: str, course_id: str, newest_first: bool = True
    ) -> list[SubmissionRecord]: ...


class ProgressionEngine:
    """Entry point used by the HTTP API and the CLI."""

    def __init__(
        self,
        progress_store: ProgressStore,
        submission_store: SubmissionHistoryStore,
        category_of: Callable[[str], SubjectCategory],
        questions_by_ids: Callable[[list[str]], list[Question | None]],
        baseline_of: Callable[[str], DiagnosticBaseline | None],
        config: AppConfig | None = None,
    ):
        self.config = config or load_app_config()
        self.submissions = submission_store
        self.questions_by_ids = questions_by_ids
        self.baseline_of = baseline_of

        self.ledger = BestScoreLedger(progress_store, category_of, self.config.scoring)
        self.gate = LevelGate(self.ledger)
        self.pipeline = GradingPipeline(
            self.ledger, submission_store, category_of, self.config.scoring
        )
        self.aggregator = ScoreAggregator(self.ledger, category_of, self.config)

    @classmethod
    def from_db(cls, db_path: Path | None = None, config: AppConfig | None = None) -> ProgressionEngine:
        """Engine backed by the SQLite repositories."""
        from levelup.db import courses_repository
        from levelup.db.progress_repository import SqliteProgressStore
        from levelup.db.submissions_repository import SqliteSubmissionStore

        config = config or load_app_config()
        defaults = DiagnosticBaseline(
            math_score=config.baseline.math_score,
            rw_score=config.baseline.rw_score,
            target_score=config.baseline.target_score,
        )
        return cls(
            progress_store=SqliteProgressStore(db_path),
            submission_store=SqliteSubmissionStore(db_path),
            category_of=partial(courses_repository.get_course_category, db_path=db_path),
            questions_by_ids=partial(courses_repository.get_questions_by_ids, db_path=db_path),
            baseline_of=partial(
                courses_repository.get_diagnostic_baseline, defaults=defaults, db_path=db_path
            ),
            config=config,
        )

    # -------------------------------------------------------------------------
    # Grading
    # -------------------------------------------------------------------------

    def submit(
        self,
        student_id: str,
        course_id: str,
        tier: DifficultyTier | str,
        questions: list[Question],
        answers: list[Any],
        duration_seconds: int | None = None,
    ) -> SubmissionResult:
        return self.pipeline.submit(
            student_id, course_id, tier, questions, answers, duration_seconds
        )

    def submit_by_question_ids(
        self,
        student_id: str,
        course_id: str,
        tier: DifficultyTier | str,
        question_ids: list[str],
        answers: list[Any],
        duration_seconds: int | None = None,
    ) -> SubmissionResult:
        """Submit answers for questions identified by id, in the given order."""
        if len(question_ids) != len(answers):
            raise InvalidSubmissionError(
                f"Answer count ({len(answers)}) does not match question count ({len(question_ids)})"
            )
        questions = self.questions_by_ids(list(question_ids))
        missing = [qid for qid, q in zip(question_ids, questions) if q is None]
        if missing:
            raise InvalidSubmissionError(f"Unknown question ids: {', '.join(missing)}")
        return self.submit(
            student_id,
            course_id,
            tier,
            [q for q in questions if q is not None],
            answers,
            duration_seconds,
        )

    # -------------------------------------------------------------------------
    # Progress and gating
    # -------------------------------------------------------------------------

    def get_progress(self, student_id: str, course_id: str) -> list[ProgressRecord]:
        return self.ledger.get_progress(student_id, course_id)

    def is_unlocked(self, student_id: str, course_id: str, tier: DifficultyTier | str) -> bool:
        return self.gate.is_unlocked(student_id, course_id, tier)

    def level_states(self, student_id: str, course_id: str) -> list[LevelStatus]:
        return self.gate.level_states(student_id, course_id)

    def is_course_completed(self, student_id: str, course_id: str) -> bool:
        return self.gate.is_course_completed(student_id, course_id)

    def summarize(
        self,
        student_id: str,
        course_id: str | None = None,
        baseline: DiagnosticBaseline | None = None,
    ) -> ScoreSummary:
        """Summary for a course or all courses, using the stored baseline if none given."""
        if baseline is None:
            baseline = self.baseline_of(student_id)
        return self.aggregator.summarize(student_id, course_id, baseline)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def list_submissions(self, student_id: str, course_id: str) -> list[SubmissionRecord]:
        return self.submissions.list_submissions(student_id, course_id, newest_first=True)

    def get_submission_review(self, submission_id: str) -> SubmissionReview:
        submission = self.submissions.get_submission(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return build_review(submission, self.questions_by_ids)

    def section_analysis(self, student_id: str, course_id: str) -> SectionAnalysis:
        return section_analysis(
            self.submissions.list_submissions(student_id, course_id, newest_first=False)
        )
