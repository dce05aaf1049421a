"""Grading pipeline.

Responsibilities:
- Validate the shape of a quiz submission
- Grade each answer (trimmed, case-insensitive exact match)
- Compute raw score, percentage and this attempt's scaled score
- Break the score out per subject section (with a whole-test fallback)
- Persist the submission record, then ratchet the best-score ledger

Ordering: everything is computed in memory before the first write. The
submission record is written first; it is the durable audit entry. The
ledger update comes second and its failure only produces a warning.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog

from levelup.config.app_config import ScoringConfig, load_app_config
from levelup.core.errors import (
    InvalidSubmissionError,
    LedgerUpdateError,
    SubmissionPersistenceError,
)
from levelup.core.ledger import BestScoreLedger
from levelup.core.models import (
    DifficultyTier,
    ProgressRecord,
    Question,
    QuestionResponse,
    SectionScore,
    SubjectCategory,
    SubmissionRecord,
    SubmissionResult,
    try_parse_category,
    try_parse_tier,
)
from levelup.core.score_mapper import map_score

logger = structlog.get_logger(__name__)

# Warning codes reported on SubmissionResult.warnings
GRADING_DEGRADED = "grading_degraded"
LEDGER_UPDATE_FAILED = "ledger_update_failed"

# Short-answer questions imported with a letter as their answer key
LETTER_CODE_RE = re.compile(r"^[A-E]$", re.IGNORECASE)

# Numeric result stated in an explanation ("... Therefore 12", "x = -3.5")
DISPLAY_ANSWER_RE = re.compile(
    r"(?:Therefore|Thus|Hence|So|Consequently|is|=)\s*(-?\d+(?:\.\d+)?)",
    re.IGNORECASE,
)


class SubmissionStore(Protocol):
    """Append-only storage for submission records."""

    def persist_submission(self, record: SubmissionRecord) -> str: ...


@dataclass
class SectionGrading:
    """Outcome of section-aware grading.

    ``sections`` is None when the quiz cannot be broken out by section;
    ``reason`` then says why.
    """

    sections: dict[SubjectCategory, SectionScore] | None
    reason: str | None = None


# =============================================================================
# ANSWER MATCHING
# =============================================================================


def _normalize_answer(answer: Any) -> str:
    """Normalize a submitted answer to a trimmed string ("" if unanswered)."""
    if answer is None:
        return ""
    return str(answer).strip()


def resolve_display_answer(question: Question) -> str | None:
    """Resolve the real answer of a letter-coded short-answer question.

    Some imported short-answer questions carry a letter (A-E) as their
    answer key. The value shown to students is then the number stated in
    the explanation. Returns None when the question is not letter-coded or
    the explanation names no number.
    """
    if question.type != "short_answer":
        return None
    if not LETTER_CODE_RE.match((question.correct_answer or "").strip()):
        return None
    match = DISPLAY_ANSWER_RE.search(question.explanation or "")
    if match:
        return match.group(1)
    return None


def is_answer_correct(question: Question, answer: Any) -> bool:
    """Grade one answer.

    Exact match after trimming, ignoring case. For letter-coded short
    answers the resolved display answer is accepted as well.
    """
    given = _normalize_answer(answer)
    if not given:
        return False

    expected = (question.correct_answer or "").strip()
    if given.lower() == expected.lower():
        return True

    display = resolve_display_answer(question)
    if display is not None and display != expected:
        return given == display.strip()
    return False


# =============================================================================
# SECTION BREAKDOWN
# =============================================================================


def _percentage(correct: int, total: int) -> float:
    return correct / total * 100 if total > 0 else 0.0


def _section_score(
    correct: int,
    total: int,
    tier: DifficultyTier,
    category: SubjectCategory,
    scoring: ScoringConfig,
) -> SectionScore:
    percentage = _percentage(correct, total)
    return SectionScore(
        correct=correct,
        total=total,
        percentage=percentage,
        scaled=map_score(percentage, tier, category, scoring),
    )


def grade_by_section(
    questions: list[Question],
    correctness: list[bool],
    tier: DifficultyTier,
    course_category: SubjectCategory,
    scoring: ScoringConfig,
) -> SectionGrading:
    """Primary path: group results by the questions' section tags.

    An untagged quiz is one section of the course's category. A quiz where
    only some questions are tagged, or where a tag names no known subject,
    cannot be broken out and is reported as such.
    """
    tags = [(q.section or "").strip() for q in questions]

    if not any(tags):
        return SectionGrading(
            sections={
                course_category: _section_score(
                    sum(correctness), len(questions), tier, course_category, scoring
                )
            }
        )

    if not all(tags):
        untagged = sum(1 for t in tags if not t)
        return SectionGrading(
            sections=None,
            reason=f"{untagged} of {len(questions)} questions have no section tag",
        )

    counts: dict[SubjectCategory, list[int]] = {}
    for tag, ok in zip(tags, correctness):
        category = try_parse_category(tag)
        if category is None:
            return SectionGrading(sections=None, reason=f"unrecognised section tag {tag!r}")
        bucket = counts.setdefault(category, [0, 0])
        bucket[0] += int(ok)
        bucket[1] += 1

    return SectionGrading(
        sections={
            category: _section_score(correct, total, tier, category, scoring)
            for category, (correct, total) in counts.items()
        }
    )


def grade_whole_test(
    raw_score: int,
    total: int,
    tier: DifficultyTier,
    course_category: SubjectCategory,
    scoring: ScoringConfig,
) -> dict[SubjectCategory, SectionScore]:
    """Degraded path: one section of the course's category, whole-test score."""
    return {course_category: _section_score(raw_score, total, tier, course_category, scoring)}


# =============================================================================
# PIPELINE
# =============================================================================


class GradingPipeline:
    """Grades submissions and feeds the best-score ledger."""

    def __init__(
        self,
        ledger: BestScoreLedger,
        submissions: SubmissionStore,
        category_of: Callable[[str], SubjectCategory],
        scoring: ScoringConfig | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.ledger = ledger
        self.submissions = submissions
        self.category_of = category_of
        self.scoring = scoring or load_app_config().scoring
        self.id_factory = id_factory or (lambda: uuid.uuid4().hex)

    def _resolve_category(self, course_id: str) -> SubjectCategory:
        try:
            return self.category_of(course_id)
        except Exception as e:
            logger.warning("course_category_unavailable", course_id=course_id, error=str(e))
            return SubjectCategory.READING_WRITING

    def _sections(
        self,
        questions: list[Question],
        correctness: list[bool],
        raw_score: int,
        tier: DifficultyTier,
        course_category: SubjectCategory,
    ) -> tuple[dict[SubjectCategory, SectionScore], str | None]:
        """Section breakdown, falling back to whole-test grading.

        Returns:
            (sections, degraded_reason) where degraded_reason is None when
            the primary path succeeded
        """
        try:
            outcome = grade_by_section(questions, correctness, tier, course_category, self.scoring)
        except Exception as e:
            outcome = SectionGrading(sections=None, reason=f"section grading error: {e}")

        if outcome.sections is not None:
            return outcome.sections, None

        return (
            grade_whole_test(raw_score, len(questions), tier, course_category, self.scoring),
            outcome.reason or "section grading unavailable",
        )

    def submit(
        self,
        student_id: str,
        course_id: str,
        tier: DifficultyTier | str,
        questions: list[Question],
        answers: list[Any],
        duration_seconds: int | None = None,
    ) -> SubmissionResult:
        """Grade and record one quiz attempt.

        Args:
            student_id: Student identifier
            course_id: Course identifier
            tier: Tier attempted; unknown values are graded as MEDIUM
            questions: Questions in the order they were presented
            answers: One answer per question ("" when unanswered)
            duration_seconds: Time spent on the attempt

        Returns:
            SubmissionResult with the record and any non-blocking warnings

        Raises:
            InvalidSubmissionError: Malformed submission; nothing persisted
            SubmissionPersistenceError: The submission record was not saved
        """
        if len(answers) != len(questions):
            raise InvalidSubmissionError(
                f"Answer count ({len(answers)}) does not match question count ({len(questions)})"
            )
        if not questions:
            raise InvalidSubmissionError("Submission has no questions")

        warnings: list[str] = []

        resolved_tier = try_parse_tier(tier)
        if resolved_tier is None:
            logger.warning("unknown_tier_defaulted", tier=str(tier), default="medium")
            resolved_tier = DifficultyTier.MEDIUM

        course_category = self._resolve_category(course_id)

        # Grade each answer
        responses: list[QuestionResponse] = []
        for question, answer in zip(questions, answers):
            responses.append(
                QuestionResponse(
                    question_id=question.question_id,
                    given_answer=_normalize_answer(answer),
                    is_correct=is_answer_correct(question, answer),
                )
            )
        correctness = [r.is_correct for r in responses]

        total = len(questions)
        raw_score = sum(correctness)
        percentage = _percentage(raw_score, total)
        scaled_score = map_score(percentage, resolved_tier, course_category, self.scoring)

        sections, degraded_reason = self._sections(
            questions, correctness, raw_score, resolved_tier, course_category
        )
        if degraded_reason is not None:
            logger.warning(
                "grading_degraded",
                student_id=student_id,
                course_id=course_id,
                reason=degraded_reason,
            )
            warnings.append(f"{GRADING_DEGRADED}: {degraded_reason}")

        record = SubmissionRecord(
            submission_id=self.id_factory(),
            student_id=student_id,
            course_id=course_id,
            tier=resolved_tier,
            raw_score=raw_score,
            total_questions=total,
            percentage=percentage,
            scaled_score=scaled_score,
            sections=sections,
            duration_seconds=duration_seconds,
            submitted_at=datetime.now(timezone.utc).isoformat(),
            responses=tuple(responses),
            degraded=degraded_reason is not None,
        )

        # Durable audit record first
        try:
            self.submissions.persist_submission(record)
        except Exception as e:
            logger.error(
                "submission_persist_failed",
                submission_id=record.submission_id,
                student_id=student_id,
                course_id=course_id,
                error=str(e),
            )
            raise SubmissionPersistenceError(f"Could not save submission: {e}") from e

        # Progression bookkeeping second
        progress: ProgressRecord | None
        try:
            progress = self.ledger.update_if_better(
                student_id, course_id, resolved_tier, percentage
            )
        except LedgerUpdateError as e:
            progress = None
            warnings.append(f"{LEDGER_UPDATE_FAILED}: {e}")

        next_tier_unlocked: bool | None = None
        if progress is not None and resolved_tier.next_tier is not None:
            next_tier_unlocked = progress.passed

        passed = percentage >= self.scoring.pass_threshold

        logger.info(
            "submission_graded",
            submission_id=record.submission_id,
            student_id=student_id,
            course_id=course_id,
            tier=resolved_tier.value,
            score=f"{raw_score}/{total}",
            percentage=round(percentage, 1),
            scaled=scaled_score,
            degraded=record.degraded,
            ledger_updated=progress is not None,
        )

        return SubmissionResult(
            record=record,
            progress=progress,
            next_tier_unlocked=next_tier_unlocked,
            message=(
                f"Scaled score: {scaled_score} ({percentage:.0f}%) - "
                f"{'Passed' if passed else 'Not passed'}"
            ),
            warnings=warnings,
            grading_degraded=record.degraded,
        )
