"""Domain types for the progression engine.

Tiers and categories are closed enums. Values coming from the outside
(URLs, question tags, stored rows) go through parse_tier / parse_category,
which never raise: unknown tiers resolve to MEDIUM and unknown categories to
READING_WRITING.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# =============================================================================
# ENUMS
# =============================================================================


class SubjectCategory(str, Enum):
    """Subject a course (or a question section) belongs to."""

    MATH = "math"
    READING_WRITING = "reading_writing"


class DifficultyTier(str, Enum):
    """Difficulty tier, ordered EASY < MEDIUM < HARD."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def rank(self) -> int:
        return ORDERED_TIERS.index(self)

    @property
    def prerequisite(self) -> DifficultyTier | None:
        """Tier that must be passed before this one unlocks."""
        if self.rank == 0:
            return None
        return ORDERED_TIERS[self.rank - 1]

    @property
    def next_tier(self) -> DifficultyTier | None:
        if self.rank == len(ORDERED_TIERS) - 1:
            return None
        return ORDERED_TIERS[self.rank + 1]

    @property
    def label(self) -> str:
        return self.value.capitalize()


ORDERED_TIERS: tuple[DifficultyTier, ...] = (
    DifficultyTier.EASY,
    DifficultyTier.MEDIUM,
    DifficultyTier.HARD,
)

_CATEGORY_ALIASES = {
    "math": SubjectCategory.MATH,
    "maths": SubjectCategory.MATH,
    "quant": SubjectCategory.MATH,
    "quantitative": SubjectCategory.MATH,
    "reading_writing": SubjectCategory.READING_WRITING,
    "reading-writing": SubjectCategory.READING_WRITING,
    "reading and writing": SubjectCategory.READING_WRITING,
    "rw": SubjectCategory.READING_WRITING,
    "reading": SubjectCategory.READING_WRITING,
    "writing": SubjectCategory.READING_WRITING,
    "english": SubjectCategory.READING_WRITING,
}


def parse_tier(value: Any) -> DifficultyTier:
    """Resolve a tier from an enum, name or value. Unknown -> MEDIUM."""
    tier = try_parse_tier(value)
    return tier if tier is not None else DifficultyTier.MEDIUM


def try_parse_tier(value: Any) -> DifficultyTier | None:
    """Resolve a tier, or None if the value is not a known tier."""
    if isinstance(value, DifficultyTier):
        return value
    if isinstance(value, str):
        stripped = value.strip().lower()
        for tier in ORDERED_TIERS:
            if stripped == tier.value:
                return tier
    return None


def try_parse_category(value: Any) -> SubjectCategory | None:
    """Resolve a category or section tag, or None if unrecognised."""
    if isinstance(value, SubjectCategory):
        return value
    if isinstance(value, str):
        return _CATEGORY_ALIASES.get(value.strip().lower())
    return None


def parse_category(value: Any) -> SubjectCategory:
    """Resolve a category. Unknown -> READING_WRITING."""
    category = try_parse_category(value)
    return category if category is not None else SubjectCategory.READING_WRITING


def infer_course_category(tutor_type: str | None, name: str | None) -> SubjectCategory:
    """Infer a course's category from its tutor type and display name.

    Used when a course has no explicit category. Math wins over
    reading/writing when both match.
    """
    course_type = (tutor_type or "").lower()
    course_name = (name or "").lower()

    if (
        "math" in course_type
        or "quant" in course_type
        or "math" in course_name
        or "algebra" in course_name
    ):
        return SubjectCategory.MATH
    if "reading" in course_type or "writing" in course_type or "english" in course_name:
        return SubjectCategory.READING_WRITING
    return SubjectCategory.READING_WRITING


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class Question:
    """A quiz question as served by the question repository."""

    question_id: str
    prompt: str
    correct_answer: str
    options: list[str] | None = None
    explanation: str | None = None
    section: str | None = None
    type: str = "multiple_choice"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        answer = data.get("correct_answer")
        return cls(
            question_id=str(data.get("question_id", data.get("id", ""))),
            prompt=data.get("prompt", data.get("question", "")),
            correct_answer="" if answer is None else str(answer),
            options=data.get("options"),
            explanation=data.get("explanation"),
            section=data.get("section"),
            type=data.get("type", "multiple_choice"),
        )


@dataclass(frozen=True)
class ProgressRecord:
    """Best-known result for one (student, course, tier)."""

    student_id: str
    course_id: str
    tier: DifficultyTier
    best_percentage: float
    best_scaled: int
    passed: bool
    updated_at: str

    @property
    def key(self) -> tuple[str, str, DifficultyTier]:
        return (self.student_id, self.course_id, self.tier)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "student_id": self.student_id,
            "course_id": self.course_id,
            "tier": self.tier.value,
            "best_percentage": self.best_percentage,
            "best_scaled": self.best_scaled,
            "passed": self.passed,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class SectionScore:
    """Correct/total and scaled score for one subject section of an attempt."""

    correct: int
    total: int
    percentage: float
    scaled: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "correct": self.correct,
            "total": self.total,
            "percentage": self.percentage,
            "scaled": self.scaled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SectionScore:
        return cls(
            correct=int(data["correct"]),
            total=int(data["total"]),
            percentage=float(data["percentage"]),
            scaled=int(data["scaled"]),
        )


@dataclass(frozen=True)
class QuestionResponse:
    """What the student answered for one question, and whether it was right."""

    question_id: str
    given_answer: str
    is_correct: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "given_answer": self.given_answer,
            "is_correct": self.is_correct,
        }


@dataclass(frozen=True)
class SubmissionRecord:
    """Immutable audit entry for one graded attempt."""

    submission_id: str
    student_id: str
    course_id: str
    tier: DifficultyTier
    raw_score: int
    total_questions: int
    percentage: float
    scaled_score: int
    sections: dict[SubjectCategory, SectionScore]
    duration_seconds: int | None
    submitted_at: str
    responses: tuple[QuestionResponse, ...] = ()
    degraded: bool = False

    @property
    def incorrect_question_ids(self) -> list[str]:
        return [r.question_id for r in self.responses if not r.is_correct]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "submission_id": self.submission_id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "tier": self.tier.value,
            "raw_score": self.raw_score,
            "total_questions": self.total_questions,
            "percentage": self.percentage,
            "scaled_score": self.scaled_score,
            "sections": {c.value: s.to_dict() for c, s in self.sections.items()},
            "duration_seconds": self.duration_seconds,
            "submitted_at": self.submitted_at,
            "responses": [r.to_dict() for r in self.responses],
            "degraded": self.degraded,
        }


@dataclass(frozen=True)
class DiagnosticBaseline:
    """Student-supplied starting point. Floors the aggregator's scores."""

    math_score: int = 400
    rw_score: int = 400
    target_score: int = 1500

    @classmethod
    def from_raw(
        cls,
        data: dict[str, Any] | None,
        defaults: DiagnosticBaseline | None = None,
    ) -> DiagnosticBaseline:
        """Build from loosely typed input.

        Missing, zero or non-numeric fields fall back to the defaults.
        """
        defaults = defaults or cls()
        if not data:
            return defaults
        return cls(
            math_score=_int_or_default(data.get("math_score"), defaults.math_score),
            rw_score=_int_or_default(data.get("rw_score"), defaults.rw_score),
            target_score=_int_or_default(data.get("target_score"), defaults.target_score),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "math_score": self.math_score,
            "rw_score": self.rw_score,
            "target_score": self.target_score,
        }


def _int_or_default(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = int(float(value))
    except (TypeError, ValueError):
        return default
    return parsed or default


@dataclass(frozen=True)
class ScoreSummary:
    """Section totals and gap to target for a student."""

    math_score: int
    rw_score: int
    total: int
    target: int
    gap: int
    math_improvement: int = 0
    rw_improvement: int = 0
    is_math_maxed: bool = False
    is_rw_maxed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "math_score": self.math_score,
            "rw_score": self.rw_score,
            "total": self.total,
            "target": self.target,
            "gap": self.gap,
            "math_improvement": self.math_improvement,
            "rw_improvement": self.rw_improvement,
            "is_math_maxed": self.is_math_maxed,
            "is_rw_maxed": self.is_rw_maxed,
        }


@dataclass
class LevelStatus:
    """Unlock and pass state of one tier for a student in a course."""

    tier: DifficultyTier
    unlocked: bool
    passed: bool = False
    best_percentage: float | None = None
    best_scaled: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": self.tier.value,
            "unlocked": self.unlocked,
            "passed": self.passed,
            "best_percentage": self.best_percentage,
            "best_scaled": self.best_scaled,
        }


@dataclass
class SubmissionResult:
    """Result of a submit call.

    ``record`` is always present. ``progress`` and ``next_tier_unlocked`` are
    None when the ledger update failed, so callers never show an unconfirmed
    unlock.
    """

    record: SubmissionRecord
    progress: ProgressRecord | None
    next_tier_unlocked: bool | None
    message: str
    warnings: list[str] = field(default_factory=list)
    grading_degraded: bool = False

    @property
    def ledger_updated(self) -> bool:
        return self.progress is not None
