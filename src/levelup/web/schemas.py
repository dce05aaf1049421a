"""Pydantic schemas for the Web API.

Serialization models for submissions, progress, level states and score
summaries.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str
    version: str
    timestamp: str


# =============================================================================
# GRADING SCHEMAS
# =============================================================================


class SubmitTestRequest(BaseModel):
    """Request body for submitting a quiz."""

    student_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    level: str = Field(..., min_length=1)
    question_ids: list[str]
    answers: list[str | None]
    duration_seconds: int | None = Field(default=None, ge=0)


class SectionScoreResponse(BaseModel):
    """Score of one subject section of an attempt."""

    correct: int
    total: int
    percentage: float
    scaled: int


class QuestionResponseSchema(BaseModel):
    """One graded answer."""

    question_id: str
    given_answer: str
    is_correct: bool


class SubmissionResponse(BaseModel):
    """A stored submission record."""

    submission_id: str
    student_id: str
    course_id: str
    tier: str
    raw_score: int
    total_questions: int
    percentage: float
    scaled_score: int
    sections: dict[str, SectionScoreResponse]
    duration_seconds: int | None = None
    submitted_at: str
    responses: list[QuestionResponseSchema] = []
    degraded: bool = False


class ProgressResponse(BaseModel):
    """Best result for one tier."""

    student_id: str
    course_id: str
    tier: str
    best_percentage: float
    best_scaled: int
    passed: bool
    updated_at: str


class SubmitTestResponse(BaseModel):
    """Result of a quiz submission."""

    submission: SubmissionResponse
    progress: ProgressResponse | None = None
    next_tier_unlocked: bool | None = None
    ledger_updated: bool
    grading_degraded: bool
    message: str
    warnings: list[str] = []


class SubmissionListResponse(BaseModel):
    """Submission history, newest first."""

    submissions: list[SubmissionResponse]
    count: int


class IncorrectResponseSchema(BaseModel):
    """A wrong answer with the expected one."""

    question_id: str
    given_answer: str
    question_text: str | None = None
    correct_answer: str | None = None
    explanation: str | None = None


class SubmissionReviewResponse(BaseModel):
    """A submission with its incorrect answers."""

    submission: SubmissionResponse
    incorrect_responses: list[IncorrectResponseSchema]


class TrendPointSchema(BaseModel):
    date: str
    percentage: float
    scaled: int


class SectionTrendResponse(BaseModel):
    attempts: int
    average_percentage: float
    average_scaled: float
    best_percentage: float
    improvement: float
    trend: list[TrendPointSchema]


class SectionAnalysisResponse(BaseModel):
    """Per-section and overall performance over a course's history."""

    sections: dict[str, SectionTrendResponse]
    overall: SectionTrendResponse


# =============================================================================
# PROGRESS SCHEMAS
# =============================================================================


class LevelStatusResponse(BaseModel):
    """Unlock/pass state of a tier."""

    tier: str
    unlocked: bool
    passed: bool
    best_percentage: float | None = None
    best_scaled: int | None = None


class CourseProgressResponse(BaseModel):
    """Ledger records and level states for one course."""

    student_id: str
    course_id: str
    records: list[ProgressResponse]
    levels: list[LevelStatusResponse]
    completed: bool


class UnlockResponse(BaseModel):
    student_id: str
    course_id: str
    tier: str
    unlocked: bool


class ScoreSummaryResponse(BaseModel):
    """Section scores, total and gap to target."""

    math_score: int
    rw_score: int
    total: int
    target: int
    gap: int
    math_improvement: int
    rw_improvement: int
    is_math_maxed: bool
    is_rw_maxed: bool


class TierRangeSchema(BaseModel):
    min: int
    max: int


class ScalesResponse(BaseModel):
    """Configured scaled-score bands."""

    pass_threshold: float
    section_max: int
    total_max: int
    ranges: dict[str, dict[str, TierRangeSchema]]
