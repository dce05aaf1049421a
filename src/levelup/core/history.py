"""Submission history, review and section analysis.

Read-only views over the submission audit trail for review and report
screens. Nothing here touches the ledger.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from levelup.core.models import Question, SubjectCategory, SubmissionRecord


@dataclass
class TrendPoint:
    """One attempt on a performance trend line."""

    date: str
    percentage: float
    scaled: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "percentage": self.percentage, "scaled": self.scaled}


@dataclass
class SectionTrend:
    """Aggregate performance of one section over a series of attempts."""

    attempts: int = 0
    average_percentage: float = 0.0
    average_scaled: float = 0.0
    best_percentage: float = 0.0
    improvement: float = 0.0
    trend: list[TrendPoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempts": self.attempts,
            "average_percentage": self.average_percentage,
            "average_scaled": self.average_scaled,
            "best_percentage": self.best_percentage,
            "improvement": self.improvement,
            "trend": [p.to_dict() for p in self.trend],
        }


@dataclass
class SectionAnalysis:
    """Per-section and overall trends for a student's course history."""

    sections: dict[SubjectCategory, SectionTrend]
    overall: SectionTrend

    def to_dict(self) -> dict[str, Any]:
        return {
            "sections": {c.value: t.to_dict() for c, t in self.sections.items()},
            "overall": self.overall.to_dict(),
        }


@dataclass
class IncorrectResponse:
    """A wrongly answered question, with what the student should have said."""

    question_id: str
    given_answer: str
    question_text: str | None
    correct_answer: str | None
    explanation: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "given_answer": self.given_answer,
            "question_text": self.question_text,
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
        }


@dataclass
class SubmissionReview:
    """A submission plus the detail of every incorrect answer."""

    submission: SubmissionRecord
    incorrect_responses: list[IncorrectResponse]

    def to_dict(self) -> dict[str, Any]:
        return {
            "submission": self.submission.to_dict(),
            "incorrect_responses": [r.to_dict() for r in self.incorrect_responses],
        }


def _build_trend(points: list[TrendPoint]) -> SectionTrend:
    """Averages, best and first-to-latest improvement of a trend line."""
    if not points:
        return SectionTrend()

    attempts = len(points)
    return SectionTrend(
        attempts=attempts,
        average_percentage=sum(p.percentage for p in points) / attempts,
        average_scaled=sum(p.scaled for p in points) / attempts,
        best_percentage=max(p.percentage for p in points),
        improvement=points[-1].percentage - points[0].percentage if attempts >= 2 else 0.0,
        trend=points,
    )


def section_analysis(submissions: Iterable[SubmissionRecord]) -> SectionAnalysis:
    """Analyse a student's submissions for a course.

    Args:
        submissions: Submissions in any order; they are sorted oldest first

    Returns:
        SectionAnalysis with one trend per section seen and an overall trend
    """
    ordered = sorted(submissions, key=lambda s: s.submitted_at)

    section_points: dict[SubjectCategory, list[TrendPoint]] = {}
    overall_points: list[TrendPoint] = []

    for submission in ordered:
        for category, score in submission.sections.items():
            if score.total <= 0:
                continue
            section_points.setdefault(category, []).append(
                TrendPoint(
                    date=submission.submitted_at,
                    percentage=score.percentage,
                    scaled=score.scaled,
                )
            )
        overall_points.append(
            TrendPoint(
                date=submission.submitted_at,
                percentage=submission.percentage,
                scaled=submission.scaled_score,
            )
        )

    return SectionAnalysis(
        sections={
            category: _build_trend(points)
            for category, points in sorted(section_points.items(), key=lambda kv: kv[0].value)
        },
        overall=_build_trend(overall_points),
    )


def build_review(
    submission: SubmissionRecord,
    questions_by_ids: Callable[[list[str]], list[Question | None]],
) -> SubmissionReview:
    """Attach question text, answer key and explanation to wrong answers."""
    wrong = [r for r in submission.responses if not r.is_correct]
    questions = questions_by_ids([r.question_id for r in wrong]) if wrong else []

    incorrect: list[IncorrectResponse] = []
    for response, question in zip(wrong, questions):
        incorrect.append(
            IncorrectResponse(
                question_id=response.question_id,
                given_answer=response.given_answer,
                question_text=question.prompt if question else None,
                correct_answer=question.correct_answer if question else None,
                explanation=question.explanation if question else None,
            )
        )

    return SubmissionReview(submission=submission, incorrect_responses=incorrect)
