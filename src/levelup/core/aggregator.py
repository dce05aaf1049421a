"""Score aggregation across ledger records.

Turns a student's best per-tier results into Math and Reading/Writing
section scores and a total. Scaled values are recomputed from the stored
best percentage so that changes to the configured bands apply to old
records too. Submission history is never read here.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from levelup.config.app_config import AppConfig, load_app_config
from levelup.core.ledger import BestScoreLedger
from levelup.core.models import (
    DiagnosticBaseline,
    ProgressRecord,
    ScoreSummary,
    SubjectCategory,
)
from levelup.core.score_mapper import map_score

logger = structlog.get_logger(__name__)


def _category_or_default(
    category_of: Callable[[str], SubjectCategory], course_id: str
) -> SubjectCategory:
    try:
        return category_of(course_id)
    except Exception as e:
        logger.warning("course_category_unavailable", course_id=course_id, error=str(e))
        return SubjectCategory.READING_WRITING


def best_scaled_by_category(
    records: Iterable[ProgressRecord],
    category_of: Callable[[str], SubjectCategory],
    config: AppConfig,
) -> dict[SubjectCategory, int]:
    """Highest recomputed scaled score per category among the records."""
    best: dict[SubjectCategory, int] = {}
    categories: dict[str, SubjectCategory] = {}
    for record in records:
        if record.course_id not in categories:
            categories[record.course_id] = _category_or_default(category_of, record.course_id)
        category = categories[record.course_id]
        scaled = map_score(record.best_percentage, record.tier, category, config.scoring)
        if scaled > best.get(category, -1):
            best[category] = scaled
    return best


def summarize_records(
    records: Iterable[ProgressRecord],
    category_of: Callable[[str], SubjectCategory],
    baseline: DiagnosticBaseline | None = None,
    config: AppConfig | None = None,
) -> ScoreSummary:
    """Combine ledger records into section scores, total and gap.

    The baseline is a floor for each section, never a ceiling. Sections are
    capped at ``section_max`` and the total at ``total_max``.
    """
    config = config or load_app_config()
    defaults = config.baseline
    baseline = baseline or DiagnosticBaseline(
        math_score=defaults.math_score,
        rw_score=defaults.rw_score,
        target_score=defaults.target_score,
    )
    section_max = config.scoring.section_max

    best = best_scaled_by_category(records, category_of, config)

    math_score = min(section_max, max(baseline.math_score, best.get(SubjectCategory.MATH, 0)))
    rw_score = min(
        section_max, max(baseline.rw_score, best.get(SubjectCategory.READING_WRITING, 0))
    )
    total = min(config.scoring.total_max, math_score + rw_score)

    return ScoreSummary(
        math_score=math_score,
        rw_score=rw_score,
        total=total,
        target=baseline.target_score,
        gap=max(0, baseline.target_score - total),
        math_improvement=max(0, math_score - baseline.math_score),
        rw_improvement=max(0, rw_score - baseline.rw_score),
        is_math_maxed=math_score >= section_max,
        is_rw_maxed=rw_score >= section_max,
    )


class ScoreAggregator:
    """Summaries over one ledger."""

    def __init__(
        self,
        ledger: BestScoreLedger,
        category_of: Callable[[str], SubjectCategory],
        config: AppConfig | None = None,
    ):
        self.ledger = ledger
        self.category_of = category_of
        self.config = config or load_app_config()

    def summarize(
        self,
        student_id: str,
        course_id: str | None = None,
        baseline: DiagnosticBaseline | None = None,
    ) -> ScoreSummary:
        """Summarize one course, or every course when ``course_id`` is None."""
        if course_id is None:
            records = self.ledger.all_progress(student_id)
        else:
            records = self.ledger.get_progress(student_id, course_id)

        summary = summarize_records(records, self.category_of, baseline, self.config)

        logger.debug(
            "scores_summarized",
            student_id=student_id,
            course_id=course_id,
            records=len(records),
            total=summary.total,
        )
        return summary
