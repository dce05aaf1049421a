"""Progress endpoints: ledger records, unlock state and score summary."""

from fastapi import APIRouter, HTTPException, status

from levelup.core.models import try_parse_tier
from levelup.web.engine_provider import get_engine
from levelup.web.schemas import (
    CourseProgressResponse,
    LevelStatusResponse,
    ProgressResponse,
    ScoreSummaryResponse,
    UnlockResponse,
)

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.get("/{student_id}/summary", response_model=ScoreSummaryResponse)
async def get_summary(student_id: str, course_id: str | None = None) -> ScoreSummaryResponse:
    """Section scores and total, over one course or all of them."""
    summary = get_engine().summarize(student_id, course_id)
    return ScoreSummaryResponse.model_validate(summary.to_dict())


@router.get("/{student_id}/{course_id}", response_model=CourseProgressResponse)
async def get_course_progress(student_id: str, course_id: str) -> CourseProgressResponse:
    """Best result per tier and which tiers are open."""
    engine = get_engine()
    records = engine.get_progress(student_id, course_id)
    levels = engine.level_states(student_id, course_id)

    return CourseProgressResponse(
        student_id=student_id,
        course_id=course_id,
        records=[ProgressResponse.model_validate(r.to_dict()) for r in records],
        levels=[LevelStatusResponse.model_validate(s.to_dict()) for s in levels],
        completed=all(s.passed for s in levels),
    )


@router.get("/{student_id}/{course_id}/unlocked/{level}", response_model=UnlockResponse)
async def get_unlocked(student_id: str, course_id: str, level: str) -> UnlockResponse:
    """Whether a tier is open for the student."""
    tier = try_parse_tier(level)
    if tier is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown level '{level}'",
        )

    return UnlockResponse(
        student_id=student_id,
        course_id=course_id,
        tier=tier.value,
        unlocked=get_engine().is_unlocked(student_id, course_id, tier),
    )
