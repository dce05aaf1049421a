"""Grading endpoints: submit, review, history and section analysis."""

from fastapi import APIRouter, HTTPException, status

from levelup.core.engine import ProgressionEngine
from levelup.core.errors import (
    InvalidSubmissionError,
    SubmissionNotFoundError,
    SubmissionPersistenceError,
)
from levelup.web.engine_provider import get_engine
from levelup.web.schemas import (
    ProgressResponse,
    SectionAnalysisResponse,
    SubmissionListResponse,
    SubmissionResponse,
    SubmissionReviewResponse,
    SubmitTestRequest,
    SubmitTestResponse,
)

router = APIRouter(prefix="/api/grading", tags=["grading"])


def _get_engine() -> ProgressionEngine:
    return get_engine()


# Plain def: runs in the worker pool, so a client disconnect cannot stop it
# between saving the submission and updating the ledger.
@router.post("/submit", response_model=SubmitTestResponse)
def submit_test(body: SubmitTestRequest) -> SubmitTestResponse:
    """Grade a quiz attempt and record it."""
    engine = _get_engine()

    try:
        result = engine.submit_by_question_ids(
            student_id=body.student_id,
            course_id=body.course_id,
            tier=body.level,
            question_ids=body.question_ids,
            answers=[a or "" for a in body.answers],
            duration_seconds=body.duration_seconds,
        )
    except InvalidSubmissionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SubmissionPersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return SubmitTestResponse(
        submission=SubmissionResponse.model_validate(result.record.to_dict()),
        progress=(
            ProgressResponse.model_validate(result.progress.to_dict())
            if result.progress
            else None
        ),
        next_tier_unlocked=result.next_tier_unlocked,
        ledger_updated=result.ledger_updated,
        grading_degraded=result.grading_degraded,
        message=result.message,
        warnings=result.warnings,
    )


@router.get("/submissions/{submission_id}", response_model=SubmissionReviewResponse)
def get_submission(submission_id: str) -> SubmissionReviewResponse:
    """Get a submission with its incorrect answers."""
    engine = _get_engine()

    try:
        review = engine.get_submission_review(submission_id)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return SubmissionReviewResponse.model_validate(review.to_dict())


@router.get("/scores/{student_id}/{course_id}", response_model=SubmissionListResponse)
def list_scores(student_id: str, course_id: str) -> SubmissionListResponse:
    """Submission history for a course, newest first."""
    submissions = _get_engine().list_submissions(student_id, course_id)
    return SubmissionListResponse(
        submissions=[SubmissionResponse.model_validate(s.to_dict()) for s in submissions],
        count=len(submissions),
    )


@router.get(
    "/section-analysis/{student_id}/{course_id}",
    response_model=SectionAnalysisResponse,
)
def get_section_analysis(student_id: str, course_id: str) -> SectionAnalysisResponse:
    """Per-section averages, bests and trends for a course."""
    analysis = _get_engine().section_analysis(student_id, course_id)
    return SectionAnalysisResponse.model_validate(analysis.to_dict())
