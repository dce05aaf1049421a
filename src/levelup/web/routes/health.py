"""Health check and scale endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter

from levelup import __version__
from levelup.web.engine_provider import get_engine
from levelup.web.schemas import HealthResponse, ScalesResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/api/scales", response_model=ScalesResponse)
async def get_scales() -> ScalesResponse:
    """Configured scaled-score bands per category and tier."""
    scoring = get_engine().config.scoring
    return ScalesResponse(
        pass_threshold=scoring.pass_threshold,
        section_max=scoring.section_max,
        total_max=scoring.total_max,
        ranges={
            category: {tier: band.to_dict() for tier, band in tiers.items()}
            for category, tiers in scoring.ranges.items()
        },
    )
