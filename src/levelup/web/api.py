"""FastAPI application factory.

Serves grading, progress and scale endpoints over one shared
ProgressionEngine (see engine_provider).
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from levelup import __version__
from levelup.config.app_config import resolve_db_path
from levelup.web.engine_provider import get_engine
from levelup.web.routes import grading_router, health_router, progress_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the engine (and its database) before the first request."""
    engine = get_engine()
    scoring = engine.config.scoring
    logger.info(
        "api_startup",
        db_path=str(resolve_db_path(engine.config)),
        pass_threshold=scoring.pass_threshold,
        categories=sorted(scoring.ranges),
    )
    yield


def create_app(allowed_origins: list[str] | None = None) -> FastAPI:
    """Build the API.

    Args:
        allowed_origins: CORS origins; every origin when None

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="LevelUp API",
        description="Adaptive difficulty scoring and tier progression",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    for router in (health_router, grading_router, progress_router):
        app.include_router(router)

    return app


# Default app instance for uvicorn
app = create_app()
