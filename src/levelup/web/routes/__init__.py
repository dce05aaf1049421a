"""Route handlers for Web API."""

from levelup.web.routes.health import router as health_router
from levelup.web.routes.grading import router as grading_router
from levelup.web.routes.progress import router as progress_router

__all__ = [
    "health_router",
    "grading_router",
    "progress_router",
]
