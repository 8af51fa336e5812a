"""API router composition for the backend.

The module assembles individual route groups into a single `api_router` that can be mounted on the app.
"""

from fastapi import APIRouter

from jobfilter.api.routes import feedback_router, jobs_router, preferences_router

api_router = APIRouter()
api_router.include_router(feedback_router)
api_router.include_router(jobs_router)
api_router.include_router(preferences_router)

__all__ = ["api_router"]
