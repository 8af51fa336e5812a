"""Route exports for the API layer.

Re-exports the feedback, job filter and preference routers.
"""

from .feedback import router as feedback_router
from .jobs import router as jobs_router
from .preferences import router as preferences_router

__all__ = ["feedback_router", "jobs_router", "preferences_router"]
