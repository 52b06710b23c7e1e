"""API routes."""

from .challenges import router as challenges_router
from .session import router as session_router
from .progress import router as progress_router

__all__ = ["challenges_router", "session_router", "progress_router"]
