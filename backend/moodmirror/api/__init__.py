"""API module."""

from .auth import router as auth_router
from .profile import router as profile_router
from .mood import router as mood_router
from .reports import router as reports_router
from .messages import router as messages_router

__all__ = ['auth_router', 'profile_router', 'mood_router', 'reports_router', 'messages_router']
