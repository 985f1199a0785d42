"""API Routes for PracticeBase."""

from .data_router import router as data_router
from .users_router import router as users_router

__all__ = [
    "data_router",
    "users_router",
]
