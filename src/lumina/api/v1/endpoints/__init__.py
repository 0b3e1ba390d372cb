"""API endpoint modules for version 1."""

from .assistant import router as assistant_router
from .comments import router as comments_router
from .moderation import router as moderation_router
from .posts import router as posts_router
from .users import router as users_router

__all__ = [
    "assistant_router",
    "comments_router",
    "moderation_router",
    "posts_router",
    "users_router",
]
