"""Version 1 API endpoints."""

from .endpoints import (
    assistant_router,
    comments_router,
    moderation_router,
    posts_router,
    users_router,
)

__all__ = [
    "assistant_router",
    "comments_router",
    "moderation_router",
    "posts_router",
    "users_router",
]
