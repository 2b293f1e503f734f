# src/roastr/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    leaderboard_router,
    moderation_router,
    posts_router,
    tags_router,
    users_router,
    votes_router,
)

__all__ = [
    "leaderboard_router",
    "moderation_router",
    "posts_router",
    "tags_router",
    "users_router",
    "votes_router",
]
