# src/roastr/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .leaderboard import router as leaderboard_router
from .moderation import router as moderation_router
from .posts import router as posts_router
from .tags import router as tags_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "leaderboard_router",
    "moderation_router",
    "posts_router",
    "tags_router",
    "users_router",
    "votes_router",
]
