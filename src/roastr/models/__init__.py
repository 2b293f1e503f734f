# src/roastr/models/__init__.py
"""SQLAlchemy models for the Roastr application."""

from .post import Post, PostEdit, PostStatus, post_tag
from .quota import AnonymousQuota
from .report import Report
from .saved import SavedPost
from .tag import Tag
from .user import UserProfile, UserRole
from .vote import PostVote, VoteType

__all__ = [
    "AnonymousQuota",
    "Post", "PostEdit", "PostStatus", "post_tag",
    "PostVote", "VoteType",
    "Report",
    "SavedPost",
    "Tag",
    "UserProfile", "UserRole",
]
