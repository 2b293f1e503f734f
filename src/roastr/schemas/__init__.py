# src/roastr/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .leaderboard import LeaderboardEntryResponse
from .moderation import QueueEntryResponse, ReportResponse
from .post import EditHistoryEntry, PostCreate, PostEditRequest, PostResponse, SaveResponse
from .tag import TagCreate, TagResponse
from .user import (
    ProfileUpdateRequest,
    RoleUpdate,
    UserProfileResponse,
    UserResponse,
    UserStatsResponse,
)
from .vote import VoteCountsResponse, VoteCreate

__all__ = [
    "EditHistoryEntry", "PostCreate", "PostEditRequest", "PostResponse", "SaveResponse",
    "LeaderboardEntryResponse",
    "ProfileUpdateRequest", "RoleUpdate",
    "QueueEntryResponse", "ReportResponse",
    "TagCreate", "TagResponse",
    "UserProfileResponse", "UserResponse", "UserStatsResponse",
    "VoteCountsResponse", "VoteCreate",
]
