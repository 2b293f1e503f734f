# src/roastr/services/__init__.py
"""Business logic services for the Roastr application."""

from .feed import FeedService, SortMode, TimeWindow, compose_feed
from .history import EditHistoryTracker
from .leaderboard import LeaderboardService, compute_leaderboard, compute_user_stats
from .moderation import ModerationService
from .posts import PostService
from .rate_limit import AnonymousRateLimiter
from .reports import ReportLedger
from .saved import SavedPostService
from .tags import TagService
from .votes import VoteLedger

__all__ = [
    "AnonymousRateLimiter",
    "EditHistoryTracker",
    "FeedService",
    "LeaderboardService",
    "ModerationService",
    "PostService",
    "ReportLedger",
    "SavedPostService",
    "SortMode",
    "TagService",
    "TimeWindow",
    "VoteLedger",
    "compose_feed",
    "compute_leaderboard",
    "compute_user_stats",
]
