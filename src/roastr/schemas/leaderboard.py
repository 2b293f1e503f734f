"""Leaderboard schemas."""

from pydantic import BaseModel, ConfigDict


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: int
    username: str
    total_posts: int
    total_upvotes: int
    score: int

    model_config = ConfigDict(from_attributes=True)
