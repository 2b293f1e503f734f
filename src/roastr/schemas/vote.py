# src/roastr/schemas/vote.py
"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field

from roastr.models import VoteType


class VoteCreate(BaseModel):
    """Schema for casting, switching or retracting a vote."""

    post_id: int
    vote_type: VoteType = Field(..., description="upvote or downvote; repeating a vote retracts it")


class VoteCountsResponse(BaseModel):
    """Tallies for a post after a vote, plus the caller's resulting vote."""

    post_id: int
    upvotes: int
    downvotes: int
    user_vote: VoteType | None = None
