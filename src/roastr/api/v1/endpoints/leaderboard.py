"""Leaderboard endpoint for the Roastr API."""

from typing import Annotated

from fastapi import APIRouter, Query

from roastr.api.v1.dependencies import SessionDep
from roastr.schemas.leaderboard import LeaderboardEntryResponse
from roastr.services.leaderboard import LeaderboardService

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/", response_model=list[LeaderboardEntryResponse])
async def get_leaderboard(
    db: SessionDep,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> list[LeaderboardEntryResponse]:
    """Top users by score, recomputed from current posts and votes."""
    entries = LeaderboardService(db).leaderboard(limit=limit)
    return [
        LeaderboardEntryResponse(
            rank=rank,
            user_id=entry.user_id,
            username=entry.username,
            total_posts=entry.total_posts,
            total_upvotes=entry.total_upvotes,
            score=entry.score,
        )
        for rank, entry in enumerate(entries, start=1)
    ]
