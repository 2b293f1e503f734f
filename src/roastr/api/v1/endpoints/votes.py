# src/roastr/api/v1/endpoints/votes.py
"""Vote-related endpoints for the Roastr API."""

from fastapi import APIRouter, status

from roastr.api.v1.dependencies import CallerDep, ClockDep, CurrentUserDep, SessionDep
from roastr.repositories.post_repo import PostRepository
from roastr.schemas.vote import VoteCountsResponse, VoteCreate
from roastr.services.votes import VoteLedger

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/", response_model=VoteCountsResponse, status_code=status.HTTP_200_OK)
async def cast_vote(
    vote_data: VoteCreate,
    db: SessionDep,
    caller: CallerDep,
    clock: ClockDep,
) -> VoteCountsResponse:
    """Cast, switch or retract a vote and return the post's new tallies."""
    counts = VoteLedger(db, clock).vote(vote_data.post_id, caller.user_id, vote_data.vote_type)
    return VoteCountsResponse(
        post_id=counts.post_id,
        upvotes=counts.upvotes,
        downvotes=counts.downvotes,
        user_vote=counts.user_vote,
    )


@router.get("/{post_id}/my-vote", response_model=VoteCountsResponse)
async def get_my_vote(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> VoteCountsResponse:
    """Return the post's tallies and the caller's current vote."""
    PostRepository(db).get_or_404(post_id)
    counts = VoteLedger(db).counts(post_id, current_user.id)
    return VoteCountsResponse(
        post_id=counts.post_id,
        upvotes=counts.upvotes,
        downvotes=counts.downvotes,
        user_vote=counts.user_vote,
    )
