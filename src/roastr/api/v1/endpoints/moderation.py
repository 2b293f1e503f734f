"""Moderation-related endpoints for the Roastr API."""

from __future__ import annotations

from fastapi import APIRouter

from roastr.api.v1.dependencies import ClockDep, CurrentUserDep, SessionDep
from roastr.schemas.moderation import QueueEntryResponse
from roastr.schemas.post import PostResponse
from roastr.services.moderation import ModerationService

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.get("/queue", response_model=list[QueueEntryResponse])
async def get_moderation_queue(db: SessionDep, current_user: CurrentUserDep) -> list[QueueEntryResponse]:
    """Reported and hidden posts awaiting review, newest first."""
    entries = ModerationService(db).queue(current_user)
    return [
        QueueEntryResponse(post=PostResponse.from_post(entry.post), report_count=entry.report_count)
        for entry in entries
    ]


@router.post("/posts/{post_id}/hide", response_model=PostResponse)
async def hide_post(
    post_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
    clock: ClockDep,
) -> PostResponse:
    """Hide a post by moderator decision."""
    post = ModerationService(db, clock).hide(post_id, current_user)
    return PostResponse.from_post(post)


@router.post("/posts/{post_id}/restore", response_model=PostResponse)
async def restore_post(
    post_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
    clock: ClockDep,
) -> PostResponse:
    """Make a hidden post visible again and clear its reports."""
    post = ModerationService(db, clock).restore(post_id, current_user)
    return PostResponse.from_post(post)
