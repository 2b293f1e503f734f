# src/roastr/api/v1/endpoints/posts.py
"""Post-related endpoints for the Roastr API."""

from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.orm import Session

from roastr.api.v1.dependencies import CallerDep, ClockDep, CurrentUserDep, SessionDep
from roastr.models import Post, UserProfile
from roastr.schemas.moderation import ReportResponse
from roastr.schemas.post import (
    EditHistoryEntry,
    PostCreate,
    PostEditRequest,
    PostResponse,
    SaveResponse,
)
from roastr.services.feed import FeedService, SortMode, TimeWindow
from roastr.services.history import EditHistoryTracker
from roastr.services.moderation import ModerationService
from roastr.services.posts import PostService
from roastr.services.saved import SavedPostService
from roastr.services.votes import VoteLedger

router = APIRouter(prefix="/posts", tags=["posts"])


def annotate_posts(
    db: Session,
    posts: Sequence[Post],
    viewer: UserProfile | None,
) -> list[PostResponse]:
    """Render posts with the viewer's vote and saved flag."""
    if viewer is None:
        return [PostResponse.from_post(post) for post in posts]
    ids = [post.id for post in posts]
    votes = VoteLedger(db).user_votes(viewer.id, ids)
    saved = SavedPostService(db).saved_ids(viewer.id, ids)
    return [
        PostResponse.from_post(post, user_vote=votes.get(post.id), is_saved=post.id in saved)
        for post in posts
    ]


@router.get("/", response_model=list[PostResponse])
async def list_posts(
    db: SessionDep,
    caller: CallerDep,
    clock: ClockDep,
    tags: Annotated[list[int], Query(description="Tag ids; a post matches any of them")] = [],  # noqa: B006
    window: Annotated[TimeWindow, Query(description="Trailing time window")] = TimeWindow.ALL,
    sort: Annotated[SortMode, Query(description="Ordering of the feed")] = SortMode.NEWEST,
    show_nsfw: bool = False,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[PostResponse]:
    """Return the visible feed, filtered and sorted."""
    posts = FeedService(db, clock).feed(
        tag_ids=tags,
        time_window=window,
        sort_mode=sort,
        show_nsfw=show_nsfw,
        limit=limit,
        offset=offset,
    )
    return annotate_posts(db, posts, caller.user)


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    db: SessionDep,
    caller: CallerDep,
    clock: ClockDep,
) -> PostResponse:
    """Publish a post, attributed or anonymous."""
    post = PostService(db, clock).create_post(
        title=post_data.title,
        content=post_data.content,
        tag_ids=post_data.tag_ids,
        author=caller.user,
        is_anonymous=post_data.is_anonymous,
        client_address=caller.client_address,
    )
    return PostResponse.from_post(post)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep, caller: CallerDep) -> PostResponse:
    """Get a single post the caller is allowed to see."""
    post = PostService(db).get_post(post_id, caller.user)
    return annotate_posts(db, [post], caller.user)[0]


@router.patch("/{post_id}", response_model=PostResponse)
async def edit_post(
    post_id: int,
    edit: PostEditRequest,
    db: SessionDep,
    current_user: CurrentUserDep,
    clock: ClockDep,
) -> PostResponse:
    """Replace the content of one of the caller's posts."""
    post = EditHistoryTracker(db, clock).edit_post(post_id, current_user, edit.content)
    return annotate_posts(db, [post], current_user)[0]


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
    clock: ClockDep,
) -> Response:
    """Soft-delete one of the caller's posts."""
    ModerationService(db, clock).delete(post_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{post_id}/history", response_model=list[EditHistoryEntry])
async def get_post_history(post_id: int, db: SessionDep, caller: CallerDep) -> list[EditHistoryEntry]:
    """Previous revisions of a post, oldest first."""
    PostService(db).get_post(post_id, caller.user)
    return [EditHistoryEntry.from_edit(edit) for edit in EditHistoryTracker(db).history(post_id)]


@router.post("/{post_id}/report", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def report_post(
    post_id: int,
    db: SessionDep,
    caller: CallerDep,
    clock: ClockDep,
) -> ReportResponse:
    """Report a post; enough reports hide it automatically."""
    outcome = ModerationService(db, clock).report(
        post_id,
        caller.user,
        client_address=caller.client_address,
    )
    return ReportResponse(
        post_id=outcome.post_id,
        report_count=outcome.report_count,
        status=outcome.status,
        auto_hidden=outcome.auto_hidden,
    )


@router.put("/{post_id}/save", response_model=SaveResponse)
async def save_post(post_id: int, db: SessionDep, caller: CallerDep, clock: ClockDep) -> SaveResponse:
    SavedPostService(db, clock).save(post_id, caller.user)
    return SaveResponse(post_id=post_id, is_saved=True)


@router.delete("/{post_id}/save", response_model=SaveResponse)
async def unsave_post(post_id: int, db: SessionDep, caller: CallerDep) -> SaveResponse:
    SavedPostService(db).unsave(post_id, caller.user)
    return SaveResponse(post_id=post_id, is_saved=False)
