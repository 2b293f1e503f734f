# src/roastr/api/v1/endpoints/users.py
"""User-related endpoints for the Roastr API."""

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.orm import Session

from roastr.api.v1.dependencies import CallerDep, ClockDep, CurrentUserDep, SessionDep
from roastr.core.errors import PermissionDeniedError
from roastr.models import UserProfile, UserRole
from roastr.repositories.post_repo import PostRepository
from roastr.schemas.post import PostResponse
from roastr.schemas.user import (
    ProfileUpdateRequest,
    RoleUpdate,
    UserProfileResponse,
    UserResponse,
    UserStatsResponse,
)
from roastr.services import user_service
from roastr.services.leaderboard import LeaderboardService
from roastr.services.posts import PostService
from roastr.services.saved import SavedPostService

from .posts import annotate_posts

router = APIRouter(prefix="/users", tags=["users"])


def _profile(
    db: Session,
    user: UserProfile,
    clock: Callable[[], datetime],
    *,
    include_quota: bool,
) -> UserProfileResponse:
    stats = LeaderboardService(db).user_stats(user.id)
    return UserProfileResponse(
        user=UserResponse.model_validate(user),
        stats=UserStatsResponse.model_validate(stats),
        can_post_anonymously=(
            PostService(db, clock).can_post_anonymously(user.id) if include_quota else None
        ),
    )


@router.get("/me", response_model=UserProfileResponse)
async def read_me(db: SessionDep, current_user: CurrentUserDep, clock: ClockDep) -> UserProfileResponse:
    """Return the caller's profile, stats and anonymous posting allowance."""
    return _profile(db, current_user, clock, include_quota=True)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    update: ProfileUpdateRequest,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> UserResponse:
    user = user_service.update_profile(db, current_user, update.bio)
    return UserResponse.model_validate(user)


@router.get("/me/saved", response_model=list[PostResponse])
async def read_saved_posts(db: SessionDep, current_user: CurrentUserDep) -> list[PostResponse]:
    """Posts the caller has saved, most recently saved first."""
    posts = SavedPostService(db).list_saved(current_user)
    return annotate_posts(db, posts, current_user)


@router.get("/", response_model=list[UserResponse])
async def list_users(
    db: SessionDep,
    current_user: CurrentUserDep,
    role: UserRole | None = None,
    search: Annotated[str | None, Query(max_length=64)] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[UserResponse]:
    """List users for role management; admins only.

    ``search`` keeps usernames containing the fragment, case-insensitively.
    """
    if not current_user.role.at_least(UserRole.ADMIN):
        raise PermissionDeniedError("Admin privileges required")
    users = user_service.list_users(db, role=role, search=search, skip=skip, limit=limit)
    return [UserResponse.model_validate(user) for user in users]


@router.get("/{user_id}", response_model=UserProfileResponse)
async def read_user(user_id: int, db: SessionDep, caller: CallerDep, clock: ClockDep) -> UserProfileResponse:
    """Public profile with post statistics."""
    user = user_service.get_user_or_404(db, user_id)
    return _profile(db, user, clock, include_quota=caller.user_id == user.id)


@router.get("/{user_id}/posts", response_model=list[PostResponse])
async def read_user_posts(user_id: int, db: SessionDep, caller: CallerDep) -> list[PostResponse]:
    """A user's visible posts published under their name, newest first."""
    user = user_service.get_user_or_404(db, user_id)
    posts = PostRepository(db).list_by_author(user.id)
    return annotate_posts(db, posts, caller.user)


@router.put("/{user_id}/role", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def update_user_role(
    user_id: int,
    update: RoleUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> UserResponse:
    """Grant or revoke a role."""
    user = user_service.set_user_role(db, current_user, user_id, update.role)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
    clock: ClockDep,
) -> Response:
    """Remove a user and soft-delete their posts; admins only."""
    user_service.delete_user(db, current_user, user_id, now=clock())
    return Response(status_code=status.HTTP_204_NO_CONTENT)
