"""Helpers for managing user profiles and their roles."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from roastr.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from roastr.db.session import unit_of_work
from roastr.db.time import utcnow
from roastr.models import Post, PostStatus, PostVote, Report, SavedPost, UserProfile, UserRole
from roastr.services.moderation import transition
from roastr.services.votes import VoteLedger

logger = logging.getLogger(__name__)

__all__ = [
    "can_assign_role",
    "create_user",
    "delete_user",
    "get_user",
    "get_user_or_404",
    "list_users",
    "set_user_role",
    "update_profile",
]

_PRIVILEGED_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})


def get_user(db: Session, user_id: int) -> UserProfile | None:
    """Return a single user by primary key."""
    return db.get(UserProfile, user_id)


def get_user_or_404(db: Session, user_id: int) -> UserProfile:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(
    db: Session,
    role: UserRole | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> Sequence[UserProfile]:
    """Return users ordered by id, filtered by role and a username fragment."""
    stmt = select(UserProfile).order_by(UserProfile.id).offset(skip).limit(limit)
    if role is not None:
        stmt = stmt.where(UserProfile.role == role)
    if search and search.strip():
        stmt = stmt.where(UserProfile.username.icontains(search.strip(), autoescape=True))
    return list(db.execute(stmt).scalars())


def create_user(
    db: Session,
    username: str,
    role: UserRole = UserRole.USER,
    bio: str | None = None,
) -> UserProfile:
    """Persist a new profile; usernames are unique."""
    cleaned = username.strip()
    if not cleaned:
        raise ValidationError("Username must not be empty")
    if db.execute(select(UserProfile.id).where(UserProfile.username == cleaned)).first():
        raise ConflictError("Username is already taken")
    with unit_of_work(db):
        user = UserProfile(username=cleaned, role=role, bio=bio)
        db.add(user)
    db.refresh(user)
    return user


def update_profile(db: Session, user: UserProfile, bio: str | None) -> UserProfile:
    with unit_of_work(db):
        user.bio = bio
    db.refresh(user)
    return user


def can_assign_role(actor: UserProfile, current: UserRole, new: UserRole) -> bool:
    """Admins manage user and moderator roles; admin roles need a superadmin."""
    if not actor.role.at_least(UserRole.ADMIN):
        return False
    if current in _PRIVILEGED_ROLES or new in _PRIVILEGED_ROLES:
        return actor.role is UserRole.SUPERADMIN
    return True


def set_user_role(
    db: Session,
    actor: UserProfile | None,
    target_id: int,
    role: UserRole,
) -> UserProfile:
    """Change ``target_id``'s role on behalf of ``actor``.

    Raises:
        PermissionDeniedError: If the actor lacks the rank for this change or
            targets their own profile.
        NotFoundError: If the target user does not exist.
    """
    if actor is None or not actor.role.at_least(UserRole.ADMIN):
        raise PermissionDeniedError("Admin privileges required")
    if actor.id == target_id:
        raise PermissionDeniedError("You cannot change your own role")

    with unit_of_work(db):
        target = get_user_or_404(db, target_id)
        previous = target.role
        if not can_assign_role(actor, previous, role):
            raise PermissionDeniedError("Only a superadmin can grant or revoke admin roles")
        target.role = role

    logger.info(
        "User %s role changed from %s to %s by %s",
        target_id,
        previous.value,
        role.value,
        actor.id,
    )
    return target


def delete_user(
    db: Session,
    actor: UserProfile | None,
    target_id: int,
    *,
    now: datetime | None = None,
) -> int:
    """Remove a profile after soft-deleting every post published under it.

    The user's votes are dropped and the tallies of the posts they voted on
    recounted, their bookmarks go with them and their reports stay on record
    without a reporter. Everything happens in one transaction.

    Returns:
        The number of posts moved to ``deleted``.

    Raises:
        PermissionDeniedError: If the actor is not an admin, targets their own
            account, or is an admin removing an admin account.
        NotFoundError: If the target user does not exist.
    """
    if actor is None or not actor.role.at_least(UserRole.ADMIN):
        raise PermissionDeniedError("Admin privileges required")
    if actor.id == target_id:
        raise PermissionDeniedError("You cannot delete your own account")
    moment = now or utcnow()

    with unit_of_work(db):
        target = get_user_or_404(db, target_id)
        if target.role in _PRIVILEGED_ROLES and actor.role is not UserRole.SUPERADMIN:
            raise PermissionDeniedError("Only a superadmin can delete admin accounts")

        authored = db.execute(
            select(Post)
            .where(Post.author_id == target.id)
            .order_by(Post.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        removed = 0
        for post in authored:
            if post.status is not PostStatus.DELETED:
                transition(db, post, PostStatus.DELETED, now=moment)
                removed += 1
            post.author = None

        voted_ids = db.execute(
            select(PostVote.post_id).where(PostVote.user_id == target.id)
        ).scalars().all()
        db.execute(delete(PostVote).where(PostVote.user_id == target.id))
        ledger = VoteLedger(db)
        for post_id in voted_ids:
            ledger.refresh_counters(ledger.posts.get_for_update(post_id))

        db.execute(delete(SavedPost).where(SavedPost.user_id == target.id))
        db.execute(update(Report).where(Report.reporter_id == target.id).values(reporter_id=None))
        db.delete(target)

    logger.info("User %s deleted by %s, %d posts removed", target_id, actor.id, removed)
    return removed
