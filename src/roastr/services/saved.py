"""Per-user bookmarks of posts."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from roastr.core.errors import AuthenticationRequiredError, ConflictError
from roastr.db.session import unit_of_work
from roastr.db.time import utcnow
from roastr.models import Post, PostStatus, SavedPost, UserProfile
from roastr.repositories.post_repo import PostRepository


class SavedPostService:
    """Save and unsave are idempotent; saving twice keeps one bookmark."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock
        self.posts = PostRepository(db)

    def save(self, post_id: int, user: UserProfile | None) -> bool:
        """Bookmark a post; returns True if a new bookmark was written."""
        if user is None:
            raise AuthenticationRequiredError("Sign in to save posts")
        with unit_of_work(self.db):
            post = self.posts.get_for_update(post_id)
            if post.status is PostStatus.DELETED:
                raise ConflictError("Deleted posts cannot be saved")
            if self.db.get(SavedPost, (user.id, post_id)) is not None:
                return False
            self.db.add(SavedPost(user_id=user.id, post_id=post_id, created_at=self.clock()))
        return True

    def unsave(self, post_id: int, user: UserProfile | None) -> bool:
        """Remove a bookmark; returns True if one existed."""
        if user is None:
            raise AuthenticationRequiredError("Sign in to manage saved posts")
        with unit_of_work(self.db):
            self.posts.get_or_404(post_id)
            result = self.db.execute(
                delete(SavedPost).where(
                    SavedPost.user_id == user.id,
                    SavedPost.post_id == post_id,
                )
            )
        return bool(result.rowcount)

    def saved_ids(self, user_id: int, post_ids: Iterable[int] | None = None) -> set[int]:
        stmt = select(SavedPost.post_id).where(SavedPost.user_id == user_id)
        if post_ids is not None:
            stmt = stmt.where(SavedPost.post_id.in_(list(post_ids)))
        return set(self.db.execute(stmt).scalars())

    def list_saved(self, user: UserProfile | None) -> list[Post]:
        """The caller's saved posts, most recently saved first; deleted posts are omitted."""
        if user is None:
            raise AuthenticationRequiredError("Sign in to see saved posts")
        stmt = (
            select(Post)
            .join(SavedPost, SavedPost.post_id == Post.id)
            .where(SavedPost.user_id == user.id, Post.status != PostStatus.DELETED)
            .order_by(SavedPost.created_at.desc(), Post.id.desc())
        )
        return list(self.db.execute(stmt).scalars())
