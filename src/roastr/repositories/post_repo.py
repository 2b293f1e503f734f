"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from roastr.core.errors import NotFoundError
from roastr.models import Post, PostStatus, Tag

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: int) -> Post | None:
        """Return a post by identifier, whatever its status."""
        return self.session.get(Post, post_id)

    def get_or_404(self, post_id: int) -> Post:
        post = self.get_by_id(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def get_for_update(self, post_id: int) -> Post:
        """Return the post with its row locked for the current transaction.

        Every per-post mutation starts here so that concurrent writers on the
        same post are serialised by the store.
        """
        stmt = (
            select(Post)
            .where(Post.id == post_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        post = self.session.execute(stmt).scalars().first()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def list_by_status(self, *statuses: PostStatus) -> list[Post]:
        """Return posts in any of ``statuses``, newest first."""
        stmt = (
            select(Post)
            .where(Post.status.in_(statuses))
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return list(self.session.execute(stmt).scalars())

    def list_by_author(
        self,
        author_id: int,
        statuses: Iterable[PostStatus] = (PostStatus.VISIBLE,),
    ) -> list[Post]:
        """Return an author's attributed (non-anonymous) posts, newest first."""
        stmt = (
            select(Post)
            .where(
                Post.author_id == author_id,
                Post.is_anonymous.is_(False),
                Post.status.in_(list(statuses)),
            )
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return list(self.session.execute(stmt).scalars())

    def anonymous_since(self, submitter_key: str, since: datetime) -> list[datetime]:
        """Return creation times of a submitter's anonymous posts after ``since``, oldest first."""
        stmt = (
            select(Post.created_at)
            .where(
                Post.submitter_key == submitter_key,
                Post.is_anonymous.is_(True),
                Post.created_at > since,
            )
            .order_by(Post.created_at)
        )
        return list(self.session.execute(stmt).scalars())

    def count_anonymous_since(self, submitter_key: str, since: datetime) -> int:
        stmt = select(func.count()).select_from(Post).where(
            Post.submitter_key == submitter_key,
            Post.is_anonymous.is_(True),
            Post.created_at > since,
        )
        return int(self.session.execute(stmt).scalar() or 0)

    def tags_by_ids(self, tag_ids: Iterable[int]) -> list[Tag]:
        ids = set(tag_ids)
        if not ids:
            return []
        stmt = select(Tag).where(Tag.id.in_(ids))
        return list(self.session.execute(stmt).scalars())

    def add(self, post: Post) -> Post:
        """Insert a new post and flush so it receives an id."""
        self.session.add(post)
        self.session.flush()
        return post
