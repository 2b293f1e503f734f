"""Post creation and lookup."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from roastr.content.document import Document
from roastr.core.errors import (
    AuthenticationRequiredError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from roastr.core.settings import settings
from roastr.db.session import unit_of_work
from roastr.db.time import utcnow
from roastr.models import Post, PostStatus, Tag, UserProfile
from roastr.repositories.post_repo import PostRepository
from roastr.services.rate_limit import (
    AnonymousRateLimiter,
    client_submitter_key,
    user_submitter_key,
)

logger = logging.getLogger(__name__)


def validate_title(title: str | None, max_length: int | None = None) -> str:
    """Return the trimmed title or raise :class:`ValidationError`."""
    limit = max_length or settings.title_max_length
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title must not be empty")
    if len(cleaned) > limit:
        raise ValidationError(f"Title must be at most {limit} characters")
    return cleaned


def validate_content(content: Any, max_length: int | None = None) -> Document:
    """Parse ``content`` and check it is non-blank and within the length limit."""
    limit = max_length or settings.content_max_length
    if content is None:
        raise ValidationError("Content must not be empty")
    document = Document.from_json(content)
    if document.is_blank():
        raise ValidationError("Content must not be empty")
    if document.text_length > limit:
        raise ValidationError(f"Content must be at most {limit} characters")
    return document


class PostService:
    """Create posts and read them back."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock
        self.posts = PostRepository(db)
        self.rate_limiter = AnonymousRateLimiter(db, clock=clock)

    def create_post(
        self,
        *,
        title: str,
        content: Any,
        tag_ids: Iterable[int],
        author: UserProfile | None,
        is_anonymous: bool,
        client_address: str | None = None,
    ) -> Post:
        """Validate and store a new post in the ``visible`` state.

        Checks run in order and the first failure wins: title, content, tags,
        then the anonymous quota. The post and its tag links are written in one
        transaction together with the quota claim.

        Raises:
            AuthenticationRequiredError: Attributed post without a signed-in author.
            ValidationError: Empty or oversized title/content, no or unknown tags.
            RateLimitError: Anonymous quota exhausted for this submitter.
        """
        if author is None and not is_anonymous:
            raise AuthenticationRequiredError("Sign in to publish under your name")

        clean_title = validate_title(title)
        document = validate_content(content)
        tags = self._resolve_tags(tag_ids)

        submitter_key: str | None = None
        if is_anonymous:
            if author is not None:
                submitter_key = user_submitter_key(author.id)
            elif client_address:
                submitter_key = client_submitter_key(client_address)
            else:
                raise PermissionDeniedError(
                    "Anonymous posting needs a session or a client address"
                )

        with unit_of_work(self.db):
            if submitter_key is not None:
                self.rate_limiter.acquire(submitter_key)
            now = self.clock()
            post = Post(
                title=clean_title,
                content=document.to_json(),
                author_id=None if is_anonymous else author.id,  # type: ignore[union-attr]
                is_anonymous=is_anonymous,
                submitter_key=submitter_key,
                status=PostStatus.VISIBLE,
                upvotes=0,
                downvotes=0,
                created_at=now,
                updated_at=now,
                tags=set(tags),
            )
            self.posts.add(post)

        logger.info("Created post %s (anonymous=%s)", post.id, is_anonymous)
        return post

    def can_post_anonymously(self, user_id: int) -> bool:
        return self.rate_limiter.can_post_anonymously(user_submitter_key(user_id))

    def get_post(self, post_id: int, viewer: UserProfile | None = None) -> Post:
        """Return a post if ``viewer`` may see it.

        Visible posts are public. Hidden posts are shown to their author and to
        moderators; deleted posts only to moderators.
        """
        post = self.posts.get_or_404(post_id)
        if post.status is PostStatus.VISIBLE:
            return post
        if viewer is not None and viewer.is_moderator:
            return post
        if (
            post.status is not PostStatus.DELETED
            and viewer is not None
            and post.author_id == viewer.id
        ):
            return post
        raise NotFoundError("Post not found")

    def _resolve_tags(self, tag_ids: Iterable[int]) -> list[Tag]:
        wanted = set(tag_ids or ())
        if not wanted:
            raise ValidationError("Select at least one tag")
        tags = self.posts.tags_by_ids(wanted)
        missing = wanted - {tag.id for tag in tags}
        if missing:
            raise ValidationError(f"Unknown tag ids: {sorted(missing)}")
        return tags
