"""Author edits with an append-only history of prior content."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from roastr.core.errors import ConflictError, PermissionDeniedError
from roastr.db.session import unit_of_work
from roastr.db.time import utcnow
from roastr.models import Post, PostEdit, PostStatus, UserProfile
from roastr.repositories.post_repo import PostRepository
from roastr.services.posts import validate_content

logger = logging.getLogger(__name__)


class EditHistoryTracker:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock
        self.posts = PostRepository(db)

    def edit_post(self, post_id: int, editor: UserProfile | None, new_content: Any) -> Post:
        """Replace a post's content, keeping the previous version in its history.

        Only the author may edit; anonymous posts have no author and are never
        editable. Deleted posts are frozen.

        Raises:
            NotFoundError: If the post does not exist.
            PermissionDeniedError: If ``editor`` is not the post's author.
            ConflictError: If the post is deleted or the content is unchanged.
            ValidationError: If the new content is empty or too long.
        """
        with unit_of_work(self.db):
            post = self.posts.get_for_update(post_id)
            if editor is None or post.author_id is None or post.author_id != editor.id:
                raise PermissionDeniedError("You can only edit your own posts")
            if post.status is PostStatus.DELETED:
                raise ConflictError("Deleted posts cannot be edited")

            document = validate_content(new_content)
            if document == post.document:
                raise ConflictError("The new content is identical to the current content")

            now = self.clock()
            post.edits.append(PostEdit(content=post.content, edited_at=now))
            post.content = document.to_json()
            post.updated_at = now

        logger.info("Post %s edited by its author (%d revisions)", post_id, len(post.edits))
        return post

    def history(self, post_id: int) -> list[PostEdit]:
        """Return prior revisions oldest first."""
        return list(self.posts.get_or_404(post_id).edits)
