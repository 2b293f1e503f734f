"""Moderation services for Roastr.

Post visibility is governed by one transition table::

    visible          -> hidden_reported   (report threshold reached)
    visible          -> hidden_manual     (moderator hide)
    visible          -> deleted           (author soft delete)
    hidden_reported  -> hidden_manual     (moderator hide)
    hidden_reported  -> visible           (moderator restore, clears reports)
    hidden_reported  -> deleted           (author account removed)
    hidden_manual    -> hidden_manual     (moderator hide, idempotent)
    hidden_manual    -> visible           (moderator restore, clears reports)
    hidden_manual    -> deleted           (author account removed)

``deleted`` has no outgoing transitions. Every status change goes through
:func:`try_transition`, which applies it as a conditional update so that a
concurrent writer that already moved the post is detected instead of
overwritten. :func:`transition` turns that into a :class:`ConflictError`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from roastr.core.errors import ConflictError, PermissionDeniedError
from roastr.core.settings import settings
from roastr.db.session import unit_of_work
from roastr.db.time import utcnow
from roastr.models import Post, PostStatus, Report, UserProfile, UserRole
from roastr.repositories.post_repo import PostRepository
from roastr.services.rate_limit import client_submitter_key
from roastr.services.reports import ReportLedger

logger = logging.getLogger(__name__)

TRANSITIONS: dict[PostStatus, frozenset[PostStatus]] = {
    PostStatus.VISIBLE: frozenset(
        {PostStatus.HIDDEN_REPORTED, PostStatus.HIDDEN_MANUAL, PostStatus.DELETED}
    ),
    PostStatus.HIDDEN_REPORTED: frozenset(
        {PostStatus.HIDDEN_MANUAL, PostStatus.VISIBLE, PostStatus.DELETED}
    ),
    PostStatus.HIDDEN_MANUAL: frozenset(
        {PostStatus.HIDDEN_MANUAL, PostStatus.VISIBLE, PostStatus.DELETED}
    ),
    PostStatus.DELETED: frozenset(),
}

HIDDEN_STATUSES = (PostStatus.HIDDEN_REPORTED, PostStatus.HIDDEN_MANUAL)


def can_transition(source: PostStatus, target: PostStatus) -> bool:
    return target in TRANSITIONS[source]


def try_transition(db: Session, post: Post, target: PostStatus, *, now: datetime) -> bool:
    """Move ``post`` to ``target`` unless another writer changed its status first.

    The update only matches while the stored status is still one the target is
    reachable from. On a lost race ``post`` is reloaded and ``False`` returned.

    Raises:
        ConflictError: If ``target`` is not reachable from the known status.
    """
    if not can_transition(post.status, target):
        raise ConflictError(f"Cannot move a {post.status.value} post to {target.value}")
    sources = [source for source, targets in TRANSITIONS.items() if target in targets]
    result = db.execute(
        update(Post)
        .where(Post.id == post.id, Post.status.in_(sources))
        .values(status=target, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        db.refresh(post, attribute_names=["status", "updated_at"])
        return False
    # Mirror the row in the identity map without scheduling a second UPDATE.
    set_committed_value(post, "status", target)
    set_committed_value(post, "updated_at", now)
    return True


def transition(db: Session, post: Post, target: PostStatus, *, now: datetime) -> None:
    """Like :func:`try_transition`, but a lost race is a :class:`ConflictError` too."""
    if not try_transition(db, post, target, now=now):
        raise ConflictError(f"Post {post.id} changed state concurrently")


def ensure_moderator(user: UserProfile | None) -> UserProfile:
    if user is None or not user.role.at_least(UserRole.MODERATOR):
        raise PermissionDeniedError("Moderator privileges required")
    return user


@dataclass(frozen=True)
class ReportOutcome:
    post_id: int
    report_count: int
    status: PostStatus
    auto_hidden: bool


@dataclass(frozen=True)
class QueueEntry:
    post: Post
    report_count: int


class ModerationService:
    """Service handling moderation logic and state transitions."""

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
        *,
        report_threshold: int | None = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.posts = PostRepository(db)
        self.reports = ReportLedger(db)
        self.report_threshold = (
            settings.report_hide_threshold if report_threshold is None else report_threshold
        )

    def report(
        self,
        post_id: int,
        reporter: UserProfile | None,
        *,
        client_address: str | None = None,
    ) -> ReportOutcome:
        """File a report and auto-hide the post once the threshold is reached.

        The insert, the recount and the transition run under the post's row
        lock, so exactly one report performs the ``visible -> hidden_reported``
        move; later reports only add records.
        """
        with unit_of_work(self.db):
            post = self.posts.get_for_update(post_id)
            if post.status is PostStatus.DELETED:
                raise ConflictError("Deleted posts cannot be reported")
            now = self.clock()
            self.reports.add(
                post.id,
                reporter_id=reporter.id if reporter else None,
                reporter_key=(
                    client_submitter_key(client_address)
                    if reporter is None and client_address
                    else None
                ),
                created_at=now,
            )
            count = self.reports.count(post.id)
            auto_hidden = False
            if count >= self.report_threshold and post.status is PostStatus.VISIBLE:
                # A concurrent report may already have hidden it; this one still counts.
                auto_hidden = try_transition(self.db, post, PostStatus.HIDDEN_REPORTED, now=now)
            status = post.status

        if auto_hidden:
            logger.info("Post %s hidden after %d reports", post_id, count)
        return ReportOutcome(
            post_id=post_id,
            report_count=count,
            status=status,
            auto_hidden=auto_hidden,
        )

    def hide(self, post_id: int, moderator: UserProfile | None) -> Post:
        """Hide a post by moderator decision; any status except ``deleted``."""
        ensure_moderator(moderator)
        with unit_of_work(self.db):
            post = self.posts.get_for_update(post_id)
            transition(self.db, post, PostStatus.HIDDEN_MANUAL, now=self.clock())
        logger.info("Post %s hidden by moderator %s", post_id, moderator.id)  # type: ignore[union-attr]
        return post

    def restore(self, post_id: int, moderator: UserProfile | None) -> Post:
        """Make a hidden post visible again and clear its reports."""
        ensure_moderator(moderator)
        with unit_of_work(self.db):
            post = self.posts.get_for_update(post_id)
            if post.status not in HIDDEN_STATUSES:
                raise ConflictError(f"Only hidden posts can be restored, post is {post.status.value}")
            transition(self.db, post, PostStatus.VISIBLE, now=self.clock())
            cleared = self.reports.clear(post.id)
        logger.info(
            "Post %s restored by moderator %s, %d reports cleared",
            post_id,
            moderator.id,  # type: ignore[union-attr]
            cleared,
        )
        return post

    def delete(self, post_id: int, requester: UserProfile | None) -> Post:
        """Soft-delete a visible post on behalf of its author."""
        with unit_of_work(self.db):
            post = self.posts.get_for_update(post_id)
            if requester is None or post.author_id is None or post.author_id != requester.id:
                raise PermissionDeniedError("You can only delete your own posts")
            if post.status is not PostStatus.VISIBLE:
                raise ConflictError(f"Only visible posts can be deleted, post is {post.status.value}")
            transition(self.db, post, PostStatus.DELETED, now=self.clock())
        logger.info("Post %s deleted by its author", post_id)
        return post

    def report_count(self, post_id: int) -> int:
        return self.reports.count(post_id)

    def queue(self, moderator: UserProfile | None) -> list[QueueEntry]:
        """Posts awaiting review: reported visible posts and every hidden post, newest first."""
        ensure_moderator(moderator)
        counts = (
            select(Report.post_id, func.count().label("report_count"))
            .group_by(Report.post_id)
            .subquery()
        )
        report_count = func.coalesce(counts.c.report_count, 0)
        stmt = (
            select(Post, report_count)
            .outerjoin(counts, counts.c.post_id == Post.id)
            .where(
                or_(
                    and_(Post.status == PostStatus.VISIBLE, report_count > 0),
                    Post.status.in_(HIDDEN_STATUSES),
                )
            )
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return [
            QueueEntry(post=post, report_count=int(count))
            for post, count in self.db.execute(stmt).all()
        ]
