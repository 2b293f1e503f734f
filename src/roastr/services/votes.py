"""Vote ledger with three-way toggle semantics."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from roastr.core.errors import AuthenticationRequiredError, ConflictError
from roastr.db.session import unit_of_work
from roastr.db.time import utcnow
from roastr.models import Post, PostStatus, PostVote, VoteType
from roastr.repositories.post_repo import PostRepository


@dataclass(frozen=True)
class VoteCounts:
    """Aggregate tallies for a post plus the caller's resulting vote."""

    post_id: int
    upvotes: int
    downvotes: int
    user_vote: VoteType | None = None


class VoteLedger:
    """One vote per (post, user); repeated votes retract or switch."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock
        self.posts = PostRepository(db)

    def vote(self, post_id: int, user_id: int | None, vote_type: VoteType) -> VoteCounts:
        """Apply a toggle vote and return the recomputed tallies.

        No existing vote inserts one; the same type again removes it; the
        opposite type switches it. The post row is locked for the duration, so
        two votes from one user on one post apply one after the other.

        Raises:
            AuthenticationRequiredError: If there is no signed-in caller.
            NotFoundError: If the post does not exist.
            ConflictError: If the post is not visible.
        """
        if user_id is None:
            raise AuthenticationRequiredError("Sign in to vote")

        with unit_of_work(self.db):
            post = self.posts.get_for_update(post_id)
            if post.status is not PostStatus.VISIBLE:
                raise ConflictError("Only visible posts can be voted on")

            existing = self.db.get(PostVote, (post_id, user_id), with_for_update=True)
            if existing is None:
                self._create_vote(post_id=post_id, user_id=user_id, vote_type=vote_type)
                current: VoteType | None = vote_type
            elif existing.vote_type is vote_type:
                self.db.delete(existing)
                current = None
            else:
                existing.vote_type = vote_type
                current = vote_type
            self.db.flush()

            counts = self.refresh_counters(post)

        return VoteCounts(
            post_id=post_id,
            upvotes=counts[0],
            downvotes=counts[1],
            user_vote=current,
        )

    def tally(self, post_id: int) -> tuple[int, int]:
        """Return ``(upvotes, downvotes)`` counted from the ledger rows."""
        rows = self.db.execute(
            select(PostVote.vote_type, func.count())
            .where(PostVote.post_id == post_id)
            .group_by(PostVote.vote_type)
        ).all()
        by_type = {vote_type: int(count) for vote_type, count in rows}
        return by_type.get(VoteType.UPVOTE, 0), by_type.get(VoteType.DOWNVOTE, 0)

    def counts(self, post_id: int, user_id: int | None = None) -> VoteCounts:
        upvotes, downvotes = self.tally(post_id)
        user_vote = self.user_vote(post_id, user_id) if user_id is not None else None
        return VoteCounts(post_id=post_id, upvotes=upvotes, downvotes=downvotes, user_vote=user_vote)

    def user_vote(self, post_id: int, user_id: int) -> VoteType | None:
        vote = self.db.get(PostVote, (post_id, user_id))
        return vote.vote_type if vote else None

    def user_votes(self, user_id: int, post_ids: Iterable[int]) -> dict[int, VoteType]:
        """Map post id to the user's vote for every voted post among ``post_ids``."""
        ids = list(post_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(PostVote.post_id, PostVote.vote_type).where(
                PostVote.user_id == user_id,
                PostVote.post_id.in_(ids),
            )
        ).all()
        return {post_id: vote_type for post_id, vote_type in rows}

    def votes_for_posts(self, post_ids: Iterable[int]) -> list[PostVote]:
        ids = list(post_ids)
        if not ids:
            return []
        return list(
            self.db.execute(select(PostVote).where(PostVote.post_id.in_(ids))).scalars()
        )

    def _create_vote(self, *, post_id: int, user_id: int, vote_type: VoteType) -> None:
        self.db.add(
            PostVote(
                post_id=post_id,
                user_id=user_id,
                vote_type=vote_type,
                created_at=self.clock(),
            )
        )

    def refresh_counters(self, post: Post) -> tuple[int, int]:
        upvotes, downvotes = self.tally(post.id)
        post.upvotes = upvotes
        post.downvotes = downvotes
        return upvotes, downvotes
