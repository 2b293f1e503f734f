"""Leaderboard scoring and per-user post statistics."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from roastr.core.settings import settings
from roastr.models import PostStatus, UserProfile, VoteType
from roastr.repositories.post_repo import PostRepository
from roastr.services.votes import VoteLedger

UPVOTE_WEIGHT = 2
POST_WEIGHT = 1


class UserLike(Protocol):
    id: int
    username: str


class PostLike(Protocol):
    id: int
    author_id: int | None
    is_anonymous: bool
    status: PostStatus


class VoteLike(Protocol):
    post_id: int
    vote_type: VoteType


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: int
    username: str
    total_posts: int
    total_upvotes: int
    score: int


@dataclass(frozen=True)
class UserStats:
    total_posts: int
    total_upvotes: int
    total_downvotes: int


def score(total_upvotes: int, total_posts: int) -> int:
    return total_upvotes * UPVOTE_WEIGHT + total_posts * POST_WEIGHT


def _attributed_visible(posts: Iterable[PostLike]) -> list[PostLike]:
    return [
        post
        for post in posts
        if post.status is PostStatus.VISIBLE
        and not post.is_anonymous
        and post.author_id is not None
    ]


def _tally(votes: Iterable[VoteLike]) -> tuple[Counter[int], Counter[int]]:
    upvotes: Counter[int] = Counter()
    downvotes: Counter[int] = Counter()
    for vote in votes:
        if vote.vote_type is VoteType.UPVOTE:
            upvotes[vote.post_id] += 1
        else:
            downvotes[vote.post_id] += 1
    return upvotes, downvotes


def compute_leaderboard(
    users: Iterable[UserLike],
    posts: Iterable[PostLike],
    votes: Iterable[VoteLike],
    *,
    limit: int | None = None,
) -> list[LeaderboardEntry]:
    """Rank users by ``upvotes * 2 + posts`` over their visible attributed posts.

    Users scoring zero are left out. Ties fall back to total upvotes, then to
    the lower user id, so the order is stable between runs.
    """
    size = settings.leaderboard_size if limit is None else limit
    upvotes_by_post, _ = _tally(votes)

    post_count: Counter[int] = Counter()
    upvote_count: Counter[int] = Counter()
    for post in _attributed_visible(posts):
        post_count[post.author_id] += 1  # type: ignore[index]
        upvote_count[post.author_id] += upvotes_by_post[post.id]  # type: ignore[index]

    entries = [
        LeaderboardEntry(
            user_id=user.id,
            username=user.username,
            total_posts=post_count[user.id],
            total_upvotes=upvote_count[user.id],
            score=score(upvote_count[user.id], post_count[user.id]),
        )
        for user in users
    ]
    ranked = sorted(
        (entry for entry in entries if entry.score > 0),
        key=lambda entry: (-entry.score, -entry.total_upvotes, entry.user_id),
    )
    return ranked[:size]


def compute_user_stats(user_id: int, posts: Iterable[PostLike], votes: Iterable[VoteLike]) -> UserStats:
    """Totals over one user's visible, non-anonymous posts."""
    upvotes_by_post, downvotes_by_post = _tally(votes)
    own = [post for post in _attributed_visible(posts) if post.author_id == user_id]
    return UserStats(
        total_posts=len(own),
        total_upvotes=sum(upvotes_by_post[post.id] for post in own),
        total_downvotes=sum(downvotes_by_post[post.id] for post in own),
    )


class LeaderboardService:
    """Read-side projections recomputed from the store on every call."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.posts = PostRepository(db)
        self.votes = VoteLedger(db)

    def leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        posts = self.posts.list_by_status(PostStatus.VISIBLE)
        users = self.db.execute(select(UserProfile)).scalars()
        votes = self.votes.votes_for_posts(post.id for post in posts)
        return compute_leaderboard(users, posts, votes, limit=limit)

    def user_stats(self, user_id: int) -> UserStats:
        posts = self.posts.list_by_author(user_id)
        votes = self.votes.votes_for_posts(post.id for post in posts)
        return compute_user_stats(user_id, posts, votes)
