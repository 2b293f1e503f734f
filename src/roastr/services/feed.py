"""Feed composition: filter and order a snapshot of posts.

:func:`compose_feed` is a pure function over in-memory posts and the tag
catalog. :class:`FeedService` loads the snapshot from the store and delegates.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from roastr.db.time import utcnow
from roastr.models import Post, PostStatus, Tag
from roastr.repositories.post_repo import PostRepository


class SortMode(StrEnum):
    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_VOTED = "most_voted"


class TimeWindow(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


class TagLike(Protocol):
    id: int
    name: str
    is_sensitive: bool


class PostLike(Protocol):
    id: int
    status: PostStatus
    created_at: datetime
    upvotes: int

    @property
    def tags(self) -> Iterable[TagLike]: ...


def _months_back(moment: datetime, months: int) -> datetime:
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def window_start(window: TimeWindow | None, now: datetime) -> datetime | None:
    """Return the earliest ``created_at`` a window admits, or None for no bound.

    Days and weeks are fixed spans of hours; months and years step back on the
    calendar, clamping to the last day of shorter months.
    """
    if window is None or window is TimeWindow.ALL:
        return None
    if window is TimeWindow.DAY:
        return now - timedelta(days=1)
    if window is TimeWindow.WEEK:
        return now - timedelta(weeks=1)
    if window is TimeWindow.MONTH:
        return _months_back(now, 1)
    return _months_back(now, 12)


def _tag_names(tag_catalog: Iterable[TagLike], selected_tag_ids: Iterable[int]) -> set[str]:
    selected = set(selected_tag_ids)
    return {tag.name for tag in tag_catalog if tag.id in selected}


def compose_feed(
    posts: Iterable[PostLike],
    tag_catalog: Iterable[TagLike],
    selected_tag_ids: Iterable[int] = (),
    time_window: TimeWindow | None = None,
    sort_mode: SortMode = SortMode.NEWEST,
    show_nsfw: bool = False,
    *,
    now: datetime | None = None,
) -> list[PostLike]:
    """Filter and order posts for display.

    The pipeline runs in a fixed order: visibility, NSFW gate, tag filter,
    time window, sort. Tag selection is matched by name against the catalog
    with OR semantics, so a post qualifies if any of its tags shares a name
    with any selected tag. Ties are broken by post id.
    """
    selected_ids = list(selected_tag_ids)
    eligible = [post for post in posts if post.status is PostStatus.VISIBLE]

    if not show_nsfw:
        eligible = [
            post for post in eligible if not any(tag.is_sensitive for tag in post.tags)
        ]

    if selected_ids:
        wanted = _tag_names(tag_catalog, selected_ids)
        eligible = [
            post for post in eligible if any(tag.name in wanted for tag in post.tags)
        ]

    start = window_start(time_window, now or utcnow())
    if start is not None:
        eligible = [post for post in eligible if post.created_at >= start]

    if sort_mode is SortMode.OLDEST:
        return sorted(eligible, key=lambda post: (post.created_at, post.id))
    if sort_mode is SortMode.MOST_VOTED:
        return sorted(eligible, key=lambda post: (post.upvotes, post.id), reverse=True)
    return sorted(eligible, key=lambda post: (post.created_at, post.id), reverse=True)


class FeedService:
    """Load the current store snapshot and compose a feed from it."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock
        self.posts = PostRepository(db)

    def tag_catalog(self) -> list[Tag]:
        return list(self.db.execute(select(Tag).order_by(Tag.name)).scalars())

    def feed(
        self,
        *,
        tag_ids: Sequence[int] = (),
        time_window: TimeWindow | None = None,
        sort_mode: SortMode = SortMode.NEWEST,
        show_nsfw: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Post]:
        composed = compose_feed(
            self.posts.list_by_status(PostStatus.VISIBLE),
            self.tag_catalog(),
            tag_ids,
            time_window,
            sort_mode,
            show_nsfw,
            now=self.clock(),
        )
        window = composed[offset:] if limit is None else composed[offset : offset + limit]
        return window  # type: ignore[return-value]
