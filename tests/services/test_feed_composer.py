# tests/services/test_feed_composer.py
"""Tests for feed filtering and ordering."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from roastr.models import PostStatus, VoteType
from roastr.services.feed import FeedService, SortMode, TimeWindow, compose_feed, window_start
from roastr.services.moderation import ModerationService
from roastr.services.votes import VoteLedger

NOW = datetime(2026, 3, 31, 12, 0, tzinfo=UTC)


@dataclass(frozen=True)
class FakeTag:
    id: int
    name: str
    is_sensitive: bool = False


@dataclass
class FakePost:
    id: int
    created_at: datetime
    upvotes: int = 0
    tags: list[FakeTag] = field(default_factory=list)
    status: PostStatus = PostStatus.VISIBLE


ROAST = FakeTag(1, "Roast")
JOKE = FakeTag(2, "Joke")
NSFW = FakeTag(3, "NSFW", is_sensitive=True)
CATALOG = [ROAST, JOKE, NSFW]


def _ids(posts) -> list[int]:
    return [post.id for post in posts]


def test_nsfw_posts_hidden_unless_requested() -> None:
    a = FakePost(1, NOW - timedelta(hours=2), upvotes=5, tags=[ROAST])
    b = FakePost(2, NOW - timedelta(hours=1), upvotes=1, tags=[JOKE, NSFW])

    assert _ids(compose_feed([a, b], CATALOG, show_nsfw=False, now=NOW)) == [1]
    assert _ids(
        compose_feed([a, b], CATALOG, sort_mode=SortMode.MOST_VOTED, show_nsfw=True, now=NOW)
    ) == [1, 2]


def test_only_visible_posts_are_eligible() -> None:
    posts = [
        FakePost(1, NOW, tags=[ROAST]),
        FakePost(2, NOW, tags=[ROAST], status=PostStatus.HIDDEN_REPORTED),
        FakePost(3, NOW, tags=[ROAST], status=PostStatus.HIDDEN_MANUAL),
        FakePost(4, NOW, tags=[ROAST], status=PostStatus.DELETED),
    ]
    assert _ids(compose_feed(posts, CATALOG, now=NOW)) == [1]


def test_tag_filter_is_or_and_matches_by_name() -> None:
    # A distinct tag instance carrying the same name still matches.
    roast_copy = FakeTag(99, "Roast")
    posts = [
        FakePost(1, NOW - timedelta(minutes=3), tags=[roast_copy]),
        FakePost(2, NOW - timedelta(minutes=2), tags=[JOKE]),
        FakePost(3, NOW - timedelta(minutes=1), tags=[FakeTag(7, "Pun")]),
    ]
    assert _ids(compose_feed(posts, CATALOG, selected_tag_ids=[ROAST.id], now=NOW)) == [1]
    assert _ids(
        compose_feed(posts, CATALOG, selected_tag_ids=[ROAST.id, JOKE.id], now=NOW)
    ) == [2, 1]


def test_selecting_the_nsfw_tag_still_respects_the_gate() -> None:
    posts = [FakePost(1, NOW, tags=[NSFW])]
    assert compose_feed(posts, CATALOG, selected_tag_ids=[NSFW.id], now=NOW) == []
    assert _ids(compose_feed(posts, CATALOG, selected_tag_ids=[NSFW.id], show_nsfw=True, now=NOW)) == [1]


@pytest.mark.parametrize(
    ("window", "expected"),
    [
        (TimeWindow.DAY, [1]),
        (TimeWindow.WEEK, [1, 2]),
        (TimeWindow.MONTH, [1, 2, 3]),
        (TimeWindow.YEAR, [1, 2, 3, 4]),
        (TimeWindow.ALL, [1, 2, 3, 4, 5]),
        (None, [1, 2, 3, 4, 5]),
    ],
)
def test_time_windows(window, expected) -> None:
    posts = [
        FakePost(1, NOW - timedelta(hours=23)),
        FakePost(2, NOW - timedelta(days=6)),
        FakePost(3, NOW - timedelta(days=20)),
        FakePost(4, NOW - timedelta(days=200)),
        FakePost(5, NOW - timedelta(days=400)),
    ]
    assert _ids(compose_feed(posts, CATALOG, time_window=window, show_nsfw=True, now=NOW)) == expected


def test_month_window_clamps_to_shorter_month() -> None:
    assert window_start(TimeWindow.MONTH, NOW) == datetime(2026, 2, 28, 12, 0, tzinfo=UTC)
    assert window_start(TimeWindow.YEAR, NOW) == datetime(2025, 3, 31, 12, 0, tzinfo=UTC)
    assert window_start(TimeWindow.MONTH, datetime(2026, 1, 10, tzinfo=UTC)) == datetime(
        2025, 12, 10, tzinfo=UTC
    )


def test_sort_modes_with_id_tie_break() -> None:
    posts = [
        FakePost(1, NOW - timedelta(hours=3), upvotes=2),
        FakePost(2, NOW - timedelta(hours=1), upvotes=7),
        FakePost(3, NOW - timedelta(hours=1), upvotes=2),
        FakePost(4, NOW - timedelta(hours=2), upvotes=0),
    ]
    assert _ids(compose_feed(posts, CATALOG, now=NOW)) == [3, 2, 4, 1]
    assert _ids(compose_feed(posts, CATALOG, sort_mode=SortMode.OLDEST, now=NOW)) == [1, 4, 2, 3]
    assert _ids(compose_feed(posts, CATALOG, sort_mode=SortMode.MOST_VOTED, now=NOW)) == [2, 3, 1, 4]


def test_feed_service_reads_the_store(db_session, make_post, test_user, other_user, moderator, clock) -> None:
    old = make_post(test_user, title="old")
    clock.advance(days=3)
    spicy = make_post(test_user, title="spicy", tag_names=("Dark", "NSFW"))
    clock.advance(hours=1)
    fresh = make_post(other_user, title="fresh", tag_names=("Joke",))
    hidden = make_post(other_user, title="hidden")
    ModerationService(db_session, clock).hide(hidden.id, moderator)
    VoteLedger(db_session, clock).vote(old.id, other_user.id, VoteType.UPVOTE)

    service = FeedService(db_session, clock)

    assert _ids(service.feed()) == [fresh.id, old.id]
    assert _ids(service.feed(show_nsfw=True, time_window=TimeWindow.DAY)) == [fresh.id, spicy.id]
    assert _ids(service.feed(sort_mode=SortMode.MOST_VOTED)) == [old.id, fresh.id]
    assert _ids(service.feed(show_nsfw=True, limit=1, offset=1)) == [spicy.id]
