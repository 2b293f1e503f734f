"""Rolling-window quota for anonymous posts."""

from __future__ import annotations

import hashlib
import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from roastr.core.errors import RateLimitError
from roastr.core.settings import settings
from roastr.db.time import utcnow
from roastr.models import AnonymousQuota
from roastr.repositories.post_repo import PostRepository

logger = logging.getLogger(__name__)


def user_submitter_key(user_id: int) -> str:
    return f"user:{user_id}"


def client_submitter_key(client_address: str) -> str:
    """Key a session-less submitter by a digest of their client address."""
    digest = hashlib.sha256(client_address.encode("utf-8")).hexdigest()
    return f"client:{digest}"


class AnonymousRateLimiter:
    """Allow at most ``limit`` anonymous posts per submitter in a trailing window.

    The window is rolling: a post stops counting exactly ``window`` after its
    creation time, independent of calendar days.
    """

    def __init__(
        self,
        db: Session,
        *,
        limit: int | None = None,
        window: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.posts = PostRepository(db)
        self.limit = settings.anonymous_post_limit if limit is None else limit
        self.window = window or timedelta(hours=settings.anonymous_window_hours)
        self.clock = clock

    def window_start(self, now: datetime | None = None) -> datetime:
        return (now or self.clock()) - self.window

    def recent_count(self, submitter_key: str) -> int:
        return self.posts.count_anonymous_since(submitter_key, self.window_start())

    def remaining(self, submitter_key: str) -> int:
        return max(self.limit - self.recent_count(submitter_key), 0)

    def can_post_anonymously(self, submitter_key: str) -> bool:
        """Advisory check; :meth:`acquire` is what enforces the cap."""
        return self.recent_count(submitter_key) < self.limit

    def acquire(self, submitter_key: str) -> None:
        """Claim one anonymous slot for ``submitter_key`` or raise.

        Must run inside the same unit of work that inserts the post. The
        submitter's quota row is locked first, so concurrent submissions from
        the same submitter count and insert one after another.

        Raises:
            RateLimitError: If the submitter already used every slot in the window.
        """
        now = self.clock()
        quota = self._lock_quota(submitter_key)
        recent = self.posts.anonymous_since(submitter_key, self.window_start(now))
        if len(recent) >= self.limit:
            retry_after = self._retry_after(recent, now)
            logger.info(
                "Anonymous post refused for %s: %d posts in window",
                submitter_key.split(":", 1)[0],
                len(recent),
            )
            raise RateLimitError(
                f"Anonymous posting limit reached: {self.limit} posts every "
                f"{int(self.window.total_seconds() // 3600)} hours",
                limit=self.limit,
                remaining=0,
                retry_after=retry_after,
            )
        quota.last_post_at = now

    def _lock_quota(self, submitter_key: str) -> AnonymousQuota:
        # Two first submissions may both find no row; the losing insert is a no-op.
        self.db.execute(_insert_if_missing(self.db, submitter_key))
        stmt = (
            select(AnonymousQuota)
            .where(AnonymousQuota.submitter_key == submitter_key)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one()

    def _retry_after(self, recent: list[datetime], now: datetime) -> int:
        if not recent or self.limit <= 0:
            return math.ceil(self.window.total_seconds())
        # The slot frees up when the oldest post that still counts ages out.
        oldest_counted = recent[len(recent) - self.limit]
        return max(math.ceil((oldest_counted + self.window - now).total_seconds()), 1)


def _insert_if_missing(db: Session, submitter_key: str):  # type: ignore[no-untyped-def]
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return (
            postgresql.insert(AnonymousQuota)
            .values(submitter_key=submitter_key)
            .on_conflict_do_nothing(index_elements=[AnonymousQuota.submitter_key])
        )
    if dialect == "sqlite":
        return (
            sqlite.insert(AnonymousQuota)
            .values(submitter_key=submitter_key)
            .on_conflict_do_nothing(index_elements=[AnonymousQuota.submitter_key])
        )
    if dialect in ("mysql", "mariadb"):
        return insert(AnonymousQuota).values(submitter_key=submitter_key).prefix_with("IGNORE")
    raise NotImplementedError(f"Anonymous quotas are not supported on {dialect}")
