"""Models capturing voting interactions on posts."""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import Enum, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from roastr.db.session import Base
from roastr.db.time import UTCDateTime, utcnow


class VoteType(StrEnum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class PostVote(Base):
    """Per-user vote on a post."""

    __tablename__ = "post_vote"
    __table_args__ = (
        Index("ix_post_vote_post_id", "post_id"),
    )

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_profile.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # Composite primary key prevents duplicate votes from the same user.

    vote_type: Mapped[VoteType] = mapped_column(
        Enum(VoteType, native_enum=False, length=10, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
