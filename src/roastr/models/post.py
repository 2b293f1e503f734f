"""SQLAlchemy models for posts, their tags and their edit history."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roastr.content.document import Document
from roastr.db.session import Base
from roastr.db.time import UTCDateTime, utcnow

if TYPE_CHECKING:
    from .tag import Tag
    from .user import UserProfile


class PostStatus(StrEnum):
    """Visibility states of a post; see ``roastr.services.moderation``."""

    VISIBLE = "visible"
    HIDDEN_REPORTED = "hidden_reported"
    HIDDEN_MANUAL = "hidden_manual"
    DELETED = "deleted"


post_tag = Table(
    "post_tag",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("post.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tag.id"), primary_key=True),
)


class Post(Base):
    """A roast: title, structured document body, tags and a visibility status.

    ``author_id`` is null for anonymous posts. ``submitter_key`` identifies who
    submitted an anonymous post for quota purposes only and is never exposed.
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_status_created_at", "status", "created_at"),
        Index("ix_post_anonymous_quota", "submitter_key", "is_anonymous", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    # Serialized document tree, see roastr.content.document.
    content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    author_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_profile.id"),
        nullable=True,
        index=True,
    )
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    submitter_key: Mapped[str | None] = mapped_column(String(80), nullable=True)
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PostStatus.VISIBLE,
    )
    # Denormalized tallies kept in step with post_vote inside the vote transaction.
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    author: Mapped[UserProfile | None] = relationship("UserProfile", lazy="selectin")
    tags: Mapped[set[Tag]] = relationship(
        "Tag",
        secondary=post_tag,
        collection_class=set,
        lazy="selectin",
    )
    edits: Mapped[list[PostEdit]] = relationship(
        "PostEdit",
        back_populates="post",
        order_by="PostEdit.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def document(self) -> Document:
        return Document.from_json(self.content)

    @property
    def tag_ids(self) -> set[int]:
        return {tag.id for tag in self.tags}

    @property
    def is_nsfw(self) -> bool:
        return any(tag.is_sensitive for tag in self.tags)


class PostEdit(Base):
    """Append-only snapshot of a post's content taken before each edit."""

    __tablename__ = "post_edit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    edited_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    post: Mapped[Post] = relationship("Post", back_populates="edits")

    @property
    def document(self) -> Document:
        return Document.from_json(self.content)
