# src/roastr/schemas/post.py
"""Post-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from roastr.models import Post, PostEdit, PostStatus, VoteType

from .tag import TagResponse

ANONYMOUS_NAME = "Anonymous"


class PostCreate(BaseModel):
    """Schema for creating a new post.

    Lengths and emptiness are checked by the post service so that the first
    failing rule is the one reported.
    """

    title: str = Field(..., description="Post title")
    content: dict[str, Any] | str = Field(
        ...,
        description="Editor document tree, or plain text with one paragraph per line",
    )
    tag_ids: list[int] = Field(default_factory=list, description="Selected tag ids")
    is_anonymous: bool = Field(False, description="Publish without attribution")


class PostEditRequest(BaseModel):
    """Schema for replacing the content of an existing post."""

    content: dict[str, Any] | str


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    content: dict[str, Any]
    content_html: str
    preview: str
    author_id: int | None
    username: str
    is_anonymous: bool
    status: PostStatus
    tags: list[TagResponse]
    upvotes: int
    downvotes: int
    is_nsfw: bool
    edit_count: int
    created_at: datetime
    updated_at: datetime
    user_vote: VoteType | None = None
    is_saved: bool = False

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_post(
        cls,
        post: Post,
        *,
        user_vote: VoteType | None = None,
        is_saved: bool = False,
    ) -> PostResponse:
        document = post.document
        if post.is_anonymous or post.author is None:
            username = ANONYMOUS_NAME
        else:
            username = post.author.username
        return cls(
            id=post.id,
            title=post.title,
            content=document.to_json(),
            content_html=document.to_html(),
            preview=document.preview(),
            author_id=None if post.is_anonymous else post.author_id,
            username=username,
            is_anonymous=post.is_anonymous,
            status=post.status,
            tags=[TagResponse.model_validate(tag) for tag in sorted(post.tags, key=lambda t: t.id)],
            upvotes=post.upvotes,
            downvotes=post.downvotes,
            is_nsfw=post.is_nsfw,
            edit_count=len(post.edits),
            created_at=post.created_at,
            updated_at=post.updated_at,
            user_vote=user_vote,
            is_saved=is_saved,
        )


class EditHistoryEntry(BaseModel):
    """A previous revision of a post's content."""

    content: dict[str, Any]
    content_html: str
    edited_at: datetime

    @classmethod
    def from_edit(cls, edit: PostEdit) -> EditHistoryEntry:
        document = edit.document
        return cls(content=document.to_json(), content_html=document.to_html(), edited_at=edit.edited_at)


class SaveResponse(BaseModel):
    post_id: int
    is_saved: bool
