# src/roastr/schemas/moderation.py
"""Moderation-related Pydantic schemas."""

from pydantic import BaseModel, Field

from roastr.models import PostStatus

from .post import PostResponse


class ReportResponse(BaseModel):
    """Result of filing a report against a post."""

    post_id: int
    report_count: int
    status: PostStatus
    auto_hidden: bool = Field(..., description="True if this report hid the post")


class QueueEntryResponse(BaseModel):
    """A post awaiting moderator review."""

    post: PostResponse
    report_count: int
