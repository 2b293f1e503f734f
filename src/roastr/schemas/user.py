"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from roastr.models import UserRole


class ProfileUpdateRequest(BaseModel):
    """Schema for updating user profile information."""

    bio: str | None = Field(None, max_length=500, description="Short self description")


class RoleUpdate(BaseModel):
    role: UserRole


class UserResponse(BaseModel):
    """Schema for user information returned by the API."""

    id: int
    username: str
    role: UserRole
    bio: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserStatsResponse(BaseModel):
    """Totals over a user's visible, non-anonymous posts."""

    total_posts: int
    total_upvotes: int
    total_downvotes: int

    model_config = ConfigDict(from_attributes=True)


class UserProfileResponse(BaseModel):
    """Public profile view: the user plus their post statistics."""

    user: UserResponse
    stats: UserStatsResponse
    can_post_anonymously: bool | None = Field(
        None,
        description="Only reported when the caller views their own profile",
    )
