# src/roastr/schemas/tag.py
"""Tag-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class TagCreate(BaseModel):
    """Schema for adding a tag to the catalog."""

    name: str = Field(..., min_length=1, max_length=50, description="Unique tag name")
    emoji: str = Field("", max_length=16)
    is_sensitive: bool = Field(False, description="Sensitive tags mark posts NSFW")


class TagResponse(BaseModel):
    """Schema for tag information returned by the API."""

    id: int
    name: str
    emoji: str
    is_sensitive: bool

    model_config = ConfigDict(from_attributes=True)
