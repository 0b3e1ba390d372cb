"""Discussion-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    parent_id: str | None = Field(None, description="Comment being replied to")


class CommentResponse(BaseModel):
    """Schema for a single comment returned by the API."""

    id: str
    post_id: str
    author_id: str
    author_name: str
    content: str
    parent_id: str | None
    is_pinned: bool
    is_deleted: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentThreadResponse(BaseModel):
    """A comment with its nested replies."""

    comment: CommentResponse
    children: list[CommentThreadResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


CommentThreadResponse.model_rebuild()
