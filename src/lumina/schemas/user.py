"""User-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lumina.domain import UserRole


class UserCreate(BaseModel):
    """Registration payload for a reader or author account."""

    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=120)
    role: Literal["READER", "AUTHOR"] = "READER"
    avatar: str = ""
    bio: str = ""

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("email must be an address")
        return value


class UserUpdate(BaseModel):
    """Profile fields a user may change."""

    name: str | None = Field(None, min_length=1, max_length=120)
    avatar: str | None = None
    bio: str | None = None


class UserResponse(BaseModel):
    """Schema for user information returned by the API."""

    id: str
    email: str
    name: str
    role: UserRole
    avatar: str
    bio: str
    is_approved: bool
    is_subscribed: bool
    can_publish: bool
    bookmarks: list[str]
    liked_posts: list[str]
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(BaseModel):
    """Registration response carrying a bearer token for the new account."""

    user: UserResponse
    access_token: str
    token_type: str = "bearer"
