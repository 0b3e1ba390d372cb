"""Moderation-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from lumina.domain import PostStatus


class ModerationDecision(BaseModel):
    """Schema for a moderator's rejection or revision request."""

    kind: Literal["REJECTED", "REVISION_REQUESTED"]
    note: str | None = Field(None, description="Feedback for the author; required for revisions")
    expected_status: PostStatus | None = Field(
        None,
        description="Status the moderator saw; the decision fails if it has changed",
    )


class ModerationAction(BaseModel):
    """Optional precondition for approve and restore."""

    expected_status: PostStatus | None = None
