"""Moderation-related endpoints for the Lumina API.

Every route here requires council (ADMIN) privileges; the workflow engine
enforces that and answers 403 otherwise.
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from lumina.api.v1.dependencies import CurrentUserDep, WorkflowDep
from lumina.domain import Post, PostStatus
from lumina.schemas.moderation import ModerationAction, ModerationDecision
from lumina.schemas.post import PostResponse
from lumina.schemas.user import UserResponse

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.get("/queue", response_model=list[PostResponse])
async def get_moderation_queue(
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
    post_status: PostStatus = Query(PostStatus.PENDING, alias="status"),
) -> list[Post]:
    """Get posts in the given status, newest first."""
    return workflow.moderation_queue(current_user.id, post_status)


@router.post("/posts/{post_id}/approve", response_model=PostResponse)
async def approve_post(
    post_id: str,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
    payload: ModerationAction | None = None,
) -> Post:
    expected = payload.expected_status if payload else None
    return workflow.approve(current_user.id, post_id, expected_status=expected)


@router.post("/posts/{post_id}/decision", response_model=PostResponse)
async def decide_post(
    post_id: str,
    payload: ModerationDecision,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
) -> Post:
    """Reject a pending post or send it back for revision with feedback."""
    return workflow.decide(
        current_user.id,
        post_id,
        PostStatus(payload.kind),
        payload.note,
        expected_status=payload.expected_status,
    )


@router.post("/posts/{post_id}/restore", response_model=PostResponse)
async def restore_post(
    post_id: str,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
    payload: ModerationAction | None = None,
) -> Post:
    expected = payload.expected_status if payload else None
    return workflow.restore(current_user.id, post_id, expected_status=expected)


@router.get("/authors/pending", response_model=list[UserResponse])
async def pending_authors(current_user: CurrentUserDep, workflow: WorkflowDep) -> list[UserResponse]:
    """Authors awaiting identity verification."""
    return [UserResponse.model_validate(user) for user in workflow.pending_authors(current_user.id)]


@router.post("/authors/{user_id}/approve", response_model=UserResponse)
async def approve_author(
    user_id: str,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
) -> UserResponse:
    return UserResponse.model_validate(workflow.approve_identity(current_user.id, user_id))
