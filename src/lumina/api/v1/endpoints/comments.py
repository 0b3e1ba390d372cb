"""Discussion endpoints for the Lumina API."""

from __future__ import annotations

from fastapi import APIRouter, status

from lumina.api.v1.dependencies import CurrentUserDep, DiscourseDep, OptionalUserDep
from lumina.domain import Comment
from lumina.schemas.comment import CommentCreate, CommentResponse, CommentThreadResponse
from lumina.services.discourse import CommentNode

router = APIRouter(tags=["comments"])


@router.get("/posts/{post_id}/comments", response_model=list[CommentThreadResponse])
async def get_thread(post_id: str, discourse: DiscourseDep, viewer: OptionalUserDep) -> list[CommentNode]:
    """Get the comment tree for a post, pinned comments first."""
    return discourse.thread(viewer.id if viewer else None, post_id)


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: str,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    discourse: DiscourseDep,
) -> Comment:
    return discourse.add_comment(current_user.id, post_id, payload.content, payload.parent_id)


@router.delete("/comments/{comment_id}", response_model=CommentResponse)
async def delete_comment(comment_id: str, current_user: CurrentUserDep, discourse: DiscourseDep) -> Comment:
    """Mask a comment's content; its replies stay attached."""
    return discourse.delete_comment(current_user.id, comment_id)


@router.post("/comments/{comment_id}/pin", response_model=CommentResponse)
async def toggle_pin(comment_id: str, current_user: CurrentUserDep, discourse: DiscourseDep) -> Comment:
    return discourse.toggle_pin(current_user.id, comment_id)
