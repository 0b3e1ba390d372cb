"""Post-related endpoints for the Lumina API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from lumina.api.v1.dependencies import (
    AssistantDep,
    CurrentUserDep,
    EngagementDep,
    OptionalUserDep,
    WorkflowDep,
)
from lumina.domain import Category, Post, PostStatus, User
from lumina.schemas.post import (
    AuthorStatsResponse,
    EngagementResponse,
    GateReportResponse,
    PostCreate,
    PostResponse,
    PostSummary,
    PostUpdate,
    SubmitRequest,
)
from lumina.services.workflow import PostDraft

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


def _engagement_state(post: Post, user: User) -> EngagementResponse:
    return EngagementResponse(
        post_id=post.id,
        likes=post.likes,
        views=post.views,
        liked=post.id in user.liked_posts,
        bookmarked=post.id in user.bookmarks,
    )


@router.get("", response_model=list[PostSummary])
async def list_posts(
    workflow: WorkflowDep,
    category: Category | None = Query(None, description="Restrict to one category"),
    author_id: str | None = Query(None, description="Restrict to one author's profile"),
) -> list[Post]:
    """List published posts, newest first."""
    return workflow.list_public(category, author_id=author_id)


@router.get("/featured", response_model=PostResponse)
async def featured_post(workflow: WorkflowDep) -> Post:
    post = workflow.featured_post()
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No published posts",
        )
    return post


@router.get("/mine", response_model=list[PostSummary])
async def my_posts(
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
    post_status: PostStatus | None = Query(None, alias="status"),
) -> list[Post]:
    """Author dashboard; administrators see every author's posts."""
    return workflow.list_author_posts(current_user.id, post_status)


@router.get("/mine/stats", response_model=AuthorStatsResponse)
async def my_stats(current_user: CurrentUserDep, workflow: WorkflowDep) -> AuthorStatsResponse:
    return AuthorStatsResponse.model_validate(workflow.author_stats(current_user.id))


@router.get("/{id_or_slug}", response_model=PostResponse)
async def get_post(id_or_slug: str, workflow: WorkflowDep, viewer: OptionalUserDep) -> Post:
    """Get a post by id or slug if the caller may read it."""
    return workflow.get_visible_post(viewer.id if viewer else None, id_or_slug)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(payload: PostCreate, current_user: CurrentUserDep, workflow: WorkflowDep) -> Post:
    """Create a draft, or submit it for moderation straight away."""
    draft = PostDraft(
        title=payload.title,
        content=payload.content,
        category=payload.category,
        cover_image=payload.cover_image,
        font_style=payload.font_style,
        tags=payload.tags,
    )
    return workflow.create_post(current_user.id, draft, submit=payload.submit)


@router.patch("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
) -> Post:
    return workflow.update_post(current_user.id, post_id, **payload.model_dump(exclude_unset=True))


@router.post("/{post_id}/submit", response_model=PostResponse)
async def submit_post(
    post_id: str,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
    payload: SubmitRequest | None = None,
) -> Post:
    """Send a draft or revised manuscript through the gate to moderation."""
    expected = payload.expected_status if payload else None
    return workflow.submit(current_user.id, post_id, expected_status=expected)


@router.get("/{post_id}/audit", response_model=GateReportResponse)
async def audit_post(
    post_id: str,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
) -> GateReportResponse:
    """Run the submission gate without changing the post."""
    return GateReportResponse.model_validate(workflow.audit(current_user.id, post_id))


@router.delete("/{post_id}", response_model=PostResponse)
async def delete_post(post_id: str, current_user: CurrentUserDep, workflow: WorkflowDep) -> Post:
    return workflow.delete(current_user.id, post_id)


@router.post("/{post_id}/like", response_model=EngagementResponse)
async def toggle_like(
    post_id: str,
    current_user: CurrentUserDep,
    engagement: EngagementDep,
) -> EngagementResponse:
    post, user = engagement.toggle_like(post_id, current_user.id)
    return _engagement_state(post, user)


@router.post("/{post_id}/bookmark", response_model=EngagementResponse)
async def toggle_bookmark(
    post_id: str,
    current_user: CurrentUserDep,
    engagement: EngagementDep,
    workflow: WorkflowDep,
) -> EngagementResponse:
    user = engagement.toggle_bookmark(post_id, current_user.id)
    post = workflow.get_visible_post(user.id, post_id)
    return _engagement_state(post, user)


@router.post("/{post_id}/views", response_model=PostSummary)
async def record_view(post_id: str, engagement: EngagementDep) -> Post:
    return engagement.record_view(post_id)


@router.post("/{post_id}/originality-scan", response_model=PostResponse)
async def originality_scan(
    post_id: str,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
    assistant: AssistantDep,
) -> Post:
    """Scan the manuscript for overlap with published sources and store the result.

    The result is attached for the author and moderators to read; it never
    moves the post between states.
    """
    post = workflow.scannable_post(current_user.id, post_id)
    report = await assistant.audit_originality(post.title, post.content)
    logger.info("Originality scan for post %s scored %.1f", post.id, report.score)
    return workflow.attach_originality(current_user.id, post.id, report.score, report.matches)


@router.post("/{post_id}/analysis", response_model=PostResponse)
async def analyze_post(
    post_id: str,
    current_user: CurrentUserDep,
    workflow: WorkflowDep,
    assistant: AssistantDep,
) -> Post:
    """Rate the manuscript's readability and store the score and tone on it."""
    post = workflow.scannable_post(current_user.id, post_id)
    analysis = await assistant.analyze_post(post.content)
    return workflow.attach_analysis(current_user.id, post.id, analysis.readability_score, analysis.tone)
