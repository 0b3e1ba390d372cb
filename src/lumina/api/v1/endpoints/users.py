"""User-related endpoints for the Lumina API."""

from __future__ import annotations

from fastapi import APIRouter, status

from lumina.api.v1.dependencies import CurrentUserDep, EngagementDep, StoreDep
from lumina.core.security import create_access_token
from lumina.domain import Post, UserRole
from lumina.schemas.post import PostSummary
from lumina.schemas.user import RegisterResponse, UserCreate, UserResponse, UserUpdate
from lumina.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, store: StoreDep) -> RegisterResponse:
    """Register a reader or author and return a bearer token for it."""
    user = user_service.register_user(
        store,
        email=payload.email,
        name=payload.name,
        role=UserRole(payload.role),
        avatar=payload.avatar,
        bio=payload.bio,
    )
    return RegisterResponse(
        user=UserResponse.model_validate(user),
        access_token=create_access_token(user.id),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUserDep) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(payload: UserUpdate, current_user: CurrentUserDep, store: StoreDep) -> UserResponse:
    """Update the caller's profile."""
    user = user_service.update_profile(store, current_user.id, **payload.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user)


@router.post("/me/subscription", response_model=UserResponse)
async def subscribe(current_user: CurrentUserDep, engagement: EngagementDep) -> UserResponse:
    """Enroll in the paid fast-track, which waives identity verification."""
    return UserResponse.model_validate(engagement.subscribe(current_user.id))


@router.get("/me/bookmarks", response_model=list[PostSummary])
async def my_bookmarks(current_user: CurrentUserDep, engagement: EngagementDep) -> list[Post]:
    return engagement.bookmarked_posts(current_user.id)
