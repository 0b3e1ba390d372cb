"""Account helpers for registering and updating users."""
from __future__ import annotations

import logging

from lumina.domain import User, UserRole, new_id, utcnow
from lumina.repositories.store import ContentStore
from lumina.services.errors import ConflictError, NotFoundError, ValidationError

__all__ = [
    "register_user",
    "update_profile",
]

logger = logging.getLogger(__name__)


def register_user(
    store: ContentStore,
    email: str,
    name: str,
    role: UserRole = UserRole.READER,
    avatar: str = "",
    bio: str = "",
) -> User:
    """Persist a new reader or author account.

    Administrators are never created through registration.
    """
    email = (email or "").strip().lower()
    name = (name or "").strip()
    if not email or not name:
        raise ValidationError("Email and name are required")
    role = UserRole(role)
    if role == UserRole.ADMIN:
        raise ValidationError("Council accounts cannot be self-registered")
    if store.get_user_by_email(email) is not None:
        raise ConflictError(f"An account already exists for {email}")

    user = User(
        id=new_id(),
        email=email,
        name=name,
        role=role,
        avatar=avatar,
        bio=bio,
        joined_at=utcnow(),
    )
    store.save_user(user)
    logger.info("Registered %s account %s", role.value, user.id)
    return user


def update_profile(
    store: ContentStore,
    user_id: str,
    *,
    name: str | None = None,
    avatar: str | None = None,
    bio: str | None = None,
) -> User:
    """Apply partial profile updates.

    Posts keep the author name captured when they were last edited.
    """
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    if name is not None:
        if not name.strip():
            raise ValidationError("Name cannot be blank")
        user.name = name.strip()
    if avatar is not None:
        user.avatar = avatar
    if bio is not None:
        user.bio = bio
    return store.save_user(user)
