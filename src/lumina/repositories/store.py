"""Content store contract and the in-process implementation."""

from __future__ import annotations

import copy
import threading
from typing import Protocol

from lumina.domain import Category, Comment, Post, PostStatus, User
from lumina.services.errors import ConflictError, NotFoundError

__all__ = ["ContentStore", "MemoryContentStore", "check_expected_status"]


class ContentStore(Protocol):
    """Persistence operations the workflow engine depends on.

    Every method returns detached copies; mutating a returned entity has no
    effect until it is passed back to a ``save_*`` method.

    The ``likes`` and ``views`` counters are owned by the store. ``save_post``
    writes them only when it inserts a new post; afterwards they change
    through ``save_engagement`` and ``increment_views``, which apply deltas
    to the stored values so a stale copy can never roll them back.
    """

    def get_post(self, post_id: str) -> Post | None: ...

    def find_post(self, id_or_slug: str) -> Post | None: ...

    def list_posts(
        self,
        *,
        status: PostStatus | None = None,
        author_id: str | None = None,
        category: Category | None = None,
        include_deleted: bool = False,
    ) -> list[Post]: ...

    def save_post(self, post: Post, *, expected_status: PostStatus | None = None) -> Post: ...

    def get_user(self, user_id: str) -> User | None: ...

    def get_user_by_email(self, email: str) -> User | None: ...

    def list_users(self) -> list[User]: ...

    def save_user(self, user: User) -> User: ...

    def get_comment(self, comment_id: str) -> Comment | None: ...

    def list_comments(self, post_id: str) -> list[Comment]: ...

    def save_comment(self, comment: Comment) -> Comment: ...

    def save_engagement(
        self, post_id: str, user: User, *, likes_delta: int = 0
    ) -> tuple[Post, User]: ...

    def increment_views(self, post_id: str) -> Post | None: ...


def check_expected_status(post_id: str, current: PostStatus | None, expected: PostStatus) -> None:
    """Raise ConflictError unless the stored status still equals ``expected``."""
    if current != expected:
        raise ConflictError(
            f"Post {post_id} is {current.value if current else 'missing'}, "
            f"expected {expected.value}"
        )


def _matches(
    post: Post,
    status: PostStatus | None,
    author_id: str | None,
    category: Category | None,
    include_deleted: bool,
) -> bool:
    if status is not None:
        if post.status != status:
            return False
    elif not include_deleted and post.status == PostStatus.DELETED:
        return False
    if author_id is not None and post.author_id != author_id:
        return False
    if category is not None and post.category != category:
        return False
    return True


class MemoryContentStore:
    """Thread-safe in-memory store holding private copies of each entity."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._posts: dict[str, Post] = {}
        self._users: dict[str, User] = {}
        self._comments: dict[str, Comment] = {}

    def get_post(self, post_id: str) -> Post | None:
        with self._lock:
            post = self._posts.get(post_id)
            return copy.deepcopy(post) if post else None

    def find_post(self, id_or_slug: str) -> Post | None:
        with self._lock:
            post = self._posts.get(id_or_slug)
            if post is None:
                post = next((p for p in self._posts.values() if p.slug == id_or_slug), None)
            return copy.deepcopy(post) if post else None

    def list_posts(
        self,
        *,
        status: PostStatus | None = None,
        author_id: str | None = None,
        category: Category | None = None,
        include_deleted: bool = False,
    ) -> list[Post]:
        with self._lock:
            posts = [
                copy.deepcopy(post)
                for post in self._posts.values()
                if _matches(post, status, author_id, category, include_deleted)
            ]
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return posts

    def save_post(self, post: Post, *, expected_status: PostStatus | None = None) -> Post:
        with self._lock:
            current = self._posts.get(post.id)
            if expected_status is not None:
                check_expected_status(post.id, current.status if current else None, expected_status)
            if current is not None:
                post.likes = current.likes
                post.views = current.views
            self._posts[post.id] = copy.deepcopy(post)
        return post

    def get_user(self, user_id: str) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return copy.deepcopy(user) if user else None

    def get_user_by_email(self, email: str) -> User | None:
        needle = email.strip().lower()
        with self._lock:
            user = next((u for u in self._users.values() if u.email.lower() == needle), None)
            return copy.deepcopy(user) if user else None

    def list_users(self) -> list[User]:
        with self._lock:
            return [copy.deepcopy(user) for user in self._users.values()]

    def save_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = copy.deepcopy(user)
        return user

    def get_comment(self, comment_id: str) -> Comment | None:
        with self._lock:
            comment = self._comments.get(comment_id)
            return copy.deepcopy(comment) if comment else None

    def list_comments(self, post_id: str) -> list[Comment]:
        # dict preserves insertion order, which reply ordering relies on
        with self._lock:
            return [copy.deepcopy(c) for c in self._comments.values() if c.post_id == post_id]

    def save_comment(self, comment: Comment) -> Comment:
        with self._lock:
            self._comments[comment.id] = copy.deepcopy(comment)
        return comment

    def save_engagement(
        self, post_id: str, user: User, *, likes_delta: int = 0
    ) -> tuple[Post, User]:
        with self._lock:
            stored = self._posts.get(post_id)
            if stored is None:
                raise NotFoundError(f"Post {post_id} not found")
            stored.likes = max(0, stored.likes + likes_delta)
            self._users[user.id] = copy.deepcopy(user)
            return copy.deepcopy(stored), user

    def increment_views(self, post_id: str) -> Post | None:
        with self._lock:
            stored = self._posts.get(post_id)
            if stored is None or stored.status != PostStatus.PUBLISHED:
                return None
            stored.views += 1
            return copy.deepcopy(stored)
