"""Remote and hybrid content stores.

``HttpContentStore`` talks to a remote Lumina content API over HTTP.
``HybridContentStore`` puts a primary store (usually the remote one) in
front of a local fallback: reads prefer the primary and drop back to the
fallback when it is unreachable or has no record, writes go to the primary
when it is reachable and are always mirrored locally.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter

from lumina.domain import Category, Comment, Post, PostStatus, User
from lumina.repositories.store import ContentStore
from lumina.services.errors import ConflictError, NotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409

T = TypeVar("T")

_COUNTER_FIELDS = {"likes", "views"}

_post_adapter = TypeAdapter(Post)
_posts_adapter = TypeAdapter(list[Post])
_user_adapter = TypeAdapter(User)
_users_adapter = TypeAdapter(list[User])

__all__ = ["HttpContentStore", "HybridContentStore"]


class HttpContentStore:
    """Content store client for a remote REST backend.

    Only posts and users are served remotely. Comment operations raise
    StoreUnavailableError so a HybridContentStore serves them locally.

    ``PUT /posts/{id}`` carries the editorial fields only, with ``If-Match``
    holding the expected status. Counters change through
    ``POST /posts/{id}/counters``, whose body holds deltas such as
    ``{"likes": -1}``; the response is the stored post.
    """

    def __init__(self, client: httpx.Client) -> None:
        """Initialize the store with a configured ``httpx.Client``.

        The client's ``base_url`` must point at the API root.
        """
        self.client = client

    @classmethod
    def from_url(cls, base_url: str, timeout: float = 5.0) -> HttpContentStore:
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response | None:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"{method} {url} failed: {exc}") from exc
        if response.status_code == HTTP_NOT_FOUND:
            return None
        if response.status_code == HTTP_CONFLICT:
            raise ConflictError(response.text or f"{method} {url} conflicted")
        if response.is_error:
            raise StoreUnavailableError(f"{method} {url} returned {response.status_code}")
        return response

    def get_post(self, post_id: str) -> Post | None:
        response = self._request("GET", f"/posts/{post_id}")
        return _post_adapter.validate_python(response.json()) if response else None

    def find_post(self, id_or_slug: str) -> Post | None:
        return self.get_post(id_or_slug)

    def list_posts(
        self,
        *,
        status: PostStatus | None = None,
        author_id: str | None = None,
        category: Category | None = None,
        include_deleted: bool = False,
    ) -> list[Post]:
        params: dict[str, str] = {}
        if status is not None:
            params["status"] = PostStatus(status).value
        if author_id is not None:
            params["author_id"] = author_id
        if category is not None:
            params["category"] = Category(category).value
        if include_deleted:
            params["include_deleted"] = "true"
        response = self._request("GET", "/posts", params=params)
        return _posts_adapter.validate_python(response.json()) if response else []

    def save_post(self, post: Post, *, expected_status: PostStatus | None = None) -> Post:
        """PUT the post without its counters, which the remote side owns."""
        headers = {}
        if expected_status is not None:
            headers["If-Match"] = PostStatus(expected_status).value
        response = self._request(
            "PUT",
            f"/posts/{post.id}",
            content=_post_adapter.dump_json(post, exclude=_COUNTER_FIELDS),
            headers={"Content-Type": "application/json", **headers},
        )
        if response is None:
            raise StoreUnavailableError(f"Remote store rejected post {post.id}")
        stored = _post_adapter.validate_python(response.json())
        post.likes = stored.likes
        post.views = stored.views
        return post

    def get_user(self, user_id: str) -> User | None:
        response = self._request("GET", f"/users/{user_id}")
        return _user_adapter.validate_python(response.json()) if response else None

    def get_user_by_email(self, email: str) -> User | None:
        response = self._request("GET", "/users", params={"email": email})
        if response is None:
            return None
        users = _users_adapter.validate_python(response.json())
        return users[0] if users else None

    def list_users(self) -> list[User]:
        response = self._request("GET", "/users")
        return _users_adapter.validate_python(response.json()) if response else []

    def save_user(self, user: User) -> User:
        response = self._request(
            "PUT",
            f"/users/{user.id}",
            content=_user_adapter.dump_json(user),
            headers={"Content-Type": "application/json"},
        )
        if response is None:
            raise StoreUnavailableError(f"Remote store rejected user {user.id}")
        return user

    def get_comment(self, comment_id: str) -> Comment | None:
        raise StoreUnavailableError("Comments are not served by the remote store")

    def list_comments(self, post_id: str) -> list[Comment]:
        raise StoreUnavailableError("Comments are not served by the remote store")

    def save_comment(self, comment: Comment) -> Comment:
        raise StoreUnavailableError("Comments are not served by the remote store")

    def save_engagement(
        self, post_id: str, user: User, *, likes_delta: int = 0
    ) -> tuple[Post, User]:
        response = self._request("POST", f"/posts/{post_id}/counters", json={"likes": likes_delta})
        if response is None:
            raise NotFoundError(f"Post {post_id} not found")
        self.save_user(user)
        return _post_adapter.validate_python(response.json()), user

    def increment_views(self, post_id: str) -> Post | None:
        try:
            response = self._request(
                "POST",
                f"/posts/{post_id}/counters",
                json={"views": 1},
                headers={"If-Match": PostStatus.PUBLISHED.value},
            )
        except ConflictError:
            # Not published; views are only counted on public posts.
            return None
        return _post_adapter.validate_python(response.json()) if response else None

    def close(self) -> None:
        self.client.close()


class HybridContentStore:
    """Primary-then-fallback composition of two content stores."""

    def __init__(self, primary: ContentStore, fallback: ContentStore) -> None:
        self.primary = primary
        self.fallback = fallback

    def _read(self, op: Callable[[ContentStore], T], empty: Callable[[T], bool]) -> T:
        try:
            result = op(self.primary)
        except StoreUnavailableError as exc:
            logger.warning("Primary store unavailable, reading locally: %s", exc)
            return op(self.fallback)
        if empty(result):
            return op(self.fallback)
        return result

    def _write(self, op: Callable[[ContentStore], T], mirror: Callable[[ContentStore], object]) -> T:
        try:
            result = op(self.primary)
        except StoreUnavailableError as exc:
            logger.warning("Primary store unavailable, writing locally only: %s", exc)
            return op(self.fallback)
        mirror(self.fallback)
        return result

    def get_post(self, post_id: str) -> Post | None:
        return self._read(lambda s: s.get_post(post_id), lambda r: r is None)

    def find_post(self, id_or_slug: str) -> Post | None:
        return self._read(lambda s: s.find_post(id_or_slug), lambda r: r is None)

    def list_posts(self, **filters: Any) -> list[Post]:
        try:
            return self.primary.list_posts(**filters)
        except StoreUnavailableError as exc:
            logger.warning("Primary store unavailable, listing locally: %s", exc)
            return self.fallback.list_posts(**filters)

    def save_post(self, post: Post, *, expected_status: PostStatus | None = None) -> Post:
        # Once the primary has accepted the write the local copy is a mirror,
        # so it is stored without the status precondition.
        return self._write(
            lambda s: s.save_post(post, expected_status=expected_status),
            lambda s: s.save_post(replace(post)),
        )

    def get_user(self, user_id: str) -> User | None:
        return self._read(lambda s: s.get_user(user_id), lambda r: r is None)

    def get_user_by_email(self, email: str) -> User | None:
        return self._read(lambda s: s.get_user_by_email(email), lambda r: r is None)

    def list_users(self) -> list[User]:
        try:
            return self.primary.list_users()
        except StoreUnavailableError as exc:
            logger.warning("Primary store unavailable, listing locally: %s", exc)
            return self.fallback.list_users()

    def save_user(self, user: User) -> User:
        return self._write(lambda s: s.save_user(user), lambda s: s.save_user(user))

    def get_comment(self, comment_id: str) -> Comment | None:
        return self._read(lambda s: s.get_comment(comment_id), lambda r: r is None)

    def list_comments(self, post_id: str) -> list[Comment]:
        return self._read(lambda s: s.list_comments(post_id), lambda r: not r)

    def save_comment(self, comment: Comment) -> Comment:
        return self._write(lambda s: s.save_comment(comment), lambda s: s.save_comment(comment))

    def save_engagement(
        self, post_id: str, user: User, *, likes_delta: int = 0
    ) -> tuple[Post, User]:
        def mirror(local: ContentStore) -> None:
            # Posts never mirrored locally have no counter to adjust.
            if local.get_post(post_id) is None:
                local.save_user(user)
            else:
                local.save_engagement(post_id, user, likes_delta=likes_delta)

        return self._write(lambda s: s.save_engagement(post_id, user, likes_delta=likes_delta), mirror)

    def increment_views(self, post_id: str) -> Post | None:
        try:
            post = self.primary.increment_views(post_id)
        except StoreUnavailableError as exc:
            logger.warning("Primary store unavailable, counting view locally: %s", exc)
            return self.fallback.increment_views(post_id)
        local = self.fallback.increment_views(post_id)
        return post if post is not None else local
