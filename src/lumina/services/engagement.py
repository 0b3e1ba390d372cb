"""Reader engagement: likes, bookmarks, views and subscriptions."""

from __future__ import annotations

import logging

from lumina.domain import Post, PostStatus, User
from lumina.repositories.store import ContentStore
from lumina.services.errors import NotFoundError
from lumina.services.workflow import can_view

logger = logging.getLogger(__name__)


class EngagementService:
    """Idempotent toggles over a user's engagement lists and post counters."""

    def __init__(self, store: ContentStore) -> None:
        self.store = store

    def _load(self, post_id: str, user_id: str) -> tuple[Post, User]:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        post = self.store.get_post(post_id)
        if post is None or not can_view(user, post):
            raise NotFoundError(f"Post {post_id} not found")
        return post, user

    def toggle_like(self, post_id: str, user_id: str) -> tuple[Post, User]:
        """Like the post, or remove an existing like.

        The user's ``liked_posts`` and a +1/-1 change to the post's ``likes``
        counter are saved together; the counter is adjusted in the store, not
        overwritten from the copy read here.
        """
        post, user = self._load(post_id, user_id)
        if post.id in user.liked_posts:
            user.liked_posts = [pid for pid in user.liked_posts if pid != post.id]
            delta = -1
        else:
            user.liked_posts.append(post.id)
            delta = 1
        return self.store.save_engagement(post.id, user, likes_delta=delta)

    def toggle_bookmark(self, post_id: str, user_id: str) -> User:
        post, user = self._load(post_id, user_id)
        if post.id in user.bookmarks:
            user.bookmarks = [pid for pid in user.bookmarks if pid != post.id]
        else:
            user.bookmarks.append(post.id)
        return self.store.save_user(user)

    def bookmarked_posts(self, user_id: str) -> list[Post]:
        """Return the user's bookmarked posts that are still readable."""
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        posts = []
        for post_id in user.bookmarks:
            post = self.store.get_post(post_id)
            if post is not None and post.status != PostStatus.DELETED and can_view(user, post):
                posts.append(post)
        return posts

    def record_view(self, post_id: str) -> Post:
        post = self.store.increment_views(post_id)
        if post is None:
            raise NotFoundError(f"Post {post_id} not found")
        return post

    def subscribe(self, user_id: str) -> User:
        """Enroll the user in the paid fast-track, which waives verification."""
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if not user.is_subscribed:
            user.is_subscribed = True
            self.store.save_user(user)
            logger.info("User %s subscribed", user.id)
        return user
