"""Threaded discussion attached to posts."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from lumina.domain import Comment, Post, User, new_id, utcnow
from lumina.repositories.store import ContentStore
from lumina.services.errors import NotFoundError, PermissionDeniedError, ValidationError
from lumina.services.workflow import can_view

logger = logging.getLogger(__name__)

DELETED_COMMENT_TEXT = "[Discourse entry purged for narrative hygiene]"


@dataclass
class CommentNode:
    """A comment together with its replies."""

    comment: Comment
    children: list[CommentNode] = field(default_factory=list)


def build_thread(comments: Iterable[Comment]) -> list[CommentNode]:
    """Arrange comments into a reply tree.

    Comments whose parent cannot be found become roots. Roots are ordered
    pinned first, then newest first; replies keep the order they were given.
    """
    ordered = list(comments)
    nodes = {comment.id: CommentNode(comment) for comment in ordered}
    roots: list[CommentNode] = []
    for comment in ordered:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_id) if comment.parent_id else None
        if parent is not None and parent is not node:
            parent.children.append(node)
        else:
            roots.append(node)
    roots.sort(key=lambda n: n.comment.created_at, reverse=True)
    roots.sort(key=lambda n: not n.comment.is_pinned)
    return roots


class DiscourseService:
    """Adds, masks, pins and threads comments on a post."""

    def __init__(self, store: ContentStore, clock: Callable[[], datetime] | None = None) -> None:
        self.store = store
        self.clock = clock or utcnow

    def _require_user(self, user_id: str) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _require_comment(self, comment_id: str) -> tuple[Comment, Post]:
        comment = self.store.get_comment(comment_id)
        if comment is None:
            raise NotFoundError(f"Comment {comment_id} not found")
        post = self.store.get_post(comment.post_id)
        if post is None:
            raise NotFoundError(f"Post {comment.post_id} not found")
        return comment, post

    def thread(self, viewer_id: str | None, post_id: str) -> list[CommentNode]:
        viewer = self.store.get_user(viewer_id) if viewer_id else None
        post = self.store.get_post(post_id)
        if post is None or not can_view(viewer, post):
            raise NotFoundError(f"Post {post_id} not found")
        return build_thread(self.store.list_comments(post.id))

    def add_comment(
        self,
        actor_id: str,
        post_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> Comment:
        """Post a comment or reply.

        Raises:
            ValidationError: If the content is blank or the parent belongs to
                another post
            NotFoundError: If the post is missing or not visible to the actor
        """
        if not (content or "").strip():
            raise ValidationError("Comment content is required")
        actor = self._require_user(actor_id)
        post = self.store.get_post(post_id)
        if post is None or not can_view(actor, post):
            raise NotFoundError(f"Post {post_id} not found")
        if parent_id is not None:
            parent = self.store.get_comment(parent_id)
            if parent is not None and parent.post_id != post.id:
                raise ValidationError("Replies must stay within the same post")

        comment = Comment(
            id=new_id(),
            post_id=post.id,
            author_id=actor.id,
            author_name=actor.name,
            content=content.strip(),
            parent_id=parent_id,
            created_at=self.clock(),
        )
        return self.store.save_comment(comment)

    def delete_comment(self, actor_id: str, comment_id: str) -> Comment:
        """Mask a comment's content while keeping its place in the thread."""
        actor = self._require_user(actor_id)
        comment, post = self._require_comment(comment_id)
        if not (actor.is_admin or actor.id in (comment.author_id, post.author_id)):
            raise PermissionDeniedError("Not allowed to delete this comment")
        comment.is_deleted = True
        comment.content = DELETED_COMMENT_TEXT
        logger.info("Comment %s on post %s masked by %s", comment.id, post.id, actor.id)
        return self.store.save_comment(comment)

    def toggle_pin(self, actor_id: str, comment_id: str) -> Comment:
        actor = self._require_user(actor_id)
        comment, post = self._require_comment(comment_id)
        if not (actor.is_admin or actor.id == post.author_id):
            raise PermissionDeniedError("Only the post author or the council may pin comments")
        if comment.parent_id and self.store.get_comment(comment.parent_id) is not None:
            raise ValidationError("Only top-level comments can be pinned")
        comment.is_pinned = not comment.is_pinned
        return self.store.save_comment(comment)
