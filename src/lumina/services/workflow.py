"""Moderation and publication workflow for posts.

Posts move through DRAFT -> PENDING -> PUBLISHED / REJECTED /
REVISION_REQUESTED, can be soft-deleted and restored. Every transition is a
compare-and-swap on the status that was read: the store only accepts the
write if the post is still in that status, so two moderators acting on the
same post cannot both succeed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from lumina.core.settings import GovernanceSettings
from lumina.domain import (
    Category,
    FontStyle,
    PlagiarismMatch,
    Post,
    PostStatus,
    User,
    UserRole,
    new_id,
    utcnow,
)
from lumina.repositories.store import ContentStore
from lumina.services import gate
from lumina.services.content import make_excerpt, reading_time, slugify
from lumina.services.errors import (
    ConflictError,
    GateFailure,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SUBMITTABLE = frozenset({PostStatus.DRAFT, PostStatus.REVISION_REQUESTED})
EDITABLE = frozenset({PostStatus.DRAFT, PostStatus.PENDING, PostStatus.REVISION_REQUESTED})
APPROVABLE = frozenset({PostStatus.PENDING, PostStatus.REJECTED})
DECIDABLE = frozenset({PostStatus.PENDING})
DELETABLE = frozenset(
    {
        PostStatus.PUBLISHED,
        PostStatus.REJECTED,
        PostStatus.PENDING,
        PostStatus.REVISION_REQUESTED,
    }
)
RESTORABLE = frozenset({PostStatus.DELETED, PostStatus.REJECTED})

DECISION_KINDS = frozenset({PostStatus.REJECTED, PostStatus.REVISION_REQUESTED})
EDITABLE_FIELDS = frozenset({"title", "content", "category", "cover_image", "font_style", "tags"})


@dataclass
class PostDraft:
    """Author-supplied fields for a new manuscript."""

    title: str
    content: str
    category: Category = Category.UNCATEGORIZED
    cover_image: str = ""
    font_style: FontStyle = FontStyle.SERIF
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AuthorStats:
    """Totals shown on an author's dashboard."""

    post_count: int
    published_count: int
    total_views: int
    total_likes: int


def can_view(viewer: User | None, post: Post) -> bool:
    """Return True if ``viewer`` may read ``post``.

    Published posts are public; anything else is limited to its author and
    administrators.
    """
    if post.is_public:
        return True
    if viewer is None:
        return False
    return viewer.is_admin or viewer.id == post.author_id


class PublicationWorkflow:
    """Owns post state transitions, the submission gate and moderator decisions."""

    def __init__(
        self,
        store: ContentStore,
        governance: GovernanceSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.governance = governance or GovernanceSettings()
        self.clock = clock or utcnow

    # Lookups

    def _require_user(self, user_id: str) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _require_admin(self, user_id: str) -> User:
        user = self._require_user(user_id)
        if not user.is_admin:
            raise PermissionDeniedError("Council privileges required")
        return user

    def _require_post(self, post_id: str) -> Post:
        post = self.store.get_post(post_id)
        if post is None:
            raise NotFoundError(f"Post {post_id} not found")
        return post

    def _require_author(self, actor_id: str, post: Post) -> User:
        actor = self._require_user(actor_id)
        if actor.id != post.author_id:
            raise PermissionDeniedError("Only the author may change this manuscript")
        return actor

    # Core transition

    @staticmethod
    def _assert_can_move(
        post: Post,
        target: PostStatus,
        allowed: Iterable[PostStatus],
        expected_status: PostStatus | None,
    ) -> PostStatus:
        current = PostStatus(post.status)
        if expected_status is not None and PostStatus(expected_status) != current:
            raise ConflictError(
                f"Post {post.id} is {current.value}, expected {PostStatus(expected_status).value}"
            )
        if current not in allowed:
            raise ConflictError(f"Cannot move post {post.id} from {current.value} to {target.value}")
        return current

    def _transition(
        self,
        post: Post,
        target: PostStatus,
        *,
        allowed: Iterable[PostStatus],
        actor: User,
        expected_status: PostStatus | None,
        mutate: Callable[[Post], None] | None = None,
    ) -> Post:
        current = self._assert_can_move(post, target, allowed, expected_status)
        post.status = target
        post.updated_at = self.clock()
        if mutate is not None:
            mutate(post)
        self.store.save_post(post, expected_status=current)
        logger.info(
            "Post %s moved %s -> %s by %s", post.id, current.value, target.value, actor.id
        )
        return post

    def _derive(self, post: Post) -> None:
        post.slug = slugify(post.title)
        post.excerpt = make_excerpt(post.content, self.governance.excerpt_length)
        post.reading_time = reading_time(post.content, self.governance.words_per_minute)

    def _check_gate(self, post: Post) -> gate.GateReport:
        report = gate.evaluate(post, self.governance)
        if not report.passed:
            logger.info("Post %s blocked at submission: %s", post.id, report.failed_checks)
            raise GateFailure(report)
        return report

    # Authoring

    def create_post(self, actor_id: str, draft: PostDraft, *, submit: bool = False) -> Post:
        """Create a manuscript as a draft, or send it straight to moderation.

        Args:
            actor_id: Author creating the post
            draft: Author-supplied fields
            submit: When True the gate runs and the post starts in PENDING

        Returns:
            The persisted post

        Raises:
            PermissionDeniedError: If the actor is a reader, or cannot publish
                and ``submit`` is set
            GateFailure: If ``submit`` is set and a quality check fails
        """
        author = self._require_user(actor_id)
        if author.role == UserRole.READER:
            raise PermissionDeniedError("Readers cannot author posts")

        now = self.clock()
        post = Post(
            id=new_id(),
            slug="",
            title=draft.title.strip(),
            content=draft.content,
            author_id=author.id,
            author_name=author.name,
            category=Category(draft.category),
            cover_image=draft.cover_image,
            font_style=FontStyle(draft.font_style),
            tags=list(draft.tags),
            status=PostStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        self._derive(post)

        if submit:
            if not author.can_publish:
                raise PermissionDeniedError("Author identity has not been verified")
            self._check_gate(post)
            post.status = PostStatus.PENDING

        self.store.save_post(post)
        logger.info("Post %s created as %s by %s", post.id, post.status.value, author.id)
        return post

    def update_post(self, actor_id: str, post_id: str, **changes: Any) -> Post:
        """Apply author edits to a manuscript that has not been approved yet.

        The author's current name is re-captured on every edit.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        post = self._require_post(post_id)
        author = self._require_author(actor_id, post)
        current = PostStatus(post.status)
        if current not in EDITABLE:
            raise ConflictError(f"Post {post.id} cannot be edited while {current.value}")

        for name, value in changes.items():
            if value is None:
                continue
            if name == "category":
                value = Category(value)
            elif name == "font_style":
                value = FontStyle(value)
            elif name == "title":
                value = value.strip()
            elif name == "tags":
                value = list(value)
            setattr(post, name, value)

        post.author_name = author.name
        post.updated_at = self.clock()
        self._derive(post)
        self.store.save_post(post, expected_status=current)
        return post

    def submit(
        self,
        actor_id: str,
        post_id: str,
        expected_status: PostStatus | None = None,
    ) -> Post:
        """Send a draft or revised manuscript to moderation.

        Raises:
            GateFailure: Carrying every failed check when the gate rejects it
            PermissionDeniedError: If the actor is not the author or cannot
                publish
            ConflictError: If the post is not a draft or awaiting revision
        """
        post = self._require_post(post_id)
        author = self._require_author(actor_id, post)
        if not author.can_publish:
            raise PermissionDeniedError("Author identity has not been verified")
        self._assert_can_move(post, PostStatus.PENDING, SUBMITTABLE, expected_status)
        self._check_gate(post)
        return self._transition(
            post,
            PostStatus.PENDING,
            allowed=SUBMITTABLE,
            actor=author,
            expected_status=expected_status,
        )

    def evaluate_gate(self, post: Post) -> gate.GateReport:
        return gate.evaluate(post, self.governance)

    def audit(self, actor_id: str, post_id: str) -> gate.GateReport:
        """Return the gate report for a post the actor can see, without side effects."""
        post = self.get_visible_post(actor_id, post_id)
        return self.evaluate_gate(post)

    def scannable_post(self, actor_id: str, post_id: str) -> Post:
        """Return a post the actor may run an originality scan on.

        Raises:
            NotFoundError: If the actor cannot see the post
            PermissionDeniedError: If the actor is neither its author nor an
                administrator
        """
        post = self.get_visible_post(actor_id, post_id)
        actor = self._require_user(actor_id)
        if not (actor.is_admin or actor.id == post.author_id):
            raise PermissionDeniedError("Only the author or the council may scan this post")
        return post

    def attach_originality(
        self,
        actor_id: str,
        post_id: str,
        score: float,
        matches: Iterable[PlagiarismMatch],
    ) -> Post:
        """Store an originality scan result on a post.

        The result is informational only and never changes the post's status.
        """
        if not 0 <= score <= 100:
            raise ValidationError("Plagiarism score must be between 0 and 100")
        post = self.scannable_post(actor_id, post_id)
        post.plagiarism_score = float(score)
        post.plagiarism_matches = list(matches)
        post.plagiarism_checked_at = self.clock()
        self.store.save_post(post, expected_status=post.status)
        if post.plagiarism_score >= self.governance.max_plagiarism:
            logger.warning(
                "Post %s originality score %.1f exceeds advisory threshold %d",
                post.id,
                post.plagiarism_score,
                self.governance.max_plagiarism,
            )
        return post

    def attach_analysis(self, actor_id: str, post_id: str, readability_score: float, tone: str) -> Post:
        """Store a readability analysis on a post; advisory like an originality scan."""
        if not 0 <= readability_score <= 100:
            raise ValidationError("Readability score must be between 0 and 100")
        post = self.scannable_post(actor_id, post_id)
        post.readability_score = float(readability_score)
        post.tone = tone
        self.store.save_post(post, expected_status=post.status)
        if post.readability_score < self.governance.min_readability:
            logger.info(
                "Post %s readability %.1f is below advisory minimum %d",
                post.id,
                post.readability_score,
                self.governance.min_readability,
            )
        return post

    # Moderation

    def approve(
        self,
        actor_id: str,
        post_id: str,
        expected_status: PostStatus | None = None,
    ) -> Post:
        """Publish a pending or previously rejected post and clear its note."""
        admin = self._require_admin(actor_id)
        post = self._require_post(post_id)

        def publish(p: Post) -> None:
            p.moderation_note = None
            if p.published_at is None:
                p.published_at = p.updated_at

        return self._transition(
            post,
            PostStatus.PUBLISHED,
            allowed=APPROVABLE,
            actor=admin,
            expected_status=expected_status,
            mutate=publish,
        )

    quick_approve = approve

    def reject(
        self,
        actor_id: str,
        post_id: str,
        note: str | None = "",
        expected_status: PostStatus | None = None,
    ) -> Post:
        """Reject a pending post; the note is optional and stored as given."""
        return self.decide(actor_id, post_id, PostStatus.REJECTED, note, expected_status)

    def request_revision(
        self,
        actor_id: str,
        post_id: str,
        note: str | None,
        expected_status: PostStatus | None = None,
    ) -> Post:
        """Return a pending post to its author with mandatory feedback."""
        return self.decide(actor_id, post_id, PostStatus.REVISION_REQUESTED, note, expected_status)

    def decide(
        self,
        actor_id: str,
        post_id: str,
        kind: PostStatus,
        note: str | None = "",
        expected_status: PostStatus | None = None,
    ) -> Post:
        """Record a moderator's rejection or revision request.

        Raises:
            ValidationError: If ``kind`` is not a decision, or a revision is
                requested without a note. Checked before anything is read.
        """
        kind = PostStatus(kind)
        if kind not in DECISION_KINDS:
            raise ValidationError(f"{kind.value} is not a moderation decision")
        note = (note or "").strip()
        if kind == PostStatus.REVISION_REQUESTED and not note:
            raise ValidationError("Revision requests require feedback for the author")

        admin = self._require_admin(actor_id)
        post = self._require_post(post_id)

        def annotate(p: Post) -> None:
            p.moderation_note = note

        return self._transition(
            post,
            kind,
            allowed=DECIDABLE,
            actor=admin,
            expected_status=expected_status,
            mutate=annotate,
        )

    def delete(
        self,
        actor_id: str,
        post_id: str,
        expected_status: PostStatus | None = None,
    ) -> Post:
        """Soft-delete a post. Allowed for its author and for administrators."""
        actor = self._require_user(actor_id)
        post = self._require_post(post_id)
        if not (actor.is_admin or actor.id == post.author_id):
            raise PermissionDeniedError("Only the author or the council may delete this post")
        return self._transition(
            post,
            PostStatus.DELETED,
            allowed=DELETABLE,
            actor=actor,
            expected_status=expected_status,
        )

    def restore(
        self,
        actor_id: str,
        post_id: str,
        expected_status: PostStatus | None = None,
    ) -> Post:
        """Bring a deleted or rejected post back as published, without re-gating."""
        admin = self._require_admin(actor_id)
        post = self._require_post(post_id)

        def republish(p: Post) -> None:
            p.moderation_note = None
            if p.published_at is None:
                p.published_at = p.updated_at

        return self._transition(
            post,
            PostStatus.PUBLISHED,
            allowed=RESTORABLE,
            actor=admin,
            expected_status=expected_status,
            mutate=republish,
        )

    def moderation_queue(
        self,
        actor_id: str,
        status: PostStatus = PostStatus.PENDING,
    ) -> list[Post]:
        self._require_admin(actor_id)
        return self.store.list_posts(status=PostStatus(status))

    # Identity verification

    def pending_authors(self, actor_id: str) -> list[User]:
        """Authors who are neither verified nor subscribed."""
        self._require_admin(actor_id)
        return [user for user in self.store.list_users() if user.awaiting_verification]

    def approve_identity(self, actor_id: str, user_id: str) -> User:
        """Mark an author as verified by the council.

        Raises:
            ConflictError: If the target account is not an author
        """
        admin = self._require_admin(actor_id)
        user = self._require_user(user_id)
        if user.role != UserRole.AUTHOR:
            raise ConflictError(f"User {user.id} is a {UserRole(user.role).value}, not an author")
        user.is_approved = True
        self.store.save_user(user)
        logger.info("Author %s verified by %s", user.id, admin.id)
        return user

    # Reading

    def get_visible_post(self, viewer_id: str | None, id_or_slug: str) -> Post:
        """Return a post if the viewer may read it.

        Posts the viewer may not see are reported as missing.
        """
        post = self.store.find_post(id_or_slug)
        viewer = self.store.get_user(viewer_id) if viewer_id else None
        if post is None or not can_view(viewer, post):
            raise NotFoundError(f"Post {id_or_slug} not found")
        return post

    def list_public(
        self,
        category: Category | None = None,
        author_id: str | None = None,
    ) -> list[Post]:
        """Published posts, newest first, optionally for one category or author."""
        return self.store.list_posts(
            status=PostStatus.PUBLISHED,
            category=Category(category) if category else None,
            author_id=author_id,
        )

    def featured_post(self) -> Post | None:
        published = self.list_public()
        return next((p for p in published if p.is_featured), published[0] if published else None)

    def list_author_posts(self, actor_id: str, status: PostStatus | None = None) -> list[Post]:
        """Posts shown on an author's dashboard.

        Administrators see every author's posts. Deleted posts are only
        included when explicitly requested.
        """
        actor = self._require_user(actor_id)
        author_id = None if actor.is_admin else actor.id
        return self.store.list_posts(
            status=PostStatus(status) if status else None,
            author_id=author_id,
        )

    def author_stats(self, actor_id: str) -> AuthorStats:
        """Dashboard totals over every post the actor authored, deleted ones included.

        Administrators get totals across all authors.
        """
        actor = self._require_user(actor_id)
        posts = self.store.list_posts(
            author_id=None if actor.is_admin else actor.id,
            include_deleted=True,
        )
        return AuthorStats(
            post_count=len(posts),
            published_count=sum(1 for p in posts if p.status == PostStatus.PUBLISHED),
            total_views=sum(p.views for p in posts),
            total_likes=sum(p.likes for p in posts),
        )
