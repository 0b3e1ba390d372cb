"""Data access helpers backing the content store with SQLAlchemy."""

from __future__ import annotations

from dataclasses import asdict
from datetime import UTC, datetime

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from lumina.domain import (
    Category,
    Comment,
    FontStyle,
    PlagiarismMatch,
    Post,
    PostStatus,
    User,
    UserRole,
)
from lumina.models import CommentRecord, PostRecord, UserRecord
from lumina.repositories.store import check_expected_status
from lumina.services.errors import ConflictError, NotFoundError

__all__ = ["SqlContentStore"]

_POST_FIELDS = (
    "slug",
    "title",
    "content",
    "excerpt",
    "author_id",
    "author_name",
    "cover_image",
    "moderation_note",
    "plagiarism_score",
    "plagiarism_checked_at",
    "readability_score",
    "tone",
    "reading_time",
    "is_featured",
    "created_at",
    "updated_at",
    "published_at",
)
_COUNTER_FIELDS = ("likes", "views")


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back out.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _post_values(post: Post, *, counters: bool = False) -> dict[str, object]:
    fields = _POST_FIELDS + _COUNTER_FIELDS if counters else _POST_FIELDS
    values: dict[str, object] = {name: getattr(post, name) for name in fields}
    values.update(
        category=Category(post.category).value,
        font_style=FontStyle(post.font_style).value,
        status=PostStatus(post.status).value,
        tags=list(post.tags),
        plagiarism_matches=[asdict(match) for match in post.plagiarism_matches],
    )
    return values


def _to_post(record: PostRecord) -> Post:
    return Post(
        id=record.id,
        slug=record.slug,
        title=record.title,
        content=record.content,
        excerpt=record.excerpt,
        author_id=record.author_id,
        author_name=record.author_name,
        category=Category(record.category),
        cover_image=record.cover_image,
        font_style=FontStyle(record.font_style),
        tags=list(record.tags or []),
        status=PostStatus(record.status),
        moderation_note=record.moderation_note,
        plagiarism_score=record.plagiarism_score,
        plagiarism_matches=[PlagiarismMatch(**match) for match in record.plagiarism_matches or []],
        plagiarism_checked_at=_aware(record.plagiarism_checked_at),
        readability_score=record.readability_score,
        tone=record.tone,
        reading_time=record.reading_time,
        likes=record.likes,
        views=record.views,
        is_featured=record.is_featured,
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
        published_at=_aware(record.published_at),
    )


def _to_user(record: UserRecord) -> User:
    return User(
        id=record.id,
        email=record.email,
        name=record.name,
        role=UserRole(record.role),
        avatar=record.avatar,
        bio=record.bio,
        is_approved=record.is_approved,
        is_subscribed=record.is_subscribed,
        bookmarks=list(record.bookmarks or []),
        liked_posts=list(record.liked_posts or []),
        joined_at=_aware(record.joined_at),
    )


def _apply_user(record: UserRecord, user: User) -> None:
    record.email = user.email
    record.name = user.name
    record.role = UserRole(user.role).value
    record.avatar = user.avatar
    record.bio = user.bio
    record.is_approved = user.is_approved
    record.is_subscribed = user.is_subscribed
    record.bookmarks = list(user.bookmarks)
    record.liked_posts = list(user.liked_posts)
    record.joined_at = user.joined_at


def _to_comment(record: CommentRecord) -> Comment:
    return Comment(
        id=record.id,
        post_id=record.post_id,
        author_id=record.author_id,
        author_name=record.author_name,
        content=record.content,
        parent_id=record.parent_id,
        is_pinned=record.is_pinned,
        is_deleted=record.is_deleted,
        created_at=_aware(record.created_at),
    )


class SqlContentStore:
    """Content store backed by a SQLAlchemy session.

    Every ``save_*`` call commits, so each entity write is atomic on its own.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the store with a SQLAlchemy session."""
        self.session = session

    # Posts

    def get_post(self, post_id: str) -> Post | None:
        record = self.session.get(PostRecord, post_id, populate_existing=True)
        return _to_post(record) if record else None

    def find_post(self, id_or_slug: str) -> Post | None:
        """Return a post by id, falling back to the first slug match."""
        record = self.session.get(PostRecord, id_or_slug, populate_existing=True)
        if record is None:
            record = self.session.scalars(
                select(PostRecord)
                .where(PostRecord.slug == id_or_slug)
                .order_by(PostRecord.created_at.desc())
                .limit(1)
            ).first()
        return _to_post(record) if record else None

    def list_posts(
        self,
        *,
        status: PostStatus | None = None,
        author_id: str | None = None,
        category: Category | None = None,
        include_deleted: bool = False,
    ) -> list[Post]:
        """Return posts matching the filters, newest first."""
        stmt = select(PostRecord).execution_options(populate_existing=True)
        if status is not None:
            stmt = stmt.where(PostRecord.status == PostStatus(status).value)
        elif not include_deleted:
            stmt = stmt.where(PostRecord.status != PostStatus.DELETED.value)
        if author_id is not None:
            stmt = stmt.where(PostRecord.author_id == author_id)
        if category is not None:
            stmt = stmt.where(PostRecord.category == Category(category).value)
        stmt = stmt.order_by(PostRecord.created_at.desc())
        return [_to_post(record) for record in self.session.scalars(stmt)]

    def save_post(self, post: Post, *, expected_status: PostStatus | None = None) -> Post:
        """Insert or update a post.

        Counters are only written on insert; updates leave the stored
        ``likes`` and ``views`` alone and copy them back onto ``post``.

        Args:
            post: Entity to persist
            expected_status: When given, the update only applies if the stored
                status still equals this value

        Raises:
            ConflictError: If ``expected_status`` no longer holds
        """
        values = _post_values(post)
        if expected_status is None:
            record = self.session.get(PostRecord, post.id)
            if record is None:
                self.session.add(PostRecord(id=post.id, **_post_values(post, counters=True)))
            else:
                for name, value in values.items():
                    setattr(record, name, value)
            self.session.commit()
            self._refresh_counters(post)
            return post

        result = self.session.execute(
            update(PostRecord)
            .where(
                PostRecord.id == post.id,
                PostRecord.status == PostStatus(expected_status).value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.session.rollback()
            current = self.session.get(PostRecord, post.id, populate_existing=True)
            check_expected_status(
                post.id,
                PostStatus(current.status) if current else None,
                expected_status,
            )
            raise ConflictError(f"Post {post.id} changed concurrently")
        self.session.commit()
        self._refresh_counters(post)
        return post

    def _refresh_counters(self, post: Post) -> None:
        record = self.session.get(PostRecord, post.id, populate_existing=True)
        if record is not None:
            post.likes = record.likes
            post.views = record.views

    def _bump_counters(
        self,
        post_id: str,
        *,
        likes: int = 0,
        views: int = 0,
        status: PostStatus | None = None,
    ) -> bool:
        # Evaluated by the database so concurrent bumps never overwrite each other.
        stmt = update(PostRecord).where(PostRecord.id == post_id)
        if status is not None:
            stmt = stmt.where(PostRecord.status == PostStatus(status).value)
        result = self.session.execute(
            stmt.values(
                likes=case((PostRecord.likes + likes < 0, 0), else_=PostRecord.likes + likes),
                views=PostRecord.views + views,
            ).execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # Users

    def get_user(self, user_id: str) -> User | None:
        record = self.session.get(UserRecord, user_id, populate_existing=True)
        return _to_user(record) if record else None

    def get_user_by_email(self, email: str) -> User | None:
        record = self.session.scalars(
            select(UserRecord).where(func.lower(UserRecord.email) == email.strip().lower())
        ).first()
        return _to_user(record) if record else None

    def list_users(self) -> list[User]:
        stmt = select(UserRecord).order_by(UserRecord.joined_at)
        return [_to_user(record) for record in self.session.scalars(stmt)]

    def save_user(self, user: User) -> User:
        self._stage_user(user)
        self.session.commit()
        return user

    def _stage_user(self, user: User) -> None:
        record = self.session.get(UserRecord, user.id)
        if record is None:
            record = UserRecord(id=user.id)
            self.session.add(record)
        _apply_user(record, user)

    # Comments

    def get_comment(self, comment_id: str) -> Comment | None:
        record = self.session.get(CommentRecord, comment_id, populate_existing=True)
        return _to_comment(record) if record else None

    def list_comments(self, post_id: str) -> list[Comment]:
        stmt = (
            select(CommentRecord)
            .where(CommentRecord.post_id == post_id)
            .order_by(CommentRecord.seq)
        )
        return [_to_comment(record) for record in self.session.scalars(stmt)]

    def save_comment(self, comment: Comment) -> Comment:
        record = self.session.get(CommentRecord, comment.id)
        if record is None:
            next_seq = self.session.scalar(select(func.coalesce(func.max(CommentRecord.seq), 0))) + 1
            record = CommentRecord(id=comment.id, seq=next_seq)
            self.session.add(record)
        record.post_id = comment.post_id
        record.author_id = comment.author_id
        record.author_name = comment.author_name
        record.content = comment.content
        record.parent_id = comment.parent_id
        record.is_pinned = comment.is_pinned
        record.is_deleted = comment.is_deleted
        record.created_at = comment.created_at
        self.session.commit()
        return comment

    # Engagement

    def save_engagement(
        self, post_id: str, user: User, *, likes_delta: int = 0
    ) -> tuple[Post, User]:
        """Apply a like delta and persist the user's engagement lists in one commit.

        Raises:
            NotFoundError: If the post does not exist
        """
        if not self._bump_counters(post_id, likes=likes_delta):
            self.session.rollback()
            raise NotFoundError(f"Post {post_id} not found")
        self._stage_user(user)
        self.session.commit()
        record = self.session.get(PostRecord, post_id, populate_existing=True)
        return _to_post(record), user

    def increment_views(self, post_id: str) -> Post | None:
        """Count one view of a published post; None if it is missing or not published."""
        if not self._bump_counters(post_id, views=1, status=PostStatus.PUBLISHED):
            self.session.rollback()
            return None
        self.session.commit()
        return self.get_post(post_id)
