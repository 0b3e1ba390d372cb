"""Core entities shared by the workflow engine and the content stores.

These are plain dataclasses rather than ORM rows so the engine can operate
on detached values and hand them back to whichever store persists them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


def utcnow() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


class UserRole(str, Enum):
    """Roles recognised by the platform."""

    ADMIN = "ADMIN"
    AUTHOR = "AUTHOR"
    READER = "READER"


class PostStatus(str, Enum):
    """Workflow states of a post."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    REJECTED = "REJECTED"
    REVISION_REQUESTED = "REVISION_REQUESTED"
    DELETED = "DELETED"


class Category(str, Enum):
    """Editorial domains a post can be filed under."""

    ENGINEERING = "Engineering"
    DESIGN = "Design"
    CULTURE = "Culture"
    BUSINESS = "Business"
    PRODUCT = "Product"
    UNCATEGORIZED = "Uncategorized"


class FontStyle(str, Enum):
    """Typeface family chosen by the author for rendering."""

    SERIF = "serif"
    SANS = "sans"
    MONO = "mono"


@dataclass
class PlagiarismMatch:
    """External source that overlaps with a manuscript."""

    url: str
    title: str
    similarity: float
    matched_text: str


@dataclass
class User:
    """Reader, author or administrator account."""

    id: str
    email: str
    name: str
    role: UserRole = UserRole.READER
    avatar: str = ""
    bio: str = ""
    is_approved: bool = False
    is_subscribed: bool = False
    bookmarks: list[str] = field(default_factory=list)
    liked_posts: list[str] = field(default_factory=list)
    joined_at: datetime = field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def can_publish(self) -> bool:
        """Return True if the user may send manuscripts to moderation."""
        return self.is_admin or self.is_approved or self.is_subscribed

    @property
    def awaiting_verification(self) -> bool:
        return self.role == UserRole.AUTHOR and not self.is_approved and not self.is_subscribed


@dataclass
class Post:
    """Narrative submission moving through the moderation workflow."""

    id: str
    slug: str
    title: str
    content: str
    author_id: str
    author_name: str
    excerpt: str = ""
    category: Category = Category.UNCATEGORIZED
    cover_image: str = ""
    font_style: FontStyle = FontStyle.SERIF
    tags: list[str] = field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    moderation_note: str | None = None
    plagiarism_score: float | None = None
    plagiarism_matches: list[PlagiarismMatch] = field(default_factory=list)
    plagiarism_checked_at: datetime | None = None
    readability_score: float | None = None
    tone: str | None = None
    reading_time: int = 1
    likes: int = 0
    views: int = 0
    is_featured: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    published_at: datetime | None = None

    @property
    def is_public(self) -> bool:
        """Only published posts are visible to the general public."""
        return self.status == PostStatus.PUBLISHED


@dataclass
class Comment:
    """Entry in a post's threaded discussion."""

    id: str
    post_id: str
    author_id: str
    author_name: str
    content: str
    parent_id: str | None = None
    is_pinned: bool = False
    is_deleted: bool = False
    created_at: datetime = field(default_factory=utcnow)
