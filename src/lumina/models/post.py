"""SQLAlchemy model for narrative posts."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lumina.db.session import Base


class PostRecord(Base):
    """Persisted form of a post.

    ``status`` is the workflow state; transitions are written with a
    conditional update on this column so concurrent moderators cannot both
    win.
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_status", "status"),
        Index("ix_post_author_id", "author_id"),
        Index("ix_post_slug", "slug"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    excerpt: Mapped[str] = mapped_column(Text, nullable=False, default="")

    author_id: Mapped[str] = mapped_column(String(32), nullable=False)
    # Snapshot of the author's name at the last write by the author.
    author_name: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[str] = mapped_column(String(32), nullable=False, default="Uncategorized")
    cover_image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    font_style: Mapped[str] = mapped_column(String(16), nullable=False, default="serif")
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default="DRAFT")
    moderation_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    plagiarism_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    plagiarism_matches: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    plagiarism_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    readability_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    tone: Mapped[str | None] = mapped_column(Text, nullable=True)

    reading_time: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
