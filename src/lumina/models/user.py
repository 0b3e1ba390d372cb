"""SQLAlchemy model for platform accounts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lumina.db.session import Base


class UserRecord(Base):
    """Reader, author or admin account keyed by an opaque id."""

    __tablename__ = "user_account"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="READER")
    avatar: Mapped[str] = mapped_column(Text, nullable=False, default="")
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Author verification by the council, and the paid fast-track.
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_subscribed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    bookmarks: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    liked_posts: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
