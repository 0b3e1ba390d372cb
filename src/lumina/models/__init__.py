"""SQLAlchemy models for the Lumina application."""

from .comment import CommentRecord
from .post import PostRecord
from .user import UserRecord

__all__ = ["CommentRecord", "PostRecord", "UserRecord"]
