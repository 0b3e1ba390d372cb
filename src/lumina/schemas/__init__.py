"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .assistant import (
    AnalysisResponse,
    AnalyzeRequest,
    DefineRequest,
    DefinitionResponse,
    ManuscriptRequest,
    PolishResponse,
    RefineResponse,
    SpeechRequest,
)
from .comment import CommentCreate, CommentResponse, CommentThreadResponse
from .moderation import ModerationAction, ModerationDecision
from .post import (
    AuthorStatsResponse,
    EngagementResponse,
    GateReportResponse,
    PostCreate,
    PostResponse,
    PostSummary,
    PostUpdate,
    SubmitRequest,
)
from .user import RegisterResponse, UserCreate, UserResponse, UserUpdate

__all__ = [
    "AnalysisResponse", "AnalyzeRequest", "DefineRequest", "DefinitionResponse", "ManuscriptRequest",
    "PolishResponse", "RefineResponse", "SpeechRequest",
    "CommentCreate", "CommentResponse", "CommentThreadResponse",
    "ModerationAction", "ModerationDecision",
    "AuthorStatsResponse", "EngagementResponse", "GateReportResponse", "PostCreate", "PostResponse",
    "PostSummary", "PostUpdate", "SubmitRequest",
    "RegisterResponse", "UserCreate", "UserResponse", "UserUpdate",
]
