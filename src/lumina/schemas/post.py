"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lumina.domain import Category, FontStyle, PostStatus


class PostCreate(BaseModel):
    """Schema for creating a new manuscript."""

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., description="HTML body of the manuscript")
    category: Category = Category.UNCATEGORIZED
    cover_image: str = ""
    font_style: FontStyle = FontStyle.SERIF
    tags: list[str] = Field(default_factory=list)
    submit: bool = Field(False, description="Send straight to moderation through the gate")


class PostUpdate(BaseModel):
    """Partial edit of a manuscript; omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = None
    category: Category | None = None
    cover_image: str | None = None
    font_style: FontStyle | None = None
    tags: list[str] | None = None


class SubmitRequest(BaseModel):
    expected_status: PostStatus | None = None


class PlagiarismMatchResponse(BaseModel):
    url: str
    title: str
    similarity: float
    matched_text: str

    model_config = ConfigDict(from_attributes=True)


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: str
    slug: str
    title: str
    content: str
    excerpt: str
    author_id: str
    author_name: str
    category: Category
    cover_image: str
    font_style: FontStyle
    tags: list[str]
    status: PostStatus
    moderation_note: str | None
    plagiarism_score: float | None
    plagiarism_matches: list[PlagiarismMatchResponse]
    plagiarism_checked_at: datetime | None
    readability_score: float | None
    tone: str | None
    reading_time: int
    likes: int
    views: int
    is_featured: bool
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class PostSummary(BaseModel):
    """Compact listing entry without the manuscript body."""

    id: str
    slug: str
    title: str
    excerpt: str
    author_name: str
    category: Category
    cover_image: str
    status: PostStatus
    reading_time: int
    likes: int
    views: int
    created_at: datetime
    published_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class GateCheckResponse(BaseModel):
    name: str
    passed: bool
    detail: str

    model_config = ConfigDict(from_attributes=True)


class ContentAuditResponse(BaseModel):
    word_count: int
    sentence_count: int
    has_heading: bool
    reading_time: int

    model_config = ConfigDict(from_attributes=True)


class GateReportResponse(BaseModel):
    """Result of running the submission gate without changing the post."""

    passed: bool
    failed_checks: list[str]
    checks: list[GateCheckResponse]
    audit: ContentAuditResponse
    min_word_count: int
    plagiarism_score: float | None
    originality_checked: bool
    exceeds_plagiarism_threshold: bool
    readability_score: float | None
    min_readability: int
    below_readability_threshold: bool

    model_config = ConfigDict(from_attributes=True)


class EngagementResponse(BaseModel):
    """Counters and the caller's own engagement state after a toggle."""

    post_id: str
    likes: int
    views: int
    liked: bool
    bookmarked: bool


class AuthorStatsResponse(BaseModel):
    """Dashboard totals across the caller's manuscripts."""

    post_count: int
    published_count: int
    total_views: int
    total_likes: int

    model_config = ConfigDict(from_attributes=True)
