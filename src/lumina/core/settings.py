"""Application settings and configuration.

This module defines all configuration options for the Lumina Press service.
Settings are loaded from environment variables with sensible defaults.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class GovernanceSettings:
    """Editorial thresholds consulted by the submission gate.

    ``max_plagiarism`` and ``block_on_failure`` are carried for display and
    reporting; the gate does not block on originality scores.
    """

    min_word_count: int = 300
    min_sentence_count: int = 10
    min_readability: int = 60
    max_plagiarism: int = 80
    block_on_failure: bool = True
    words_per_minute: int = 225
    excerpt_length: int = 200


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Lumina Press", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./lumina.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Remote content backend; when set, the local database becomes its fallback
    content_store_url: str | None = Field(default=None, alias="CONTENT_STORE_URL")
    content_store_timeout_seconds: float = Field(default=5.0, gt=0, alias="CONTENT_STORE_TIMEOUT_SECONDS")

    # Editorial governance
    min_word_count: int = Field(default=300, ge=0, alias="GOVERNANCE_MIN_WORD_COUNT")
    min_sentence_count: int = Field(default=10, ge=0, alias="GOVERNANCE_MIN_SENTENCE_COUNT")
    min_readability: int = Field(default=60, ge=0, le=100, alias="GOVERNANCE_MIN_READABILITY")
    max_plagiarism: int = Field(default=80, ge=0, le=100, alias="GOVERNANCE_MAX_PLAGIARISM")
    block_on_failure: bool = Field(default=True, alias="GOVERNANCE_BLOCK_ON_FAILURE")
    words_per_minute: int = Field(default=225, gt=0, alias="READING_WORDS_PER_MINUTE")
    excerpt_length: int = Field(default=200, ge=4, alias="EXCERPT_LENGTH")

    # AI assistant integration
    assistant_api_key: str | None = Field(default=None, alias="ASSISTANT_API_KEY")
    assistant_base_url: str = Field(default=GEMINI_BASE_URL, alias="ASSISTANT_BASE_URL")
    assistant_text_model: str = Field(
        default="gemini-3-flash-preview",
        alias="ASSISTANT_TEXT_MODEL",
    )
    assistant_audit_model: str = Field(
        default="gemini-3-pro-preview",
        alias="ASSISTANT_AUDIT_MODEL",
    )
    assistant_speech_model: str = Field(
        default="gemini-2.5-flash-preview-tts",
        alias="ASSISTANT_SPEECH_MODEL",
    )
    assistant_timeout_seconds: float = Field(default=30.0, alias="ASSISTANT_TIMEOUT_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def governance(self) -> GovernanceSettings:
        """Return the editorial thresholds as an immutable value object.

        Returns:
            GovernanceSettings built from the current configuration
        """
        return GovernanceSettings(
            min_word_count=self.min_word_count,
            min_sentence_count=self.min_sentence_count,
            min_readability=self.min_readability,
            max_plagiarism=self.max_plagiarism,
            block_on_failure=self.block_on_failure,
            words_per_minute=self.words_per_minute,
            excerpt_length=self.excerpt_length,
        )

    @property
    def assistant_enabled(self) -> bool:
        """Return True when an assistant API key is configured."""
        return bool(self.assistant_api_key)


settings = Settings()  # type: ignore[call-arg]
