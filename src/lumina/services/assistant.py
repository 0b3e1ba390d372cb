"""AI writing assistant integration.

The assistant is an optional capability: prose polishing, originality
scanning, readability analysis, dictionary lookups and speech synthesis.
None of the workflow transitions depend on it; scan and analysis results are
attached to a post as data only.

``GeminiAssistant`` implements the ``Assistant`` protocol over the Gemini
``generateContent`` REST endpoint.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from lumina.core.settings import settings
from lumina.domain import Category, PlagiarismMatch

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "Puck"
PUBLISHABLE_CATEGORIES = tuple(c.value for c in Category if c != Category.UNCATEGORIZED)


class AssistantError(RuntimeError):
    """Base exception raised for assistant failures."""


class AssistantDisabledError(AssistantError):
    """Raised when the assistant is used without an API key configured."""


@dataclass(frozen=True)
class OriginalityReport:
    """Similarity score (0-100, higher is less original) and matched sources."""

    score: float
    matches: list[PlagiarismMatch] = field(default_factory=list)


@dataclass(frozen=True)
class DraftRefinement:
    """Polished content along with the category the model filed it under."""

    content: str
    category: Category


@dataclass(frozen=True)
class Definition:
    definition: str
    part_of_speech: str
    usage: str
    pronunciation: str | None = None
    synonyms: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PostAnalysis:
    """Summary, keywords and tone of a manuscript with a 0-100 readability score."""

    summary: str
    seo_keywords: list[str]
    tone: str
    readability_score: float


class Assistant(Protocol):
    """Capabilities the editor and reader views call as a black box."""

    async def audit_originality(self, title: str, content: str) -> OriginalityReport: ...

    async def polish_prose(self, title: str, content: str) -> str: ...

    async def refine_draft(self, title: str, content: str) -> DraftRefinement: ...

    async def analyze_post(self, content: str) -> PostAnalysis: ...

    async def define_word(self, word: str, context: str = "") -> Definition: ...

    async def synthesize_speech(self, text: str, voice: str = DEFAULT_VOICE) -> bytes: ...


@dataclass(frozen=True)
class AssistantConfig:
    """Connection settings for the Gemini REST API."""

    api_key: str | None
    base_url: str
    text_model: str
    audit_model: str
    speech_model: str
    timeout_seconds: float

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


def load_assistant_config() -> AssistantConfig:
    """Build configuration object from global settings."""
    return AssistantConfig(
        api_key=settings.assistant_api_key,
        base_url=settings.assistant_base_url,
        text_model=settings.assistant_text_model,
        audit_model=settings.assistant_audit_model,
        speech_model=settings.assistant_speech_model,
        timeout_seconds=float(settings.assistant_timeout_seconds),
    )


def _string(description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "STRING"}
    if description:
        schema["description"] = description
    return schema


ORIGINALITY_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "plagiarismScore": {
            "type": "NUMBER",
            "description": "0-100 score where 100 is highly similar",
        },
        "matches": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "url": _string(),
                    "title": _string(),
                    "similarity": {"type": "NUMBER"},
                    "matchedText": _string(),
                },
                "required": ["url", "title", "similarity", "matchedText"],
            },
        },
    },
    "required": ["plagiarismScore", "matches"],
}

REFINEMENT_SCHEMA = {
    "type": "OBJECT",
    "properties": {"polishedContent": _string(), "category": _string()},
    "required": ["polishedContent", "category"],
}

DEFINITION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "definition": _string(),
        "partOfSpeech": _string(),
        "usage": _string(),
        "pronunciation": _string(),
        "synonyms": {"type": "ARRAY", "items": _string()},
    },
    "required": ["definition", "partOfSpeech", "usage"],
}


ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "summary": _string(),
        "seoKeywords": {"type": "ARRAY", "items": _string()},
        "tone": _string(),
        "readabilityScore": {"type": "NUMBER"},
    },
    "required": ["summary", "seoKeywords", "tone", "readabilityScore"],
}

class GeminiAssistant:
    """HTTP client wrapper for the Gemini content generation API."""

    def __init__(
        self,
        config: AssistantConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_assistant_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.enabled:
            raise AssistantDisabledError("Writing assistant is not configured")

        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def _generate(self, model: str, body: dict[str, Any]) -> dict[str, Any]:
        client = await self._ensure_client()
        try:
            response = await client.post(
                f"/models/{model}:generateContent",
                json=body,
                headers={"x-goog-api-key": self.config.api_key or ""},
            )
        except httpx.HTTPError as exc:
            logger.warning("Assistant request to %s failed: %s", model, exc)
            raise AssistantError(f"Assistant request failed: {exc}") from exc

        if response.is_error:
            logger.warning("Assistant model %s responded with %s", model, response.status_code)
            raise AssistantError(f"Assistant responded with {response.status_code}")
        return response.json()

    @staticmethod
    def _first_part(payload: dict[str, Any]) -> dict[str, Any]:
        try:
            return payload["candidates"][0]["content"]["parts"][0]
        except (KeyError, IndexError, TypeError) as exc:
            raise AssistantError("Assistant returned no content") from exc

    async def _generate_text(self, model: str, prompt: str, **config: Any) -> str:
        body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        tools = config.pop("tools", None)
        if tools:
            body["tools"] = tools
        if config:
            body["generationConfig"] = config
        payload = await self._generate(model, body)
        return self._first_part(payload).get("text") or ""

    async def _generate_json(
        self,
        model: str,
        prompt: str,
        schema: dict[str, Any],
        **extra: Any,
    ) -> dict[str, Any]:
        text = await self._generate_text(
            model,
            prompt,
            responseMimeType="application/json",
            responseSchema=schema,
            **extra,
        )
        try:
            data = json.loads(text or "{}")
        except json.JSONDecodeError as exc:
            raise AssistantError("Assistant returned malformed JSON") from exc
        if not isinstance(data, dict):
            raise AssistantError("Assistant returned an unexpected payload")
        return data

    async def audit_originality(self, title: str, content: str) -> OriginalityReport:
        """Score how closely a manuscript matches existing sources on the web."""
        data = await self._generate_json(
            self.config.audit_model,
            f'Verify the semantic originality of this manuscript across the global web: '
            f'"{title}". Body: {content}',
            ORIGINALITY_SCHEMA,
            tools=[{"google_search": {}}],
        )
        matches = [
            PlagiarismMatch(
                url=str(item.get("url", "")),
                title=str(item.get("title", "")),
                similarity=float(item.get("similarity") or 0),
                matched_text=str(item.get("matchedText", "")),
            )
            for item in data.get("matches") or []
        ]
        score = min(100.0, max(0.0, float(data.get("plagiarismScore") or 0)))
        return OriginalityReport(score=score, matches=matches)

    async def polish_prose(self, title: str, content: str) -> str:
        text = await self._generate_text(
            self.config.audit_model,
            "Transform this article draft into a high-standard professional manuscript "
            f"with sophisticated insights and structure. Title: {title}. Draft: {content}",
        )
        return text or content

    async def refine_draft(self, title: str, content: str) -> DraftRefinement:
        """Fix grammar and tone, and file the draft under a publishable category."""
        data = await self._generate_json(
            self.config.text_model,
            f'Analyze and polish this article: "{title}". Content: {content}. '
            "Fix grammar, professional tone, and strictly categorize into one of: "
            f"{', '.join(PUBLISHABLE_CATEGORIES)}.",
            REFINEMENT_SCHEMA,
        )
        category = data.get("category")
        return DraftRefinement(
            content=data.get("polishedContent") or content,
            category=Category(category) if category in PUBLISHABLE_CATEGORIES else Category.ENGINEERING,
        )

    async def analyze_post(self, content: str) -> PostAnalysis:
        """Summarize a manuscript and rate how readable it is."""
        data = await self._generate_json(
            self.config.text_model,
            f"Perform SEO and readability analysis for: {content}",
            ANALYSIS_SCHEMA,
        )
        return PostAnalysis(
            summary=str(data.get("summary", "")),
            seo_keywords=[str(keyword) for keyword in data.get("seoKeywords") or []],
            tone=str(data.get("tone", "")),
            readability_score=min(100.0, max(0.0, float(data.get("readabilityScore") or 0))),
        )

    async def define_word(self, word: str, context: str = "") -> Definition:
        data = await self._generate_json(
            self.config.text_model,
            f'Provide a detailed linguistic definition for "{word}" '
            f'in the following context: "{context}".',
            DEFINITION_SCHEMA,
        )
        return Definition(
            definition=data.get("definition", ""),
            part_of_speech=data.get("partOfSpeech", ""),
            usage=data.get("usage", ""),
            pronunciation=data.get("pronunciation"),
            synonyms=list(data.get("synonyms") or []),
        )

    async def synthesize_speech(self, text: str, voice: str = DEFAULT_VOICE) -> bytes:
        """Return raw PCM audio narrating ``text``."""
        payload = await self._generate(
            self.config.speech_model,
            {
                "contents": [{"parts": [{"text": text}]}],
                "generationConfig": {
                    "responseModalities": ["AUDIO"],
                    "speechConfig": {
                        "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice}},
                    },
                },
            },
        )
        data = (self._first_part(payload).get("inlineData") or {}).get("data")
        if not data:
            raise AssistantError("Speech synthesis returned no audio")
        try:
            return base64.b64decode(data)
        except (binascii.Error, ValueError) as exc:
            raise AssistantError("Speech synthesis returned invalid audio") from exc

    async def close(self) -> None:
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _AssistantSingleton:
    """Singleton wrapper for GeminiAssistant."""

    _instance: GeminiAssistant | None = None

    @classmethod
    def get_instance(cls) -> GeminiAssistant:
        """Get or create the singleton GeminiAssistant instance."""
        if cls._instance is None:
            cls._instance = GeminiAssistant()
        return cls._instance


def get_assistant() -> GeminiAssistant:
    """Return a singleton assistant instance."""
    return _AssistantSingleton.get_instance()
