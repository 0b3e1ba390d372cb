"""Derived metrics computed from a manuscript's HTML body."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

TAG_RE = re.compile(r"<[^>]*>")
HEADING_RE = re.compile(r"<h[1-6][\s>/]", re.IGNORECASE)
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
SLUG_RE = re.compile(r"[^a-z0-9]+")

DEFAULT_WORDS_PER_MINUTE = 225
DEFAULT_EXCERPT_LENGTH = 200


@dataclass(frozen=True)
class ContentAudit:
    """Snapshot of the measurable properties of a manuscript."""

    word_count: int
    sentence_count: int
    has_heading: bool
    reading_time: int


def strip_html(html: str) -> str:
    """Replace markup tags with spaces, leaving the text content."""
    return TAG_RE.sub(" ", html or "")


def word_count(html: str) -> int:
    return len(strip_html(html).split())


def sentence_count(html: str) -> int:
    fragments = SENTENCE_SPLIT_RE.split(strip_html(html))
    return sum(1 for fragment in fragments if fragment.strip())


def has_heading(html: str) -> bool:
    """Return True if the body contains at least one H1-H6 element."""
    return bool(HEADING_RE.search(html or ""))


def reading_time(html: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> int:
    """Return the estimated reading time in whole minutes (at least one)."""
    total_seconds = word_count(html) / words_per_minute * 60
    return max(1, math.ceil(total_seconds / 60))


def make_excerpt(html: str, length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    text = " ".join(strip_html(html).split())
    if len(text) > length:
        return text[: length - 3] + "..."
    return text


def slugify(title: str) -> str:
    return SLUG_RE.sub("-", (title or "").lower()).strip("-")


def audit_content(html: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> ContentAudit:
    """Compute every derived metric for a manuscript in one pass."""
    return ContentAudit(
        word_count=word_count(html),
        sentence_count=sentence_count(html),
        has_heading=has_heading(html),
        reading_time=reading_time(html, words_per_minute),
    )
