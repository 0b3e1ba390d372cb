"""Submission gate: content-quality checks a draft must pass before review."""

from __future__ import annotations

from dataclasses import dataclass

from lumina.core.settings import GovernanceSettings
from lumina.domain import Category, Post
from lumina.services.content import ContentAudit, audit_content

CHECK_CATEGORY = "category"
CHECK_DENSITY = "density"
CHECK_STRUCTURE = "structure"


@dataclass(frozen=True)
class GateCheck:
    """Outcome of a single gate predicate."""

    name: str
    passed: bool
    detail: str


@dataclass(frozen=True)
class GateReport:
    """Full result of running the gate against a manuscript.

    The originality and readability fields are advisory. They are reported
    so callers can display them but never contribute to ``passed``.
    """

    checks: tuple[GateCheck, ...]
    audit: ContentAudit
    min_word_count: int
    plagiarism_score: float | None
    originality_checked: bool
    exceeds_plagiarism_threshold: bool
    readability_score: float | None
    min_readability: int
    below_readability_threshold: bool

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def failed_checks(self) -> tuple[str, ...]:
        return tuple(check.name for check in self.checks if not check.passed)


def evaluate(post: Post, governance: GovernanceSettings) -> GateReport:
    """Run the category, density and structure checks against ``post``.

    Args:
        post: Manuscript to evaluate; only its category and content are read
        governance: Thresholds in force

    Returns:
        GateReport listing every check, whether or not it passed
    """
    audit = audit_content(post.content, governance.words_per_minute)
    category = Category(post.category)
    checks = (
        GateCheck(
            name=CHECK_CATEGORY,
            passed=category != Category.UNCATEGORIZED,
            detail=category.value,
        ),
        GateCheck(
            name=CHECK_DENSITY,
            passed=audit.word_count >= governance.min_word_count,
            detail=f"{audit.word_count}/{governance.min_word_count} words",
        ),
        GateCheck(
            name=CHECK_STRUCTURE,
            passed=audit.has_heading,
            detail="heading present" if audit.has_heading else "missing heading",
        ),
    )
    score = post.plagiarism_score
    readability = post.readability_score
    return GateReport(
        checks=checks,
        audit=audit,
        min_word_count=governance.min_word_count,
        plagiarism_score=score,
        originality_checked=score is not None,
        exceeds_plagiarism_threshold=score is not None and score >= governance.max_plagiarism,
        readability_score=readability,
        min_readability=governance.min_readability,
        below_readability_threshold=readability is not None and readability < governance.min_readability,
    )
