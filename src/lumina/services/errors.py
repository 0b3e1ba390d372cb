"""Exceptions raised by the publication workflow."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lumina.services.gate import GateReport


class WorkflowError(RuntimeError):
    """Base exception for workflow failures surfaced to callers."""


class ValidationError(WorkflowError):
    """Raised when a required input is missing or blank."""


class GateFailure(ValidationError):
    """Raised when a manuscript fails one or more submission checks.

    All failing checks are reported together so callers can present them
    at once.
    """

    def __init__(self, report: GateReport) -> None:
        self.report = report
        self.failed_checks: tuple[str, ...] = report.failed_checks
        super().__init__(f"Submission blocked by: {', '.join(self.failed_checks)}")


class ConflictError(WorkflowError):
    """Raised when a post is not in a status the transition can start from."""


class NotFoundError(WorkflowError):
    """Raised when a post, user or comment id does not exist."""


class PermissionDeniedError(WorkflowError):
    """Raised when the acting user lacks the role or ownership required."""


class StoreUnavailableError(WorkflowError):
    """Raised by a content store whose backend cannot be reached."""
