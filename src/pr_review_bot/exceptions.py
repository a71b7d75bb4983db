"""Error taxonomy for the review pipeline."""

from enum import Enum
from typing import Optional


class PipelineOutcome(str, Enum):
    """Terminal state of a single review pipeline run."""
    PUBLISHED = "published"
    NO_CHANGED_FILES = "no_changed_files"
    EMPTY_ANALYSIS = "empty_analysis"
    AUTH_FAILED = "auth_failed"
    UPSTREAM_FAILED = "upstream_failed"
    ANALYSIS_FAILED = "analysis_failed"

    @property
    def is_failure(self) -> bool:
        return self in (
            PipelineOutcome.AUTH_FAILED,
            PipelineOutcome.UPSTREAM_FAILED,
            PipelineOutcome.ANALYSIS_FAILED,
        )


class ReviewBotError(Exception):
    """Base exception for review bot errors."""


class MalformedEvent(ReviewBotError):
    """Raised when a webhook payload is missing required fields."""


class AuthUnavailable(ReviewBotError):
    """Raised when a GitHub access token cannot be obtained."""

    def __init__(self, message: str, installation_id: Optional[int] = None):
        if installation_id is not None:
            message = f"{message} (installation {installation_id})"
        super().__init__(message)
        self.installation_id = installation_id


class UpstreamUnavailable(ReviewBotError):
    """Raised when a GitHub read or write fails."""

    def __init__(
        self,
        operation: str,
        message: str,
        status: Optional[int] = None,
    ):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.status = status

    @property
    def permission_denied(self) -> bool:
        return self.status in (401, 403)


class AnalysisUnavailable(ReviewBotError):
    """Raised when the completion provider fails or returns unusable output."""
