"""GitHub-related Pydantic models."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from ..exceptions import MalformedEvent


class ReviewAction(str, Enum):
    """Pull request actions, as far as the review pipeline cares."""
    OPENED = "opened"
    SYNCHRONIZE = "synchronize"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "ReviewAction":
        if value == cls.OPENED.value:
            return cls.OPENED
        if value == cls.SYNCHRONIZE.value:
            return cls.SYNCHRONIZE
        return cls.OTHER

    @property
    def is_handled(self) -> bool:
        return self != ReviewAction.OTHER


class Owner(BaseModel):
    """Repository owner as sent in webhook payloads."""
    login: str


class HeadRepository(BaseModel):
    """Repository the pull request head lives in."""
    name: str
    owner: Owner


class PullRequestHead(BaseModel):
    """Head ref of a pull request."""
    repo: HeadRepository


class PullRequest(BaseModel):
    """The subset of a GitHub pull request the bot needs."""
    number: int
    head: PullRequestHead


class Installation(BaseModel):
    """GitHub App installation reference."""
    id: int


class PullRequestWebhookPayload(BaseModel):
    """GitHub pull_request webhook payload."""
    action: str
    pull_request: PullRequest
    installation: Optional[Installation] = None

    class Config:
        """Pydantic configuration."""
        extra = "allow"  # Allow additional fields from GitHub


class ReviewEvent(BaseModel):
    """Normalized review trigger built from one webhook payload."""
    action: ReviewAction
    owner: str
    repo: str
    pull_number: int
    installation_id: Optional[int] = None

    class Config:
        """Pydantic configuration."""
        frozen = True

    @property
    def request_id(self) -> str:
        return f"{self.owner}/{self.repo}#{self.pull_number}"

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ReviewEvent":
        """Build an event from a raw webhook payload.

        Raises:
            MalformedEvent: If required fields such as
                ``pull_request.head.repo.owner.login`` are missing.
        """
        if not isinstance(payload, dict):
            raise MalformedEvent("Webhook payload is not a JSON object")
        try:
            parsed = PullRequestWebhookPayload(**payload)
        except ValidationError as e:
            raise MalformedEvent(f"Invalid pull_request payload: {e}") from e

        head_repo = parsed.pull_request.head.repo
        return cls(
            action=ReviewAction.parse(parsed.action),
            owner=head_repo.owner.login,
            repo=head_repo.name,
            pull_number=parsed.pull_request.number,
            installation_id=parsed.installation.id if parsed.installation else None,
        )


class ChangedFile(BaseModel):
    """File changed in a pull request.

    ``patch`` is empty when GitHub reports no textual diff, e.g. for
    binary files or pure renames.
    """
    filename: str
    patch: str = ""

    class Config:
        """Pydantic configuration."""
        frozen = True

    @property
    def has_patch(self) -> bool:
        return bool(self.patch)
