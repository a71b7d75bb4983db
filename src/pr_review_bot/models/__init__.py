"""Pydantic models for the review bot."""

from .github import ChangedFile, PullRequestWebhookPayload, ReviewAction, ReviewEvent
from .review import ContextBundle, PromptTemplate

__all__ = [
    "ChangedFile",
    "PullRequestWebhookPayload",
    "ReviewAction",
    "ReviewEvent",
    "ContextBundle",
    "PromptTemplate",
]
