"""Webhook handlers."""

from .github_webhook import GitHubWebhookHandler

__all__ = ["GitHubWebhookHandler"]
