"""Adapters for GitHub and its credentials."""

from .credentials import InstallationTokenProvider, StaticTokenProvider, build_credential_provider
from .github_client import GitHubClient

__all__ = [
    "GitHubClient",
    "InstallationTokenProvider",
    "StaticTokenProvider",
    "build_credential_provider",
]
