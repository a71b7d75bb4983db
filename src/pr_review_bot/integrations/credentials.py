"""GitHub credential providers."""

import asyncio
from typing import Optional

import jwt
import requests
import structlog
from github import Auth, GithubIntegration
from github.GithubException import GithubException

from ..config import Settings
from ..exceptions import AuthUnavailable
from .base import CredentialProvider

logger = structlog.get_logger(__name__)

# GitHub rejects app JWTs that live longer than ten minutes
APP_JWT_EXPIRY_SECONDS = 600


class StaticTokenProvider(CredentialProvider):
    """Uses one configured token for every event."""

    def __init__(self, token: str):
        if not (token and token.strip()):
            raise ValueError("GitHub token is required")
        self._token = token.strip()

    async def get_token(self, installation_id: Optional[int] = None) -> str:
        return self._token


class InstallationTokenProvider(CredentialProvider):
    """Mints a fresh installation access token for every event.

    The app JWT is signed with RS256 and issued for the configured app id;
    GitHub exchanges it for a short-lived token scoped to one installation.
    Tokens are never reused across calls.
    """

    def __init__(self, app_id: str, private_key: str, base_url: str = "https://api.github.com"):
        self.app_id = app_id
        self._private_key = private_key
        self.base_url = base_url

    @classmethod
    def from_settings(cls, settings: Settings) -> "InstallationTokenProvider":
        return cls(
            app_id=settings.github_app_id,
            private_key=settings.read_private_key(),
            base_url=settings.github_api_url,
        )

    def app_auth(self) -> Auth.AppAuth:
        return Auth.AppAuth(self.app_id, self._private_key, jwt_expiry=APP_JWT_EXPIRY_SECONDS)

    def create_app_jwt(self) -> str:
        """Sign a short-lived JWT identifying the GitHub App."""
        try:
            return self.app_auth().create_jwt()
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise AuthUnavailable(f"Could not sign GitHub App JWT: {e}") from e

    def _exchange(self, installation_id: int) -> str:
        integration = GithubIntegration(auth=self.app_auth(), base_url=self.base_url, retry=None)
        try:
            return integration.get_access_token(installation_id).token
        finally:
            integration.close()

    async def get_token(self, installation_id: Optional[int] = None) -> str:
        if installation_id is None:
            raise AuthUnavailable("Event carries no installation id")

        try:
            token = await asyncio.to_thread(self._exchange, installation_id)
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise AuthUnavailable(f"Could not sign GitHub App JWT: {e}", installation_id) from e
        except GithubException as e:
            raise AuthUnavailable(
                f"Installation token exchange rejected with status {e.status}", installation_id
            ) from e
        except requests.RequestException as e:
            raise AuthUnavailable(f"Installation token exchange failed: {e}", installation_id) from e

        logger.debug("Minted installation token", installation_id=installation_id)
        return token


def build_credential_provider(settings: Settings) -> CredentialProvider:
    """Select the credential provider for the configured auth mode."""
    if settings.uses_installation_auth:
        return InstallationTokenProvider.from_settings(settings)
    return StaticTokenProvider(settings.github_token)
