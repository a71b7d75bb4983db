"""
Capability interfaces the review pipeline depends on.

Implement these to plug in another hosting platform, another completion
provider, or an in-memory fake for tests.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..models.github import ChangedFile


class CredentialProvider(ABC):
    """Turns an installation id into a GitHub access token."""

    @abstractmethod
    async def get_token(self, installation_id: Optional[int] = None) -> str:
        """Return an access token.

        Raises:
            AuthUnavailable: If no token can be obtained.
        """


class RepositoryReader(ABC):
    """Read-only queries against a hosted repository."""

    @abstractmethod
    async def list_changed_files(self, owner: str, repo: str, pull_number: int) -> List[ChangedFile]:
        """List every file changed by a pull request, with its patch text."""

    @abstractmethod
    async def fetch_file_content(self, owner: str, repo: str, path: str) -> Optional[str]:
        """Return decoded file content, or None when the file does not exist."""

    @abstractmethod
    async def search_files_by_name(self, owner: str, repo: str, filename: str) -> List[str]:
        """Return every path in the repository whose basename is ``filename``."""


class ReviewPublisher(ABC):
    """Posts review output back to a pull request."""

    @abstractmethod
    async def publish(self, owner: str, repo: str, pull_number: int, body: str) -> None:
        """Create a single comment-type review on the pull request."""


class RepositoryClient(RepositoryReader, ReviewPublisher):
    """A reader and publisher sharing one access token."""

    async def aclose(self) -> None:
        """Release any connections held by the client."""


class AnalysisClient(ABC):
    """Single-shot completion capability."""

    @abstractmethod
    async def analyze(self, prompt: str) -> str:
        """Return the completion text for ``prompt``.

        Raises:
            AnalysisUnavailable: On any transport or provider error.
        """


RepositoryClientFactory = Callable[[str], RepositoryClient]
