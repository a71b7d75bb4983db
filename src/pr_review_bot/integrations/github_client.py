"""GitHub API client for pull request operations."""

import asyncio
import posixpath
from typing import List, Optional

import requests
import structlog
from github import Auth, Github
from github.GithubException import GithubException

from ..config import Settings
from ..exceptions import UpstreamUnavailable
from ..models.github import ChangedFile
from .base import RepositoryClient

logger = structlog.get_logger(__name__)

REVIEW_EVENT = "COMMENT"


class GitHubClient(RepositoryClient):
    """Client for GitHub API operations, scoped to one access token.

    PyGithub is blocking, so every call runs in a worker thread and only
    suspends the event that issued it.
    """

    def __init__(self, token: str, settings: Settings, github: Optional[Github] = None):
        """Initialize GitHub client."""
        self.settings = settings
        self._github = github or Github(
            auth=Auth.Token(token),
            base_url=settings.github_api_url,
            timeout=settings.github_timeout_seconds,
            retry=None,
        )

    @classmethod
    def factory(cls, settings: Settings):
        """Return a callable that builds a client for a given token."""
        def build(token: str) -> "GitHubClient":
            return cls(token, settings)
        return build

    async def aclose(self) -> None:
        """Release the underlying HTTP session."""
        self._github.close()

    def _repo(self, owner: str, repo: str):
        return self._github.get_repo(f"{owner}/{repo}", lazy=True)

    async def list_changed_files(self, owner: str, repo: str, pull_number: int) -> List[ChangedFile]:
        """Get list of changed files in a pull request."""
        def _list() -> List[ChangedFile]:
            pr = self._repo(owner, repo).get_pull(pull_number)
            return [
                ChangedFile(filename=file.filename, patch=file.patch or "")
                for file in pr.get_files()
            ]

        try:
            changed_files = await asyncio.to_thread(_list)
        except GithubException as e:
            logger.error(
                "Error retrieving pull request files",
                repo=f"{owner}/{repo}",
                pr_number=pull_number,
                status=e.status,
                error=str(e)
            )
            raise UpstreamUnavailable("list_changed_files", str(e), status=e.status) from e
        except requests.RequestException as e:
            logger.error(
                "GitHub unreachable while listing pull request files",
                repo=f"{owner}/{repo}",
                pr_number=pull_number,
                error=str(e)
            )
            raise UpstreamUnavailable("list_changed_files", str(e)) from e

        logger.debug(
            "Retrieved pull request files",
            repo=f"{owner}/{repo}",
            pr_number=pull_number,
            files_count=len(changed_files)
        )
        return changed_files

    async def fetch_file_content(self, owner: str, repo: str, path: str) -> Optional[str]:
        """Get the decoded content of one file on the default branch."""
        def _fetch():
            return self._repo(owner, repo).get_contents(path)

        try:
            content = await asyncio.to_thread(_fetch)
        except GithubException as e:
            if e.status == 404:
                logger.debug("File not found", repo=f"{owner}/{repo}", path=path)
                return None
            if e.status in (401, 403):
                logger.warning(
                    "Insufficient permission to read file",
                    repo=f"{owner}/{repo}",
                    path=path,
                    status=e.status
                )
            else:
                logger.error(
                    "Error retrieving file content",
                    repo=f"{owner}/{repo}",
                    path=path,
                    status=e.status,
                    error=str(e)
                )
            raise UpstreamUnavailable("fetch_file_content", str(e), status=e.status) from e
        except requests.RequestException as e:
            logger.error(
                "GitHub unreachable while retrieving file content",
                repo=f"{owner}/{repo}",
                path=path,
                error=str(e)
            )
            raise UpstreamUnavailable("fetch_file_content", str(e)) from e

        if isinstance(content, list):
            # Path is a directory
            return None

        try:
            return content.decoded_content.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Binary file skipped", repo=f"{owner}/{repo}", path=path)
            return None

    async def search_files_by_name(self, owner: str, repo: str, filename: str) -> List[str]:
        """Find every file called ``filename`` in the repository."""
        query = f"filename:{filename} repo:{owner}/{repo}"

        def _search() -> List[str]:
            return [item.path for item in self._github.search_code(query)]

        try:
            paths = await asyncio.to_thread(_search)
        except (GithubException, requests.RequestException) as e:
            logger.warning(
                "Code search failed",
                repo=f"{owner}/{repo}",
                filename=filename,
                error=str(e)
            )
            return []

        # Search matches on prefixes too, e.g. package.json.bak
        return [path for path in paths if posixpath.basename(path) == filename]

    async def publish(self, owner: str, repo: str, pull_number: int, body: str) -> None:
        """Post a single comment-type review on a pull request."""
        def _create_review():
            pr = self._repo(owner, repo).get_pull(pull_number)
            pr.create_review(body=body, event=REVIEW_EVENT)

        try:
            await asyncio.to_thread(_create_review)
        except GithubException as e:
            logger.error(
                "Error posting review",
                repo=f"{owner}/{repo}",
                pr_number=pull_number,
                status=e.status,
                error=str(e)
            )
            raise UpstreamUnavailable("publish_review", str(e), status=e.status) from e
        except requests.RequestException as e:
            logger.error(
                "GitHub unreachable while posting review",
                repo=f"{owner}/{repo}",
                pr_number=pull_number,
                error=str(e)
            )
            raise UpstreamUnavailable("publish_review", str(e)) from e

        logger.info("Posted review", repo=f"{owner}/{repo}", pr_number=pull_number, event=REVIEW_EVENT)
