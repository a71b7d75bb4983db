"""Assembles manifest files into prompt context."""

import json
import posixpath
from typing import Dict, List, Optional, Sequence

import structlog

from ..config import ContextDiscovery, Settings
from ..exceptions import UpstreamUnavailable
from ..integrations.base import RepositoryReader
from ..models.review import ContextBundle

logger = structlog.get_logger(__name__)


def describe_package_manifest(content: str) -> Optional[str]:
    """Summarize a package.json as one sentence, or None if it is not valid JSON."""
    try:
        manifest = json.loads(content)
    except json.JSONDecodeError:
        return None
    if not isinstance(manifest, dict):
        return None

    dependencies = manifest.get("dependencies") or {}
    scripts = manifest.get("scripts") or {}
    lint = scripts.get("lint") if isinstance(scripts, dict) else None
    return (
        f"The project is named {manifest.get('name', 'unknown')} and uses dependencies: "
        f"{', '.join(dependencies) if isinstance(dependencies, dict) else ''}. "
        f"It follows the linting rules defined in {lint or 'N/A'}."
    )


class ContextAssembler:
    """Fetches candidate manifest files and bundles them for the prompt.

    In ``fixed`` mode every candidate name is probed at the repository root,
    one fetch per candidate. In ``search`` mode every candidate name is
    searched for and each hit is fetched.
    """

    def __init__(
        self,
        discovery: ContextDiscovery = ContextDiscovery.FIXED,
        candidates: Sequence[str] = (),
        max_chars: int = 4000,
        summarize_package_json: bool = False,
    ):
        self.discovery = discovery
        self.candidates = list(candidates)
        self.max_chars = max_chars
        self.summarize_package_json = summarize_package_json

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContextAssembler":
        return cls(
            discovery=settings.context_discovery,
            candidates=settings.context_files,
            max_chars=settings.context_max_chars,
            summarize_package_json=settings.summarize_package_json,
        )

    async def assemble(self, reader: RepositoryReader, owner: str, repo: str) -> ContextBundle:
        files: Dict[str, str] = {}
        for path in await self._discover(reader, owner, repo):
            if path in files:
                continue
            content = await self._fetch(reader, owner, repo, path)
            if content is None:
                continue
            files[path] = self._render(path, content)

        bundle = ContextBundle(files=files, max_chars=self.max_chars)
        logger.debug(
            "Assembled context",
            repo=f"{owner}/{repo}",
            files=list(files),
            chars=len(bundle.render())
        )
        return bundle

    async def _discover(self, reader: RepositoryReader, owner: str, repo: str) -> List[str]:
        if self.discovery == ContextDiscovery.NONE:
            return []
        if self.discovery == ContextDiscovery.FIXED:
            return list(self.candidates)

        paths: List[str] = []
        for filename in self.candidates:
            paths.extend(await reader.search_files_by_name(owner, repo, filename))
        return paths

    async def _fetch(self, reader: RepositoryReader, owner: str, repo: str, path: str) -> Optional[str]:
        try:
            return await reader.fetch_file_content(owner, repo, path)
        except UpstreamUnavailable as e:
            logger.warning(
                "Context file unavailable",
                repo=f"{owner}/{repo}",
                path=path,
                permission_denied=e.permission_denied,
                error=str(e)
            )
            return None

    def _render(self, path: str, content: str) -> str:
        if self.summarize_package_json and posixpath.basename(path) == "package.json":
            summary = describe_package_manifest(content)
            if summary is not None:
                return summary
        return content
