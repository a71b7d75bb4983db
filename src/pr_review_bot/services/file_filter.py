"""Changed-file relevance policies."""

import posixpath
from typing import Iterable, List, Sequence

from ..config import FileFilterMode, Settings
from ..models.github import ChangedFile


class FileFilterPolicy:
    """Decides whether a changed file is eligible for review."""

    name = "base"

    def __call__(self, changed_file: ChangedFile) -> bool:
        raise NotImplementedError

    def apply(self, changed_files: Iterable[ChangedFile]) -> List[ChangedFile]:
        return [changed_file for changed_file in changed_files if self(changed_file)]


class ExtensionAllowList(FileFilterPolicy):
    """Keeps files whose extension is in the allow-list."""

    name = "extensions"

    def __init__(self, extensions: Sequence[str]):
        self.extensions = frozenset(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in extensions
        )

    def __call__(self, changed_file: ChangedFile) -> bool:
        _, ext = posixpath.splitext(changed_file.filename)
        return ext.lower() in self.extensions


class HasPatch(FileFilterPolicy):
    """Keeps files GitHub reported a textual diff for."""

    name = "has_patch"

    def __call__(self, changed_file: ChangedFile) -> bool:
        return changed_file.has_patch


class AcceptAll(FileFilterPolicy):
    """Keeps every changed file."""

    name = "none"

    def __call__(self, changed_file: ChangedFile) -> bool:
        return True


def build_file_filter(settings: Settings) -> FileFilterPolicy:
    """Select the file filter policy once at startup."""
    if settings.file_filter == FileFilterMode.EXTENSIONS:
        return ExtensionAllowList(settings.include_extensions)
    if settings.file_filter == FileFilterMode.HAS_PATCH:
        return HasPatch()
    return AcceptAll()
