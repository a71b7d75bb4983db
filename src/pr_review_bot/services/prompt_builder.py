"""Builds the review prompt sent to the completion provider."""

from typing import List, Optional, Sequence

from ..models.github import ChangedFile
from ..models.review import ContextBundle, PromptTemplate


def format_file_diff(changed_file: ChangedFile) -> str:
    return f"File: {changed_file.filename}\nChanges:\n{changed_file.patch}"


class PromptBuilder:
    """Composes the preamble, diff block, context block and closing directive.

    The output depends only on its inputs. Files without a patch contribute
    no text. The context section, heading included, is held to the
    bundle's cap. When ``max_diff_chars`` is set, whole files are kept in order
    while they fit and the rest are named in a trailing note.
    """

    def __init__(self, template: Optional[PromptTemplate] = None, max_diff_chars: Optional[int] = None):
        self.template = template or PromptTemplate()
        self.max_diff_chars = max_diff_chars

    def build(self, changed_files: Sequence[ChangedFile], context: Optional[ContextBundle] = None) -> str:
        sections = [self.template.preamble.strip()]
        if self.template.team_rules:
            sections.append(f"Team review rules:\n{self.template.team_rules}")

        sections.append(self.build_diff_block(changed_files))

        if context is not None and not context.is_empty:
            section = f"{self.template.context_heading}\n{context.render()}"
            sections.append(section[:context.max_chars])

        sections.append(self.template.render_closing())
        return "\n\n".join(sections)

    def build_diff_block(self, changed_files: Sequence[ChangedFile]) -> str:
        entries = [format_file_diff(f) for f in changed_files if f.has_patch]
        names = [f.filename for f in changed_files if f.has_patch]
        if self.max_diff_chars is None:
            return "\n\n".join(entries)

        kept: List[str] = []
        used = 0
        for entry in entries:
            cost = len(entry) + (2 if kept else 0)
            if used + cost > self.max_diff_chars:
                break
            kept.append(entry)
            used += cost

        omitted = names[len(kept):]
        block = "\n\n".join(kept)
        if omitted:
            note = "Diffs omitted for size: " + ", ".join(omitted)
            block = f"{block}\n\n{note}" if block else note
        return block
