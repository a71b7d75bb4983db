"""Review-related Pydantic models."""

from typing import Dict, Optional

from pydantic import BaseModel, Field

from ..config import Settings

DEFAULT_PREAMBLE = (
    "You are a senior engineer reviewing a pull request. Review the following "
    "code changes. Suggest improvements and highlight any urgent logical issues."
)

DEFAULT_CLOSING = (
    "Suggest up to {max_suggestions} improvements. Present each suggested fix "
    "as a unified-diff style snippet that names the file it applies to."
)


class ContextBundle(BaseModel):
    """Supplementary repository files keyed by path, in discovery order."""
    files: Dict[str, str] = Field(default_factory=dict)
    max_chars: int = Field(4000, ge=0)

    @property
    def is_empty(self) -> bool:
        return not self.render()

    def render(self) -> str:
        """Concatenate the files and cut the result to ``max_chars``."""
        blocks = [f"=== {path} ===\n{content}" for path, content in self.files.items()]
        return "\n\n".join(blocks)[:self.max_chars]


class PromptTemplate(BaseModel):
    """Deployment-specific prompt text handed to the prompt builder."""
    preamble: str = DEFAULT_PREAMBLE
    team_rules: Optional[str] = None
    context_heading: str = "Project context:"
    closing: str = DEFAULT_CLOSING
    max_suggestions: int = Field(5, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PromptTemplate":
        """Build the template, loading the team rules file if configured."""
        team_rules = None
        if settings.review_rules_file:
            team_rules = settings.review_rules_file.read_text(encoding="utf-8").strip() or None
        return cls(team_rules=team_rules, max_suggestions=settings.max_suggestions)

    def render_closing(self) -> str:
        return self.closing.format(max_suggestions=self.max_suggestions)
