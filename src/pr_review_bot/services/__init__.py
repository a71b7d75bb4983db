"""Services for the review bot."""

from .ai_service import AIService
from .context_assembler import ContextAssembler
from .file_filter import AcceptAll, ExtensionAllowList, FileFilterPolicy, HasPatch, build_file_filter
from .prompt_builder import PromptBuilder
from .review_pipeline import ReviewPipeline

__all__ = [
    "AIService",
    "AcceptAll",
    "ContextAssembler",
    "ExtensionAllowList",
    "FileFilterPolicy",
    "HasPatch",
    "PromptBuilder",
    "ReviewPipeline",
    "build_file_filter",
]
