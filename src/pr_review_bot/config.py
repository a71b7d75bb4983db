"""Configuration management for the pull request review bot."""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class LogLevel(str, Enum):
    """Log level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(str, Enum):
    """Environment enumeration."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class AIModel(str, Enum):
    """Supported AI models."""
    CHATGPT_4O_LATEST = "chatgpt-4o-latest"
    GPT_4O = "gpt-4o"
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4_TURBO = "gpt-4-turbo"
    CLAUDE_35_SONNET = "claude-3-5-sonnet-latest"
    CLAUDE_3_HAIKU = "claude-3-haiku-20240307"


class AuthMode(str, Enum):
    """How the bot authenticates against GitHub."""
    STATIC = "static"
    INSTALLATION = "installation"


class FileFilterMode(str, Enum):
    """Which changed files are eligible for review."""
    EXTENSIONS = "extensions"
    HAS_PATCH = "has_patch"
    NONE = "none"


class ContextDiscovery(str, Enum):
    """How manifest files are located for prompt context."""
    FIXED = "fixed"
    SEARCH = "search"
    NONE = "none"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # GitHub Configuration
    github_token: Optional[str] = Field(None, description="GitHub token used in static auth mode")
    github_app_id: Optional[str] = Field(None, description="GitHub App id used in installation auth mode")
    github_app_private_key: Optional[str] = Field(None, description="GitHub App private key (PEM)")
    github_app_private_key_path: Optional[Path] = Field(None, description="Path to the GitHub App private key")
    auth_mode: AuthMode = Field(AuthMode.STATIC, description="GitHub authentication mode")
    github_webhook_secret: Optional[str] = Field(None, description="GitHub webhook secret")
    github_api_url: str = Field("https://api.github.com", description="GitHub API base URL")
    github_timeout_seconds: int = Field(15, description="Timeout for GitHub API calls")

    # AI Configuration
    openai_api_key: Optional[str] = Field(None, description="OpenAI API key")
    anthropic_api_key: Optional[str] = Field(None, description="Anthropic API key")
    openai_base_url: str = Field("https://api.openai.com/v1", description="OpenAI API base URL")
    anthropic_base_url: str = Field("https://api.anthropic.com/v1", description="Anthropic API base URL")
    ai_model: AIModel = Field(AIModel.CHATGPT_4O_LATEST, description="AI model to use")
    ai_timeout_seconds: float = Field(60.0, description="Completion request timeout in seconds")
    ai_max_tokens: int = Field(2000, description="Maximum tokens in the completion")
    ai_max_attempts: int = Field(1, ge=1, description="Transport attempts per completion request")

    # Server Configuration
    host: str = Field("0.0.0.0", description="Server host")
    port: int = Field(5000, description="Server port")
    environment: Environment = Field(Environment.DEVELOPMENT, description="Environment")
    process_in_background: bool = Field(True, description="Acknowledge webhooks before the review runs")

    # Logging Configuration
    log_level: LogLevel = Field(LogLevel.INFO, description="Logging level")
    log_format: str = Field("json", description="Log format (json or text)")
    log_file: Optional[str] = Field(None, description="Log file path")

    # File Filter Policy
    file_filter: FileFilterMode = Field(FileFilterMode.HAS_PATCH, description="Changed file filter policy")
    include_extensions: List[str] = Field(
        default=[
            ".py", ".js", ".ts", ".jsx", ".tsx", ".java", ".go", ".rs",
            ".c", ".h", ".cpp", ".hpp", ".cs", ".php", ".rb", ".swift",
            ".kt", ".scala", ".sh", ".json", ".toml", ".yaml", ".yml",
        ],
        description="Extensions reviewed when file_filter is 'extensions'"
    )

    # Context Policy
    context_discovery: ContextDiscovery = Field(ContextDiscovery.FIXED, description="Manifest discovery mode")
    context_files: List[str] = Field(
        default=[
            "package.json", "pyproject.toml", "requirements.txt",
            "go.mod", "Cargo.toml", "pom.xml",
        ],
        description="Candidate manifest filenames"
    )
    context_max_chars: int = Field(4000, ge=0, description="Cap on concatenated context text")
    summarize_package_json: bool = Field(False, description="Describe package.json instead of embedding it")

    # Prompt Policy
    max_suggestions: int = Field(5, ge=1, description="Maximum suggestions requested from the model")
    max_diff_chars: Optional[int] = Field(None, ge=1, description="Cap on the diff block; unset keeps every patch")
    review_rules_file: Optional[Path] = Field(None, description="Team review rules appended to the preamble")
    review_prefix: str = Field("Automated PR Review:\n", description="Prefix of every posted review")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @validator("auth_mode", always=True)
    def validate_auth_mode(cls, v: AuthMode, values: dict) -> AuthMode:
        """Validate GitHub credentials for the selected auth mode."""
        if v == AuthMode.STATIC and not values.get("github_token"):
            raise ValueError("GitHub token required for static auth mode")
        if v == AuthMode.INSTALLATION:
            if not values.get("github_app_id"):
                raise ValueError("GitHub App id required for installation auth mode")
            if not (values.get("github_app_private_key") or values.get("github_app_private_key_path")):
                raise ValueError("GitHub App private key required for installation auth mode")
        return v

    @validator("ai_model", always=True)
    def validate_ai_model(cls, v: AIModel, values: dict) -> AIModel:
        """Validate AI model configuration."""
        openai_key = values.get("openai_api_key")
        anthropic_key = values.get("anthropic_api_key")

        if v.value.startswith(("gpt", "chatgpt")) and not openai_key:
            raise ValueError("OpenAI API key required for GPT models")
        elif v.value.startswith("claude") and not anthropic_key:
            raise ValueError("Anthropic API key required for Claude models")

        return v

    @validator("log_file")
    def validate_log_file(cls, v: Optional[str]) -> Optional[str]:
        """Ensure log directory exists."""
        if v:
            log_path = Path(v)
            log_path.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def uses_openai_model(self) -> bool:
        """Check if using OpenAI model."""
        return self.ai_model.value.startswith(("gpt", "chatgpt"))

    @property
    def uses_anthropic_model(self) -> bool:
        """Check if using Anthropic model."""
        return self.ai_model.value.startswith("claude")

    @property
    def uses_installation_auth(self) -> bool:
        return self.auth_mode == AuthMode.INSTALLATION

    def read_private_key(self) -> str:
        """Return the GitHub App private key, reading it from disk if needed."""
        if self.github_app_private_key:
            return self.github_app_private_key
        if self.github_app_private_key_path:
            return self.github_app_private_key_path.read_text(encoding="utf-8")
        raise ValueError("No GitHub App private key configured")


@lru_cache
def get_settings() -> Settings:
    """Build application settings from the environment, once per process."""
    return Settings()
