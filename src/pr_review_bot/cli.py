"""Command-line interface for the review bot."""

import asyncio
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from .config import get_settings
from .exceptions import AuthUnavailable, PipelineOutcome
from .integrations.credentials import InstallationTokenProvider
from .main import build_webhook_handler
from .models.github import ReviewAction, ReviewEvent
from .utils.logging import setup_logging

app = typer.Typer(
    name="pr-review-bot",
    help="GitHub pull request review bot",
    add_completion=False
)
console = Console()


def _mask(value: Optional[str]) -> str:
    return "✅ set" if value else "❌ missing"


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind to"),
    port: Optional[int] = typer.Option(None, help="Port to bind to"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
):
    """Start the webhook server."""
    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(f"🚀 Starting PR Review Bot on {host}:{port}")
    console.print(f"🔑 Auth mode: {settings.auth_mode.value}")
    console.print(f"🤖 AI Model: {settings.ai_model.value}")

    uvicorn.run(
        "pr_review_bot.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.value.lower()
    )


@app.command()
def config():
    """Show current configuration."""
    settings = get_settings()

    table = Table(title="PR Review Bot Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Host", settings.host)
    table.add_row("Port", str(settings.port))
    table.add_row("Environment", settings.environment.value)
    table.add_row("Log Level", settings.log_level.value)
    table.add_row("Background Processing", str(settings.process_in_background))

    table.add_row("Auth Mode", settings.auth_mode.value)
    table.add_row("GitHub Token", _mask(settings.github_token))
    table.add_row("GitHub App Id", settings.github_app_id or "-")
    table.add_row("Webhook Secret", _mask(settings.github_webhook_secret))

    table.add_row("AI Model", settings.ai_model.value)
    table.add_row("OpenAI Key", _mask(settings.openai_api_key))
    table.add_row("Anthropic Key", _mask(settings.anthropic_api_key))
    table.add_row("AI Attempts", str(settings.ai_max_attempts))

    table.add_row("File Filter", settings.file_filter.value)
    table.add_row("Context Discovery", settings.context_discovery.value)
    table.add_row("Context Files", ", ".join(settings.context_files))
    table.add_row("Context Max Chars", str(settings.context_max_chars))
    table.add_row("Max Suggestions", str(settings.max_suggestions))
    table.add_row("Max Diff Chars", str(settings.max_diff_chars or "unlimited"))
    table.add_row("Rules File", str(settings.review_rules_file or "-"))

    console.print(table)


@app.command()
def review(
    owner: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    pr_number: int = typer.Argument(..., help="Pull request number"),
    installation_id: Optional[int] = typer.Option(None, help="GitHub App installation id"),
):
    """Review one pull request now and post the result."""
    settings = get_settings()
    setup_logging(settings)

    event = ReviewEvent(
        action=ReviewAction.OPENED,
        owner=owner,
        repo=repo,
        pull_number=pr_number,
        installation_id=installation_id,
    )
    console.print(f"🔍 Reviewing {event.request_id}")

    async def _review() -> PipelineOutcome:
        handler = build_webhook_handler(settings)
        try:
            return await handler.pipeline.run(event)
        finally:
            await handler.pipeline.analysis_client.aclose()

    outcome = asyncio.run(_review())
    if outcome.is_failure:
        console.print(f"❌ Review failed: {outcome.value}")
        raise typer.Exit(code=1)
    if outcome == PipelineOutcome.PUBLISHED:
        console.print("✅ Review posted")
    else:
        console.print(f"⚠️ Nothing posted: {outcome.value}")


@app.command("app-jwt")
def app_jwt():
    """Print a signed GitHub App JWT for debugging app credentials."""
    settings = get_settings()
    if not settings.uses_installation_auth:
        console.print("❌ app-jwt needs AUTH_MODE=installation")
        raise typer.Exit(code=1)

    try:
        token = InstallationTokenProvider.from_settings(settings).create_app_jwt()
    except AuthUnavailable as e:
        console.print(f"❌ {e}")
        raise typer.Exit(code=1)
    typer.echo(token)


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
