"""FastAPI application for the review bot."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from json import JSONDecodeError
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException, Request

from . import __version__
from .config import Settings, get_settings
from .integrations.credentials import build_credential_provider
from .integrations.github_client import GitHubClient
from .services.ai_service import AIService
from .services.review_pipeline import ReviewPipeline
from .utils.logging import setup_logging
from .webhooks.github_webhook import GitHubWebhookHandler

logger = structlog.get_logger(__name__)


def build_webhook_handler(settings: Settings, analysis_client: Optional[AIService] = None) -> GitHubWebhookHandler:
    """Wire the pipeline and its collaborators from settings."""
    pipeline = ReviewPipeline.from_settings(
        settings,
        credentials=build_credential_provider(settings),
        client_factory=GitHubClient.factory(settings),
        analysis_client=analysis_client or AIService(settings),
    )
    return GitHubWebhookHandler(
        pipeline,
        webhook_secret=settings.github_webhook_secret,
        run_in_background=settings.process_in_background,
    )


def create_app(
    settings: Optional[Settings] = None,
    handler: Optional[GitHubWebhookHandler] = None,
) -> FastAPI:
    """Create the FastAPI app. Settings are read once, here."""
    settings = settings or get_settings()
    if handler is None:
        setup_logging(settings)
        handler = build_webhook_handler(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting review bot",
            version=__version__,
            environment=settings.environment.value,
            ai_model=settings.ai_model.value,
            auth_mode=settings.auth_mode.value
        )
        yield
        logger.info("Shutting down review bot", active_reviews=handler.active_review_count)
        await handler.drain()
        analysis_client = handler.pipeline.analysis_client
        if isinstance(analysis_client, AIService):
            await analysis_client.aclose()

    app = FastAPI(
        title="PR Review Bot",
        description="Reviews GitHub pull requests with a language model",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.webhook_handler = handler

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "active_reviews": handler.active_review_count
        }

    @app.post("/webhook/github")
    async def github_webhook(request: Request):
        """Acknowledge a GitHub delivery; review outcomes never change the status."""
        body = await request.body()
        try:
            payload = await request.json()
        except (JSONDecodeError, UnicodeDecodeError):
            logger.error("Webhook body is not valid JSON", length=len(body))
            payload = None

        try:
            return await handler.handle_webhook(
                payload=payload,
                event_type=request.headers.get("X-GitHub-Event"),
                signature=request.headers.get("X-Hub-Signature-256"),
                payload_body=body
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error("Error handling GitHub webhook", error=str(e), exc_info=True)
            return {"status": "error"}

    return app
