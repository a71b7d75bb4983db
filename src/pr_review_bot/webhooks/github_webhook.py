"""GitHub webhook handler for processing pull request events."""

import asyncio
import hashlib
import hmac
from typing import Any, Dict, Optional, Set

import structlog
from fastapi import HTTPException

from ..exceptions import MalformedEvent
from ..models.github import ReviewAction, ReviewEvent
from ..services.review_pipeline import ReviewPipeline

logger = structlog.get_logger(__name__)

PULL_REQUEST_EVENT = "pull_request"


class GitHubWebhookHandler:
    """Handler for GitHub webhook events.

    Every accepted delivery is acknowledged, whatever happens to the review
    it triggers. Reviews run as background tasks unless ``run_in_background``
    is off, in which case they are awaited before acknowledging.
    """

    def __init__(
        self,
        pipeline: ReviewPipeline,
        webhook_secret: Optional[str] = None,
        run_in_background: bool = True,
    ):
        """Initialize webhook handler."""
        self.pipeline = pipeline
        self.webhook_secret = webhook_secret
        self.run_in_background = run_in_background
        self._active_tasks: Set[asyncio.Task] = set()

    def verify_signature(self, payload_body: bytes, signature_header: Optional[str]) -> bool:
        """Verify GitHub webhook signature."""
        if not signature_header:
            return False

        try:
            # Extract signature from header
            signature = signature_header.split('=', 1)[1]

            # Calculate expected signature
            expected_signature = hmac.new(
                self.webhook_secret.encode(),
                payload_body,
                hashlib.sha256
            ).hexdigest()

            # Compare signatures
            return hmac.compare_digest(signature, expected_signature)

        except (IndexError, ValueError):
            return False

    async def handle_webhook(
        self,
        payload: Any,
        event_type: Optional[str] = None,
        signature: Optional[str] = None,
        payload_body: Optional[bytes] = None
    ) -> Dict[str, str]:
        """Handle incoming GitHub webhook."""
        if self.webhook_secret:
            if payload_body is None or not self.verify_signature(payload_body, signature):
                logger.warning("Invalid webhook signature", event_type=event_type)
                raise HTTPException(status_code=401, detail="Invalid signature")

        if event_type and event_type != PULL_REQUEST_EVENT:
            logger.debug("Ignoring webhook event", event_type=event_type)
            return {"status": "ignored", "reason": f"Event '{event_type}' not handled"}

        action = payload.get("action") if isinstance(payload, dict) else None
        if action is not None and not ReviewAction.parse(action).is_handled:
            logger.debug("Ignoring webhook action", action=action)
            return {"status": "ignored", "reason": f"Action '{action}' not handled"}

        try:
            event = ReviewEvent.from_payload(payload)
        except MalformedEvent as e:
            logger.error("Malformed webhook payload", event_type=event_type, error=str(e))
            return {"status": "ignored", "reason": "Malformed payload"}

        logger.info(
            "Received pull request event",
            request_id=event.request_id,
            action=event.action.value,
            installation_id=event.installation_id
        )

        if not self.run_in_background:
            outcome = await self._conduct_review(event)
            return {"status": outcome.value if outcome else "failed", "request_id": event.request_id}

        task = asyncio.create_task(
            self._conduct_review(event),
            name=f"review-{event.request_id}"
        )
        self._active_tasks.add(task)
        task.add_done_callback(self._active_tasks.discard)

        # Don't await the task - let it run in background
        return {"status": "accepted", "request_id": event.request_id}

    async def _conduct_review(self, event: ReviewEvent):
        """Run the pipeline, keeping any error away from the acknowledgement."""
        try:
            return await self.pipeline.run(event)
        except asyncio.CancelledError:
            logger.info("Review cancelled", request_id=event.request_id)
            raise
        except Exception as e:
            logger.error(
                "Unexpected error during code review",
                request_id=event.request_id,
                error=str(e),
                exc_info=True
            )
            return None

    @property
    def active_review_count(self) -> int:
        return len(self._active_tasks)

    async def drain(self) -> None:
        """Wait for in-flight reviews, e.g. on shutdown."""
        if self._active_tasks:
            await asyncio.gather(*list(self._active_tasks), return_exceptions=True)
