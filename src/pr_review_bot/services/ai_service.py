"""AI service for generating code reviews."""

from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import Settings
from ..exceptions import AnalysisUnavailable
from ..integrations.base import AnalysisClient

logger = structlog.get_logger(__name__)


class AIService(AnalysisClient):
    """Sends a prompt to the configured completion provider."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        """Initialize AI service."""
        self.settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.ai_timeout_seconds)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def analyze(self, prompt: str) -> str:
        """Return the provider's raw answer to ``prompt``."""
        if self.settings.uses_openai_model:
            request = self._openai_request
            parse = self._parse_openai_response
        elif self.settings.uses_anthropic_model:
            request = self._anthropic_request
            parse = self._parse_anthropic_response
        else:
            raise AnalysisUnavailable(f"Unsupported AI model: {self.settings.ai_model}")

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.ai_max_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await request(prompt)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Completion provider returned an error",
                model=self.settings.ai_model.value,
                status=e.response.status_code
            )
            raise AnalysisUnavailable(
                f"Completion provider returned status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Completion provider unreachable", model=self.settings.ai_model.value, error=str(e))
            raise AnalysisUnavailable(f"Completion request failed: {e}") from e

        try:
            content = parse(response.json())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnalysisUnavailable(f"Unexpected completion response: {e}") from e

        if not isinstance(content, str):
            raise AnalysisUnavailable("Completion response carried no text")
        return content

    async def _openai_request(self, prompt: str) -> httpx.Response:
        payload = {
            "model": self.settings.ai_model.value,
            "messages": [
                {
                    "role": "user",
                    "content": prompt
                }
            ],
            "max_tokens": self.settings.ai_max_tokens,
        }

        headers = {
            "Authorization": f"Bearer {self.settings.openai_api_key}",
            "Content-Type": "application/json"
        }

        return await self._client.post(
            f"{self.settings.openai_base_url.rstrip('/')}/chat/completions",
            json=payload,
            headers=headers
        )

    async def _anthropic_request(self, prompt: str) -> httpx.Response:
        payload = {
            "model": self.settings.ai_model.value,
            "max_tokens": self.settings.ai_max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": prompt
                }
            ]
        }

        headers = {
            "x-api-key": self.settings.anthropic_api_key,
            "Content-Type": "application/json",
            "anthropic-version": "2023-06-01"
        }

        return await self._client.post(
            f"{self.settings.anthropic_base_url.rstrip('/')}/messages",
            json=payload,
            headers=headers
        )

    @staticmethod
    def _parse_openai_response(result: Dict[str, Any]) -> str:
        return result["choices"][0]["message"]["content"]

    @staticmethod
    def _parse_anthropic_response(result: Dict[str, Any]) -> str:
        return "".join(
            block["text"] for block in result["content"] if block.get("type") == "text"
        )
