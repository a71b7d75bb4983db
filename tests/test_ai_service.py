"""
Tests for the completion provider client.
"""

import json

import httpx
import pytest

from pr_review_bot.config import AIModel
from pr_review_bot.exceptions import AnalysisUnavailable
from pr_review_bot.services.ai_service import AIService


def _service(settings, handler):
    return AIService(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_openai_request_carries_single_user_message(settings):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "Looks fine"}}]})

    async with _service(settings, handler) as service:
        result = await service.analyze("review this")

    assert result == "Looks fine"
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["auth"] == "Bearer sk-test"
    assert captured["body"]["model"] == "chatgpt-4o-latest"
    assert captured["body"]["messages"] == [{"role": "user", "content": "review this"}]


@pytest.mark.asyncio
async def test_anthropic_response_text_is_joined(settings):
    settings.anthropic_api_key = "sk-ant-test"
    settings.ai_model = AIModel.CLAUDE_35_SONNET

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "sk-ant-test"
        return httpx.Response(200, json={"content": [{"type": "text", "text": "Nice "}, {"type": "text", "text": "work"}]})

    async with _service(settings, handler) as service:
        assert await service.analyze("review this") == "Nice work"


@pytest.mark.asyncio
async def test_provider_error_status_raises(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "overloaded"})

    async with _service(settings, handler) as service:
        with pytest.raises(AnalysisUnavailable):
            await service.analyze("review this")


@pytest.mark.asyncio
async def test_malformed_response_raises(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    async with _service(settings, handler) as service:
        with pytest.raises(AnalysisUnavailable):
            await service.analyze("review this")


@pytest.mark.asyncio
async def test_transport_error_is_not_retried_by_default(settings):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with _service(settings, handler) as service:
        with pytest.raises(AnalysisUnavailable):
            await service.analyze("review this")

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_transport_retry_is_bounded_by_settings(settings):
    settings.ai_max_attempts = 2
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    async with _service(settings, handler) as service:
        assert await service.analyze("review this") == "ok"

    assert len(calls) == 2
