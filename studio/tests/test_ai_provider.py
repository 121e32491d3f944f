"""Tests for the AI provider retry loop, with the SDK clients replaced by fakes."""

from __future__ import annotations

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from studio.services import ai_provider as ai_provider_module
from studio.services.ai_provider import AIProvider

pytestmark = pytest.mark.asyncio


def rate_limit_error() -> openai.RateLimitError:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return openai.RateLimitError("rate limited", response=httpx.Response(429, request=request), body=None)


def chat_response(content: str) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=5),
    )


def fake_openai(create: AsyncMock) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.fixture
def no_sleep(monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr(ai_provider_module.asyncio, "sleep", sleep)
    return sleep


class TestOpenAI:
    async def test_complete(self):
        create = AsyncMock(return_value=chat_response('{"headline": "Hi"}'))
        provider = AIProvider(provider="openai", model="gpt-4o-mini", max_retries=0)
        provider._openai_client = fake_openai(create)

        assert await provider.complete("system", "prompt") == '{"headline": "Hi"}'
        messages = create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "system"}
        assert messages[1] == {"role": "user", "content": "prompt"}

    async def test_retries_transient_error(self, no_sleep):
        create = AsyncMock(side_effect=[rate_limit_error(), chat_response("ok")])
        provider = AIProvider(provider="openai", max_retries=1)
        provider._openai_client = fake_openai(create)

        assert await provider.complete("system", "prompt") == "ok"
        assert create.await_count == 2
        no_sleep.assert_awaited_once_with(1)

    async def test_retries_exhausted(self, no_sleep):
        create = AsyncMock(side_effect=[rate_limit_error(), rate_limit_error()])
        provider = AIProvider(provider="openai", max_retries=1)
        provider._openai_client = fake_openai(create)

        with pytest.raises(openai.RateLimitError):
            await provider.complete("system", "prompt")
        assert create.await_count == 2

    async def test_usage_logged(self, caplog):
        create = AsyncMock(return_value=chat_response("ok"))
        provider = AIProvider(provider="openai", model="gpt-4o-mini", max_retries=0)
        provider._openai_client = fake_openai(create)

        with caplog.at_level(logging.INFO, logger="studio.services.ai_provider"):
            await provider.complete("system", "prompt")

        assert "provider=openai model=gpt-4o-mini input_tokens=12 output_tokens=5" in caplog.text


class TestAnthropic:
    async def test_complete_joins_text_blocks(self):
        response = SimpleNamespace(
            content=[SimpleNamespace(type="text", text='{"a": '), SimpleNamespace(type="text", text="1}")],
            usage=SimpleNamespace(input_tokens=10, output_tokens=4),
        )
        create = AsyncMock(return_value=response)
        provider = AIProvider(provider="anthropic", model="claude-3-5-haiku-20241022", max_retries=0)
        provider._anthropic_client = SimpleNamespace(messages=SimpleNamespace(create=create))

        assert await provider.complete("system", "prompt", max_tokens=256) == '{"a": 1}'
        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["max_tokens"] == 256
