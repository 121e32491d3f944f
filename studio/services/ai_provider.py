"""AI provider abstraction for Anthropic and OpenAI models."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import anthropic
import openai

from studio.config import settings

logger = logging.getLogger(__name__)

# Transient error types that warrant a retry
_RETRYABLE_ANTHROPIC = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.InternalServerError,
)
_RETRYABLE_OPENAI = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.InternalServerError,
)

# Everything a provider call can raise once retries are exhausted
PROVIDER_ERRORS = (anthropic.APIError, openai.APIError)


class AIProvider:
    """Unified interface for AI providers (Anthropic, OpenAI)."""

    def __init__(self, provider: str | None = None, model: str | None = None, max_retries: int | None = None) -> None:
        self.provider = provider or settings.AI_PROVIDER
        self.model = model or settings.AI_MODEL
        self.max_retries = settings.AI_MAX_RETRIES if max_retries is None else max_retries
        self._anthropic_client: anthropic.AsyncAnthropic | None = None
        self._openai_client: openai.AsyncOpenAI | None = None

    @property
    def anthropic_client(self) -> anthropic.AsyncAnthropic:
        if self._anthropic_client is None:
            self._anthropic_client = anthropic.AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)
        return self._anthropic_client

    @property
    def openai_client(self) -> openai.AsyncOpenAI:
        if self._openai_client is None:
            self._openai_client = openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        return self._openai_client

    async def complete(self, system: str, prompt: str, max_tokens: int = 1024, temperature: float = 0.7) -> str:
        """
        One system + user exchange against the configured provider.

        Returns:
            The generated text
        """
        messages = [{"role": "user", "content": prompt}]
        if self.provider == "anthropic":
            result = await self.call_claude(
                self.model, system, messages, max_tokens=max_tokens, temperature=temperature, max_retries=self.max_retries
            )
        else:
            result = await self.call_gpt(
                self.model, system, messages, max_tokens=max_tokens, temperature=temperature, max_retries=self.max_retries
            )
        logger.info(
            "AI call: provider=%s model=%s input_tokens=%d output_tokens=%d total_ms=%d",
            self.provider,
            self.model,
            result["usage"]["input_tokens"],
            result["usage"]["output_tokens"],
            result["timing"]["total_ms"],
        )
        return result["content"]

    async def call_claude(
        self,
        model: str,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 1024,
        temperature: float = 0.7,
        max_retries: int = 1,
    ) -> dict[str, Any]:
        """
        Call Claude API with retry on transient failures.

        Args:
            model: Model name (e.g., "claude-3-5-haiku-20241022")
            system: System prompt
            messages: List of message dicts with "role" and "content"
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            max_retries: Number of retries on transient failures (default 1)

        Returns:
            Dict with "content" (text), "usage" (token counts) and "timing"

        Raises:
            anthropic.APIError: If all retries exhausted
        """
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                started = time.perf_counter()
                response = await self.anthropic_client.messages.create(
                    model=model,
                    system=system,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
                total_ms = int((time.perf_counter() - started) * 1000)
                content = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
                return {
                    "content": content,
                    "usage": {
                        "input_tokens": response.usage.input_tokens,
                        "output_tokens": response.usage.output_tokens,
                    },
                    "timing": {"total_ms": total_ms},
                }
            except _RETRYABLE_ANTHROPIC as e:
                last_error = e
                if attempt < max_retries:
                    wait_time = 2**attempt  # Exponential backoff: 1s, 2s, 4s...
                    logger.warning("Claude API error (attempt %d), retrying in %ds: %s", attempt + 1, wait_time, e)
                    await asyncio.sleep(wait_time)
                else:
                    logger.error("Claude API error, retries exhausted: %s", e)

        # All retries failed
        raise last_error  # type: ignore[misc]

    async def call_gpt(
        self,
        model: str,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 1024,
        temperature: float = 0.7,
        max_retries: int = 1,
    ) -> dict[str, Any]:
        """
        Call OpenAI GPT API with retry on transient failures.

        Raises:
            openai.APIError: If all retries exhausted
        """
        # Prepend system message
        full_messages = [{"role": "system", "content": system}] + messages
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                started = time.perf_counter()
                response = await self.openai_client.chat.completions.create(
                    model=model,
                    messages=full_messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
                total_ms = int((time.perf_counter() - started) * 1000)
                return {
                    "content": response.choices[0].message.content or "",
                    "usage": {
                        "input_tokens": response.usage.prompt_tokens,
                        "output_tokens": response.usage.completion_tokens,
                    },
                    "timing": {"total_ms": total_ms},
                }
            except _RETRYABLE_OPENAI as e:
                last_error = e
                if attempt < max_retries:
                    wait_time = 2**attempt
                    logger.warning("OpenAI API error (attempt %d), retrying in %ds: %s", attempt + 1, wait_time, e)
                    await asyncio.sleep(wait_time)
                else:
                    logger.error("OpenAI API error, retries exhausted: %s", e)

        raise last_error  # type: ignore[misc]


# Singleton instance
ai_provider = AIProvider()
