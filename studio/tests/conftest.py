"""
Pytest configuration and fixtures for Studio tests.

Route tests run against the ASGI app with storage, generator and product
resolver dependencies overridden, so no database or AI provider is needed.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ["TESTING"] = "true"
os.environ.setdefault("AI_PROVIDER", "openai")

from typing import Any  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from mailkit.kernel.assembly import MemoryStorage  # noqa: E402
from mailkit.kernel.mock_generator import MockGenerator  # noqa: E402
from mailkit.kernel.products import SAMPLE_PRODUCTS, StaticProductResolver  # noqa: E402
from studio.deps import get_generator, get_resolver, get_storage  # noqa: E402
from studio.main import app  # noqa: E402


class FakeProvider:
    """Stands in for AIProvider: returns queued replies, records prompts."""

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.prompts: list[dict[str, str]] = []

    async def complete(self, system: str, prompt: str, max_tokens: int = 1024, temperature: float = 0.7) -> str:
        self.prompts.append({"system": system, "prompt": prompt})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def mock_generator() -> MockGenerator:
    return MockGenerator(profile="instant")


@pytest_asyncio.fixture
async def async_client(storage, mock_generator):
    """Async HTTP client against the ASGI app, with in-memory collaborators."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_generator] = lambda: mock_generator
    app.dependency_overrides[get_resolver] = lambda: StaticProductResolver(SAMPLE_PRODUCTS)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
