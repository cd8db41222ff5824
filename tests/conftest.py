"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

from aichatbot.config import Settings
from aichatbot.llm import AIProvider, AIResponse, ProviderClient, TokenUsage
from aichatbot.memory import MemoryStore


@pytest.fixture(autouse=True)
def clear_provider_override(monkeypatch):
    """Keep a developer's AI_PROVIDER from leaking into router tests."""
    monkeypatch.delenv("AI_PROVIDER", raising=False)


@pytest.fixture
def mock_settings(tmp_path: Path) -> Settings:
    """Create settings with test values."""
    return Settings(
        ai_provider="openrouter",
        openrouter_api_key="sk-or-test",
        openrouter_model="openai/gpt-4",
        openai_api_key="sk-openai-test",
        openai_model="gpt-4",
        default_max_tokens=4000,
        default_temperature=0.7,
        database_path=tmp_path / "test.db",
        max_context_messages=20,
    )


@pytest_asyncio.fixture
async def memory_store(tmp_path: Path) -> AsyncGenerator[MemoryStore, None]:
    """Create a temporary database for testing."""
    store = MemoryStore(tmp_path / "test_memory.db")
    await store.initialize()
    yield store
    await store.close()


def make_response(
    content: str = "Test response",
    model: str = "openai/gpt-4",
    prompt_tokens: int = 100,
    completion_tokens: int = 50,
) -> AIResponse:
    """Build an untagged provider response."""
    return AIResponse(
        content=content,
        usage=TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
        model=model,
    )


def make_client(
    provider: AIProvider,
    healthy: bool = True,
    error: Optional[Exception] = None,
    model: Optional[str] = None,
) -> Mock:
    """Create a mocked provider client."""
    model = model or ("openai/gpt-4" if provider == AIProvider.OPENROUTER else "gpt-4")

    client = Mock(spec=ProviderClient)
    client.provider = provider
    client.default_model = model
    client.health_check = AsyncMock(return_value=healthy)

    # A fresh response per call so provider tagging never leaks between calls
    if error is not None:
        client.send_message = AsyncMock(side_effect=error)
        client.analyze_image = AsyncMock(side_effect=error)
        client.process_text_file = AsyncMock(side_effect=error)
    else:
        client.send_message = AsyncMock(side_effect=lambda *a, **k: make_response(model=model))
        client.analyze_image = AsyncMock(side_effect=lambda *a, **k: make_response(model=model))
        client.process_text_file = AsyncMock(
            side_effect=lambda *a, **k: make_response(model=model)
        )

    client.get_models = AsyncMock(return_value=[])
    client.calculate_cost = Mock(return_value=0.0075)
    client.set_default_model = Mock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def client_factory():
    """Factory fixture for mocked provider clients."""
    return make_client


@pytest.fixture
def response_factory():
    """Factory fixture for provider responses."""
    return make_response


# Configure pytest-asyncio
def pytest_configure(config):
    """Configure pytest with asyncio settings."""
    config.addinivalue_line("markers", "asyncio: mark test as async")
