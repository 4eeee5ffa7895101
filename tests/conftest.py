"""
Shared pytest fixtures and configuration.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import datetime, timezone

from vidbriefs.main import app
from vidbriefs.api.dependencies import (
    get_chat_service,
    get_insight_repository,
    get_key_value_store,
    get_rate_limiter,
)
from vidbriefs.core.providers.key_value_store import InMemoryKeyValueStore
from vidbriefs.core.providers.llm_provider import LLMProvider, LLMResponse
from vidbriefs.repositories.conversation import ConversationStore
from vidbriefs.repositories.insights import InsightRepository
from vidbriefs.services.chat import ChatService
from vidbriefs.services.rate_limiter import RequestRateLimiter


def make_response(content: str) -> LLMResponse:
    return LLMResponse(content=content, model="test-model")


class FakeClock:
    """Settable clock for time-dependent code."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def conversation_store(kv_store):
    ids = iter(f"conv-{i}" for i in range(1, 1000))
    return ConversationStore(kv_store, id_factory=lambda: next(ids))


@pytest.fixture
def mock_llm_provider():
    """Create a mock LLMProvider that answers every call with the same text."""
    provider = AsyncMock(spec=LLMProvider)
    provider.generate_text.return_value = make_response("Mocked Summary Content")
    return provider


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def mock_chat_service():
    """Create a mock ChatService (async methods become AsyncMocks)."""
    return MagicMock(spec=ChatService)


@pytest.fixture
def override_dependencies(kv_store, mock_chat_service, clock):
    """Override FastAPI dependencies for testing."""
    insight_repository = InsightRepository(kv_store)
    rate_limiter = RequestRateLimiter(kv_store, max_requests=3, clock=clock)

    app.dependency_overrides[get_key_value_store] = lambda: kv_store
    app.dependency_overrides[get_chat_service] = lambda: mock_chat_service
    app.dependency_overrides[get_insight_repository] = lambda: insight_repository
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    yield

    # Clean up
    app.dependency_overrides.clear()
