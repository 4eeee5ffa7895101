from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import groq
import httpx
import pytest

from vidbriefs.core.exceptions import (
    LLMConnectionError,
    LLMTimeoutError,
    MalformedResponseError,
    UnauthorizedError,
)
from vidbriefs.core.providers.groq_provider import GroqProvider
from vidbriefs.models import LLMRole, Message


MESSAGES = [Message(role=LLMRole.USER, content="Hello!")]
REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def make_provider(create):
    provider = GroqProvider(api_key="gsk-test", model_name="llama-test")
    provider.client = MagicMock()
    provider.client.chat.completions.create = AsyncMock(side_effect=create)
    return provider


def completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=3, completion_tokens=2, total_tokens=5),
    )


@pytest.mark.asyncio
async def test_generate_text():
    provider = make_provider(lambda **kwargs: completion("Hi"))

    response = await provider.generate_text(MESSAGES, temperature=0.2)

    assert response.content == "Hi"
    assert response.usage["total_tokens"] == 5
    kwargs = provider.client.chat.completions.create.call_args.kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "Hello!"}]
    assert kwargs["model"] == "llama-test"


@pytest.mark.asyncio
async def test_missing_key():
    with pytest.raises(UnauthorizedError):
        await GroqProvider(api_key="").generate_text(MESSAGES)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error,expected",
    [
        (
            groq.AuthenticationError(
                "bad key", response=httpx.Response(401, request=REQUEST), body=None
            ),
            UnauthorizedError,
        ),
        (
            groq.InternalServerError(
                "boom", response=httpx.Response(500, request=REQUEST), body=None
            ),
            LLMConnectionError,
        ),
        (groq.APITimeoutError(request=REQUEST), LLMTimeoutError),
        (groq.APIConnectionError(request=REQUEST), LLMConnectionError),
    ],
)
async def test_errors_are_mapped(error, expected):
    provider = make_provider(error)
    with pytest.raises(expected):
        await provider.generate_text(MESSAGES)


@pytest.mark.asyncio
async def test_empty_choices_are_malformed():
    provider = make_provider(lambda **kwargs: SimpleNamespace(choices=[], usage=None))
    with pytest.raises(MalformedResponseError):
        await provider.generate_text(MESSAGES)
