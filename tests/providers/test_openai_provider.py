import json

import httpx
import pytest

from vidbriefs.core.exceptions import (
    LLMConnectionError,
    LLMTimeoutError,
    MalformedResponseError,
    UnauthorizedError,
)
from vidbriefs.core.providers.openai_provider import OpenAIProvider
from vidbriefs.models import LLMRole, Message


MESSAGES = [
    Message(role=LLMRole.SYSTEM, content="You are helpful."),
    Message(role=LLMRole.USER, content="Hello!"),
]


def make_provider(handler, api_key="sk-test"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAIProvider(
        api_key=api_key,
        model_name="gpt-4o",
        base_url="https://llm.test/v1/",
        timeout=30,
        client=client,
    )


def completion(content):
    return {
        "model": "gpt-4o-2024",
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


@pytest.mark.asyncio
async def test_generate_text_sends_chat_completion():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=completion("Hi there"))

    provider = make_provider(handler)
    response = await provider.generate_text(MESSAGES, temperature=0.3, model="gpt-4")

    assert response.content == "Hi there"
    assert response.model == "gpt-4o-2024"
    assert response.usage["total_tokens"] == 15

    request = requests[0]
    assert str(request.url) == "https://llm.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "gpt-4"
    assert body["temperature"] == 0.3
    assert body["messages"] == [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Hello!"},
    ]


@pytest.mark.asyncio
async def test_401_is_unauthorized():
    provider = make_provider(lambda request: httpx.Response(401, json={"error": "bad key"}))
    with pytest.raises(UnauthorizedError) as exc_info:
        await provider.generate_text(MESSAGES)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_missing_key_fails_without_request():
    def handler(request):
        raise AssertionError("no request expected")

    provider = make_provider(handler, api_key="")
    with pytest.raises(UnauthorizedError):
        await provider.generate_text(MESSAGES)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 429, 500, 503])
async def test_other_statuses_are_connection_errors(status):
    provider = make_provider(lambda request: httpx.Response(status))
    with pytest.raises(LLMConnectionError) as exc_info:
        await provider.generate_text(MESSAGES)
    assert exc_info.value.status == status


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        {"unexpected": True},
    ],
)
async def test_missing_content_is_malformed(body):
    provider = make_provider(lambda request: httpx.Response(200, json=body))
    with pytest.raises(MalformedResponseError):
        await provider.generate_text(MESSAGES)


@pytest.mark.asyncio
async def test_invalid_json_is_malformed():
    provider = make_provider(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(MalformedResponseError):
        await provider.generate_text(MESSAGES)


@pytest.mark.asyncio
async def test_timeout_is_mapped():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    provider = make_provider(handler)
    with pytest.raises(LLMTimeoutError) as exc_info:
        await provider.generate_text(MESSAGES, timeout=12)
    assert exc_info.value.timeout == 12


@pytest.mark.asyncio
async def test_network_failure_is_connection_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    provider = make_provider(handler)
    with pytest.raises(LLMConnectionError):
        await provider.generate_text(MESSAGES)
