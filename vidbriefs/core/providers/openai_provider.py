"""
OpenAI-compatible chat completions implementation of LLMProvider.

Talks to any endpoint that accepts `{model, messages}` with a Bearer token
and answers with `choices[0].message.content`, using a plain httpx client.
"""
from typing import Any, Optional

import httpx
from loguru import logger

from vidbriefs.core.exceptions import (
    LLMConnectionError,
    LLMTimeoutError,
    MalformedResponseError,
    UnauthorizedError,
)
from vidbriefs.core.providers.llm_provider import LLMProvider, LLMMessage, LLMResponse


class OpenAIProvider(LLMProvider):
    """
    OpenAI chat completions over HTTP.

    Example:
        provider = OpenAIProvider(api_key="sk-...", model_name="gpt-4o")
        response = await provider.generate_text(messages)
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 300.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the OpenAI provider.

        Args:
            api_key: Bearer credential. An empty key fails fast as unauthorized.
            model_name: Default model for completions.
            base_url: API base, without the `/chat/completions` suffix.
            timeout: Default per-call timeout in seconds.
            client: Optional pre-built client (tests inject a mock transport).
        """
        self.api_key = api_key
        self.model_name = model_name
        self.endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self.timeout = timeout
        self._client = client or httpx.AsyncClient()

    async def generate_text(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """Generate text completion using the chat completions endpoint."""
        if not self.api_key:
            raise UnauthorizedError("No LLM API key is configured.")

        model_name = model or self.model_name
        call_timeout = timeout or self.timeout
        payload: dict[str, Any] = {
            "model": model_name,
            "messages": [
                {"role": msg.role.value, "content": msg.content}
                for msg in messages
            ],
            "temperature": temperature,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        logger.debug(f"Sending request to OpenAI ({model_name}, {len(messages)} messages)")
        try:
            response = await self._client.post(
                self.endpoint,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=call_timeout,
            )
        except httpx.TimeoutException as e:
            logger.error(f"OpenAI request timed out after {call_timeout}s")
            raise LLMTimeoutError(call_timeout) from e
        except httpx.HTTPError as e:
            logger.error(f"OpenAI request failed: {e.__class__.__name__}: {e}")
            raise LLMConnectionError() from e

        if response.status_code == 401:
            logger.error("Unauthorized: invalid OpenAI API key")
            raise UnauthorizedError()
        if not response.is_success:
            logger.error(f"OpenAI returned status {response.status_code}")
            raise LLMConnectionError(status=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("The summarization service returned invalid JSON.") from e

        content = self._extract_content(data)

        usage = data.get("usage") if isinstance(data.get("usage"), dict) else None
        if usage:
            usage = {k: v for k, v in usage.items() if isinstance(v, int)}
            logger.debug(f"OpenAI token usage: {usage}")

        return LLMResponse(
            content=content,
            model=data.get("model") or model_name,
            usage=usage,
        )

    @staticmethod
    def _extract_content(data: Any) -> str:
        """Pull `choices[0].message.content` out of a decoded reply."""
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError() from e
        if not isinstance(content, str):
            raise MalformedResponseError()
        return content

    async def aclose(self) -> None:
        await self._client.aclose()
