"""
Groq (Llama) implementation of LLMProvider.

This module provides a vendor-specific implementation for the Groq API
(fast Llama inference) while conforming to the LLMProvider interface.
"""
from typing import Optional

import groq
from groq import AsyncGroq
from loguru import logger

from vidbriefs.core.exceptions import (
    LLMConnectionError,
    LLMTimeoutError,
    MalformedResponseError,
    UnauthorizedError,
)
from vidbriefs.core.providers.llm_provider import LLMProvider, LLMMessage, LLMResponse


class GroqProvider(LLMProvider):
    """
    Groq implementation of LLMProvider.

    Uses the Groq SDK, whose replies share the OpenAI
    `choices[0].message.content` shape.

    Example:
        provider = GroqProvider(
            api_key="your-api-key",
            model_name="llama-3.3-70b-versatile",
        )
        response = await provider.generate_text(messages)
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "llama-3.3-70b-versatile",
        timeout: float = 300.0,
    ):
        """
        Initialize the Groq provider.

        Args:
            api_key: Groq API key.
            model_name: Model to use (e.g., "llama-3.3-70b-versatile").
            timeout: Default per-call timeout in seconds.
        """
        self.api_key = api_key
        self.client = AsyncGroq(api_key=api_key, timeout=timeout, max_retries=0) if api_key else None
        self.model_name = model_name
        self.timeout = timeout

    async def generate_text(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """Generate text completion using Groq."""
        if self.client is None:
            raise UnauthorizedError("No Groq API key is configured.")

        model_name = model or self.model_name
        groq_messages = [
            {"role": msg.role.value, "content": msg.content}
            for msg in messages
        ]

        logger.debug(f"Sending request to Groq ({model_name})")
        try:
            response = await self.client.chat.completions.create(
                model=model_name,
                messages=groq_messages,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout or self.timeout,
            )
        except groq.AuthenticationError as e:
            logger.error("Unauthorized: invalid Groq API key")
            raise UnauthorizedError() from e
        except groq.APITimeoutError as e:
            raise LLMTimeoutError(timeout or self.timeout) from e
        except groq.APIStatusError as e:
            logger.error(f"Groq returned status {e.status_code}")
            raise LLMConnectionError(status=e.status_code) from e
        except groq.APIError as e:
            logger.error(f"Groq request failed: {e}")
            raise LLMConnectionError() from e

        if not response.choices or response.choices[0].message.content is None:
            raise MalformedResponseError()

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
            logger.debug(f"Groq token usage: {usage}")

        return LLMResponse(
            content=response.choices[0].message.content,
            model=model_name,
            usage=usage,
        )

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()
