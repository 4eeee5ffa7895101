"""
Google Gemini implementation of LLMProvider.

This module provides a vendor-specific implementation for the Gemini API
while conforming to the LLMProvider interface.
"""
import asyncio
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from loguru import logger

from vidbriefs.core.exceptions import (
    LLMConnectionError,
    LLMTimeoutError,
    MalformedResponseError,
    UnauthorizedError,
)
from vidbriefs.core.providers.llm_provider import LLMProvider, LLMMessage, LLMResponse
from vidbriefs.models.enums import LLMRole


class GeminiProvider(LLMProvider):
    """
    Google Gemini implementation of LLMProvider.

    Uses the google-generativeai SDK for async text generation.

    Example:
        provider = GeminiProvider(
            api_key="your-api-key",
            model_name="gemini-2.5-flash",
        )
        response = await provider.generate_text(messages)
    """

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash", timeout: float = 300.0):
        """
        Initialize the Gemini provider.

        Args:
            api_key: Google AI API key.
            model_name: Gemini model to use (e.g., "gemini-2.5-flash").
            timeout: Default per-call timeout in seconds.
        """
        self.api_key = api_key
        if api_key:
            genai.configure(api_key=api_key)
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
        """
        Generate text completion using Gemini.

        Gemini uses a single prompt format, so messages are converted
        to a structured text prompt.
        """
        if not self.api_key:
            raise UnauthorizedError("No Gemini API key is configured.")

        model_name = model or self.model_name
        call_timeout = timeout or self.timeout
        prompt = self._format_messages(messages)

        config = genai.GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

        logger.debug(f"Sending request to Gemini ({model_name})")
        try:
            response = await asyncio.wait_for(
                genai.GenerativeModel(model_name).generate_content_async(
                    prompt,
                    generation_config=config,
                ),
                timeout=call_timeout,
            )
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError(call_timeout) from e
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            logger.error("Unauthorized: invalid Gemini API key")
            raise UnauthorizedError() from e
        except google_exceptions.DeadlineExceeded as e:
            raise LLMTimeoutError(call_timeout) from e
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini request failed: {e}")
            raise LLMConnectionError() from e

        try:
            text = response.text
        except ValueError as e:
            # Raised when the candidate was blocked or carries no text part
            raise MalformedResponseError() from e

        usage = None
        if response.usage_metadata:
            usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count,
                "completion_tokens": response.usage_metadata.candidates_token_count,
                "total_tokens": response.usage_metadata.total_token_count,
            }
            logger.debug(f"Gemini token usage: {usage}")

        return LLMResponse(
            content=text,
            model=model_name,
            usage=usage,
        )

    def _format_messages(self, messages: list[LLMMessage]) -> str:
        """
        Convert universal messages to Gemini prompt format.

        Since Gemini prefers a single prompt, we format messages
        with role labels for context.
        """
        parts = []
        for msg in messages:
            if msg.role == LLMRole.SYSTEM:
                parts.append(f"System Instructions: {msg.content}\n\n")
            elif msg.role == LLMRole.USER:
                parts.append(f"User: {msg.content}\n")
            elif msg.role == LLMRole.ASSISTANT:
                parts.append(f"Assistant: {msg.content}\n")
        return "".join(parts)
