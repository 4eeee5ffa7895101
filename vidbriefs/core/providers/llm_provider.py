"""
Abstract base class for LLM providers.

This module defines a vendor-neutral interface for interacting with
Large Language Models. Concrete implementations (OpenAI-compatible HTTP,
Groq, Gemini) must implement this interface and translate every vendor
failure into the LLMError family before it leaves the adapter.
"""
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, ConfigDict

from vidbriefs.models.conversation import Message

# Conversation messages are sent to providers unchanged.
LLMMessage = Message


class LLMResponse(BaseModel):
    """Standardized response from an LLM provider."""

    content: str
    model: str
    usage: Optional[dict[str, int]] = None

    model_config = ConfigDict(frozen=True)


class LLMProvider(ABC):
    """
    Abstract interface for LLM providers.

    Implementations must provide generate_text, which either returns the
    assistant text or raises one of:

    - UnauthorizedError: the credential was rejected (HTTP 401)
    - LLMTimeoutError: the call exceeded its timeout
    - MalformedResponseError: the reply lacked the expected content
    - LLMConnectionError: transport failure or any other non-success status

    Example:
        provider = OpenAIProvider(api_key="...", model_name="gpt-4o")
        response = await provider.generate_text([
            LLMMessage(role=LLMRole.SYSTEM, content="You are helpful."),
            LLMMessage(role=LLMRole.USER, content="Hello!"),
        ])
        print(response.content)
    """

    model_name: str

    @abstractmethod
    async def generate_text(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """
        Generate text completion from messages.

        Args:
            messages: Ordered conversation messages.
            temperature: Sampling temperature (0.0-1.0).
            max_tokens: Maximum tokens to generate (None for model default).
            model: Override of the provider's default model.
            timeout: Per-call timeout in seconds (None for provider default).

        Returns:
            LLMResponse containing generated content and metadata.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None
