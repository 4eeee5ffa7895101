"""
Dependency injection factories for FastAPI.

This module provides factory functions for creating service instances
with proper dependency injection. Providers are selected based on config.
Services holding in-memory state (conversation histories, current
conversation per installation) are process-wide singletons.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from vidbriefs.core.config import settings
from vidbriefs.core.db import create_engine, create_session_factory
from vidbriefs.core.exceptions import ForbiddenError

# Provider interfaces
from vidbriefs.core.providers.llm_provider import LLMProvider
from vidbriefs.core.providers.key_value_store import KeyValueStore, InMemoryKeyValueStore

# Provider type enums
from vidbriefs.core.providers.enums import LLMProviderType, StorageBackendType

# Concrete providers
from vidbriefs.core.providers.openai_provider import OpenAIProvider
from vidbriefs.core.providers.gemini_provider import GeminiProvider
from vidbriefs.core.providers.groq_provider import GroqProvider
from vidbriefs.core.providers.sql_key_value_store import SqlKeyValueStore

# Repositories
from vidbriefs.repositories.conversation import ConversationStore
from vidbriefs.repositories.insights import InsightRepository
from vidbriefs.repositories.terms import TermsRepository

# Services
from vidbriefs.services.chunking import TranscriptChunker
from vidbriefs.services.chat import ChatService
from vidbriefs.services.rate_limiter import RequestRateLimiter
from vidbriefs.services.summarization import SummarizationService
from vidbriefs.services.transcripts import TranscriptService


# =============================================================================
# PROVIDER FACTORIES
# =============================================================================

@lru_cache
def get_llm_provider() -> LLMProvider:
    """
    Get the LLM provider for summarization and chat.

    Default: OpenAI-compatible chat completions (settings.LLM_PROVIDER)
    """
    provider_type = settings.LLM_PROVIDER

    if provider_type == LLMProviderType.OPENAI:
        return OpenAIProvider(
            api_key=settings.OPENAI_API_KEY,
            model_name=settings.OPENAI_MODEL_NAME,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    elif provider_type == LLMProviderType.GROQ:
        return GroqProvider(
            api_key=settings.GROQ_API_KEY,
            model_name=settings.GROQ_MODEL_NAME,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    elif provider_type == LLMProviderType.GEMINI:
        return GeminiProvider(
            api_key=settings.GEMINI_API_KEY,
            model_name=settings.GEMINI_MODEL_NAME,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    else:
        raise ValueError(f"Unknown LLM provider: {provider_type}")


@lru_cache
def get_key_value_store() -> KeyValueStore:
    """
    Get durable key-value storage.

    Default: SQL (settings.STORAGE_BACKEND, settings.DATABASE_URL)
    """
    backend = settings.STORAGE_BACKEND

    if backend == StorageBackendType.SQL:
        engine = create_engine(settings.DATABASE_URL)
        return SqlKeyValueStore(create_session_factory(engine))
    elif backend == StorageBackendType.MEMORY:
        return InMemoryKeyValueStore()
    else:
        raise ValueError(f"Unknown storage backend: {backend}")


# =============================================================================
# REPOSITORY FACTORIES
# =============================================================================

@lru_cache
def get_conversation_store() -> ConversationStore:
    """Get the conversation store (hydrated at application startup)."""
    return ConversationStore(get_key_value_store())


@lru_cache
def get_insight_repository() -> InsightRepository:
    return InsightRepository(get_key_value_store())


def get_terms_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> TermsRepository:
    return TermsRepository(store)


# =============================================================================
# SERVICE FACTORIES
# =============================================================================

@lru_cache
def get_transcript_service() -> TranscriptService:
    return TranscriptService(
        base_url=settings.TRANSCRIPT_SERVICE_URL,
        timeout=settings.TRANSCRIPT_TIMEOUT_SECONDS,
    )


@lru_cache
def get_rate_limiter() -> RequestRateLimiter:
    return RequestRateLimiter(
        get_key_value_store(),
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )


@lru_cache
def get_summarization_service() -> SummarizationService:
    """Get the single/chunked pass summarization pipeline."""
    return SummarizationService(
        llm_provider=get_llm_provider(),
        conversation_store=get_conversation_store(),
        chunker=TranscriptChunker(max_words_per_chunk=settings.MAX_WORDS_PER_CHUNK),
        small_threshold_words=settings.SMALL_THRESHOLD_WORDS,
        chunk_threshold_words=settings.CHUNK_THRESHOLD_WORDS,
        concurrency_limit=settings.MAX_CONCURRENT_CHUNKS,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )


@lru_cache
def get_chat_service() -> ChatService:
    """
    Get the chat service.

    Wires together:
    - TranscriptService for transcript retrieval
    - SummarizationService for answering questions about a transcript
    - ConversationStore and InsightRepository for persistence
    - RequestRateLimiter for the per-installation allowance
    """
    chat_model = (
        settings.CHAT_MODEL_NAME if settings.LLM_PROVIDER == LLMProviderType.OPENAI else None
    )
    return ChatService(
        transcript_service=get_transcript_service(),
        summarization_service=get_summarization_service(),
        conversation_store=get_conversation_store(),
        insight_repository=get_insight_repository(),
        rate_limiter=get_rate_limiter(),
        chat_llm_provider=get_llm_provider(),
        chat_model=chat_model,
        timeout=settings.LLM_TIMEOUT_SECONDS,
        deadline_seconds=settings.SUMMARY_DEADLINE_SECONDS,
    )


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

def get_identity(x_installation_id: Optional[str] = Header(default=None)) -> str:
    """Identity of the calling installation, used for rate limiting and sessions."""
    if x_installation_id and x_installation_id.strip():
        return x_installation_id.strip()
    return settings.DEFAULT_INSTALLATION_ID


async def require_terms_accepted(
    terms: TermsRepository = Depends(get_terms_repository),
) -> None:
    if not await terms.accepted():
        raise ForbiddenError("Please accept the terms and conditions before continuing.")
