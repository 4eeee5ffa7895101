"""
Provider abstraction layer for model-agnostic AI integration and storage.
"""
from vidbriefs.core.providers.llm_provider import (
    LLMProvider,
    LLMMessage,
    LLMResponse,
)
from vidbriefs.core.providers.key_value_store import (
    KeyValueStore,
    InMemoryKeyValueStore,
)
from vidbriefs.core.providers.enums import (
    LLMProviderType,
    StorageBackendType,
)

__all__ = [
    # LLM
    "LLMProvider",
    "LLMMessage",
    "LLMResponse",
    # Storage
    "KeyValueStore",
    "InMemoryKeyValueStore",
    # Enums
    "LLMProviderType",
    "StorageBackendType",
]
