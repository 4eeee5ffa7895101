"""
Enums for provider type configuration.
"""
from enum import Enum


class LLMProviderType(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    GROQ = "groq"
    GEMINI = "gemini"


class StorageBackendType(str, Enum):
    """Supported durable key-value storage backends."""
    SQL = "sql"
    MEMORY = "memory"
