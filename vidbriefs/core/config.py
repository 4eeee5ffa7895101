"""
Application configuration using pydantic-settings.
"""
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vidbriefs.core.constants import RateLimitConfig, SummarizationConfig
from vidbriefs.core.providers.enums import LLMProviderType, StorageBackendType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    PROJECT_NAME: str = "VidBriefs"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "logs/vidbriefs.log"

    # LLM provider selection
    LLM_PROVIDER: LLMProviderType = LLMProviderType.OPENAI
    LLM_TIMEOUT_SECONDS: float = 300.0

    # OpenAI-compatible chat completions
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL_NAME: str = "gpt-4o"
    CHAT_MODEL_NAME: str = "gpt-4"

    # Groq API
    GROQ_API_KEY: str = ""
    GROQ_MODEL_NAME: str = "llama-3.3-70b-versatile"

    # Gemini API
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL_NAME: str = "gemini-2.5-flash"

    # Transcript backend
    TRANSCRIPT_SERVICE_URL: str = "http://127.0.0.1:8000"
    TRANSCRIPT_TIMEOUT_SECONDS: float = 3000.0

    # Durable key-value storage
    STORAGE_BACKEND: StorageBackendType = StorageBackendType.SQL
    DATABASE_URL: str = "sqlite+aiosqlite:///./vidbriefs.db"

    # Summarization routing
    SMALL_THRESHOLD_WORDS: int = SummarizationConfig.DEFAULT_SMALL_THRESHOLD_WORDS
    CHUNK_THRESHOLD_WORDS: int = SummarizationConfig.DEFAULT_CHUNK_THRESHOLD_WORDS
    MAX_WORDS_PER_CHUNK: int = SummarizationConfig.DEFAULT_MAX_WORDS_PER_CHUNK
    MAX_CONCURRENT_CHUNKS: int = SummarizationConfig.DEFAULT_CONCURRENCY_LIMIT
    SUMMARY_DEADLINE_SECONDS: Optional[float] = None

    # Request limiting
    RATE_LIMIT_MAX_REQUESTS: int = RateLimitConfig.DEFAULT_MAX_REQUESTS
    RATE_LIMIT_WINDOW_SECONDS: int = RateLimitConfig.WINDOW_SECONDS
    DEFAULT_INSTALLATION_ID: str = "local-device"

    @field_validator("TRANSCRIPT_SERVICE_URL", "OPENAI_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("MAX_WORDS_PER_CHUNK", "MAX_CONCURRENT_CHUNKS", "RATE_LIMIT_WINDOW_SECONDS")
    @classmethod
    def require_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
