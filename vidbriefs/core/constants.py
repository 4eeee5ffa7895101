"""
Application-wide constants and configuration limits.

Grouped into static classes for namespace management and discoverability.
Tunable values (thresholds, caps, timeouts) live in Settings instead.
"""

class SummarizationConfig:
    """Configuration for the summarization pipeline."""
    # Observed in the field: under this, one prompt handles the whole transcript
    DEFAULT_SMALL_THRESHOLD_WORDS = 120_000
    # Observed in the field: over this, the transcript is chunked
    DEFAULT_CHUNK_THRESHOLD_WORDS = 12_000
    # One word is treated as one token for budgeting
    DEFAULT_MAX_WORDS_PER_CHUNK = 80_000
    DEFAULT_CONCURRENCY_LIMIT = 5

    SINGLE_PASS_TEMPERATURE = 0.3
    CHUNK_TEMPERATURE = 0.3
    REDUCE_TEMPERATURE = 0.4
    CHAT_TEMPERATURE = 0.7
    TITLE_TEMPERATURE = 0.2


class RateLimitConfig:
    """Rolling-window request limits per installation."""
    WINDOW_SECONDS = 604_800  # 7 days
    DEFAULT_MAX_REQUESTS = 3


class TranscriptConfig:
    """Configuration for the external transcript backend."""
    YOUTUBE_PATH = "/youtube/get_youtube_transcript/"
    TED_TALK_PATH = "/ted_talks/get_tedtalk_transcripts/"
    YOUTUBE_HOSTS = ("youtube.com", "youtu.be")
    TED_TALK_HOSTS = ("ted.com",)
    RETRY_ATTEMPTS = 3


class CacheConfig:
    """In-memory transcript cache limits."""
    TRANSCRIPT_MAXSIZE = 32
    TRANSCRIPT_TTL_SECONDS = 3600


class StorageKeys:
    """Keys used in the durable key-value store."""
    CONVERSATION_HISTORY = "conversationHistory"
    SAVED_INSIGHTS = "savedInsights"
    REQUEST_RECORDS = "requestRecords"
    TERMS_ACCEPTED = "termsAccepted"


class InsightConfig:
    """Defaults for saved insights."""
    UNTITLED = "Untitled Conversation"
    MAX_TITLE_LENGTH = 80
