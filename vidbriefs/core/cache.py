"""
In-memory caching of fetched transcripts.
"""
from cachetools import TTLCache
from typing import Optional
import hashlib

from vidbriefs.core.constants import CacheConfig
from vidbriefs.models.enums import TranscriptSource


# Transcripts are large; keep only a few dozen for an hour
transcript_cache: TTLCache[str, str] = TTLCache(
    maxsize=CacheConfig.TRANSCRIPT_MAXSIZE,
    ttl=CacheConfig.TRANSCRIPT_TTL_SECONDS,
)


def get_cache_key(url: str, source: TranscriptSource) -> str:
    """Generate a cache key from a video URL and its source."""
    return hashlib.sha256(f"{source.value}:{url}".encode()).hexdigest()


def get_cached_transcript(url: str, source: TranscriptSource) -> Optional[str]:
    """
    Retrieve a cached transcript for the given URL.

    Args:
        url: The video URL to look up.
        source: The transcript backend the URL belongs to.

    Returns:
        The cached transcript if found, None otherwise.
    """
    return transcript_cache.get(get_cache_key(url, source))


def set_cached_transcript(url: str, source: TranscriptSource, transcript: str) -> None:
    transcript_cache[get_cache_key(url, source)] = transcript


def clear_transcript_cache() -> None:
    transcript_cache.clear()
