"""
Transcript service for fetching video transcripts from the extraction backend.
"""
from typing import Optional
from urllib.parse import urlsplit

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vidbriefs.core.cache import get_cached_transcript, set_cached_transcript
from vidbriefs.core.constants import TranscriptConfig
from vidbriefs.core.exceptions import BadRequestError, TranscriptFetchError
from vidbriefs.models.enums import TranscriptSource


SOURCE_PATHS = {
    TranscriptSource.YOUTUBE: TranscriptConfig.YOUTUBE_PATH,
    TranscriptSource.TED_TALK: TranscriptConfig.TED_TALK_PATH,
}

SOURCE_HOSTS = {
    TranscriptSource.YOUTUBE: TranscriptConfig.YOUTUBE_HOSTS,
    TranscriptSource.TED_TALK: TranscriptConfig.TED_TALK_HOSTS,
}


class TransientBackendError(Exception):
    """5xx from the backend; retried before giving up."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"transcript backend returned {status_code}")


def validate_video_url(url: str, source: TranscriptSource) -> str:
    """
    Check that `url` points at a host the source supports.

    Returns:
        The stripped URL.

    Raises:
        BadRequestError: If the URL is empty, not http(s), or on another host.
    """
    url = url.strip()
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    if parts.scheme not in ("http", "https") or not host:
        raise BadRequestError(f"'{url}' is not a valid video URL.")

    allowed = SOURCE_HOSTS[source]
    if not any(host == h or host.endswith(f".{h}") for h in allowed):
        raise BadRequestError(
            f"URL must be a {source.value.replace('_', ' ')} URL ({', '.join(allowed)})."
        )
    return url


class TranscriptService:
    """
    Service for retrieving transcripts from the transcript backend.

    The backend accepts `POST {"url": ...}` on a per-source path and answers
    `{"response": "<transcript>"}`. This service handles:
    1. Validating the video URL against the source's hosts.
    2. Retrying transport errors and 5xx responses with exponential backoff.
    3. Caching transcripts in memory to avoid refetching the same video.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 3000.0,
        client: Optional[httpx.AsyncClient] = None,
        retry_attempts: int = TranscriptConfig.RETRY_ATTEMPTS,
        backoff_multiplier: float = 1.0,
    ):
        """
        Initialize the TranscriptService.

        Args:
            base_url: Root URL of the transcript backend.
            timeout: Seconds to wait for one fetch; extraction of long videos is slow.
            client: Shared HTTP client; one is created when omitted.
            retry_attempts: Total attempts for transient failures.
            backoff_multiplier: Scale of the exponential backoff (0 disables waiting).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.retry_attempts = retry_attempts
        self.backoff_multiplier = backoff_multiplier

    async def fetch(self, url: str, source: TranscriptSource = TranscriptSource.YOUTUBE) -> str:
        """
        Fetch the transcript for a video URL.

        Args:
            url: The video URL.
            source: Which backend endpoint handles the URL.

        Returns:
            The transcript text.

        Raises:
            BadRequestError: If the URL does not belong to the source.
            TranscriptFetchError: If the backend fails or returns no transcript.
        """
        url = validate_video_url(url, source)

        cached = get_cached_transcript(url, source)
        if cached is not None:
            logger.info(f"Cache hit for transcript: {url}")
            return cached

        try:
            payload = await self._post_with_retry(url, source)
        except TransientBackendError as e:
            logger.error(f"Transcript backend kept failing for {url}: {e}")
            raise TranscriptFetchError(f"backend returned {e.status_code}") from e
        except httpx.TimeoutException as e:
            logger.error(f"Transcript fetch timed out for {url}")
            raise TranscriptFetchError("request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Transcript fetch failed for {url}: {e}")
            raise TranscriptFetchError("could not reach the transcript service") from e

        transcript = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(transcript, str):
            logger.error(f"Transcript response for {url} has no 'response' field")
            raise TranscriptFetchError("unexpected response from the transcript service")
        if not transcript.strip():
            logger.warning(f"Empty transcript returned for {url}")
            raise TranscriptFetchError("the video has no transcript")

        set_cached_transcript(url, source, transcript)
        logger.info(f"Fetched transcript for {url} ({len(transcript.split())} words)")
        return transcript

    async def _post_with_retry(self, url: str, source: TranscriptSource):
        endpoint = f"{self.base_url}{SOURCE_PATHS[source]}"
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.backoff_multiplier, min=0, max=10),
            retry=retry_if_exception_type((httpx.TransportError, TransientBackendError)),
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                logger.debug(f"POST {endpoint} (attempt {attempt_number})")
                response = await self.client.post(
                    endpoint, json={"url": url}, timeout=self.timeout
                )
                if response.status_code >= 500:
                    raise TransientBackendError(response.status_code)
                if response.status_code != 200:
                    raise TranscriptFetchError(f"backend returned {response.status_code}")
                try:
                    return response.json()
                except ValueError as e:
                    raise TranscriptFetchError("response was not valid JSON") from e

    async def aclose(self) -> None:
        await self.client.aclose()
