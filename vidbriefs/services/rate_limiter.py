"""
Rolling-window request limiting per installation.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List

from loguru import logger

from vidbriefs.core.constants import RateLimitConfig, StorageKeys
from vidbriefs.core.exceptions import RateLimitError
from vidbriefs.core.providers.key_value_store import KeyValueStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestRateLimiter:
    """
    Caps the number of requests an identity may make in a rolling window.

    Timestamps are persisted under `requestRecords` as
    `{identity: [iso8601, ...]}`. Every check first purges timestamps older
    than the window, so a request recorded at time T no longer counts at
    T + window.

    Example:
        limiter = RequestRateLimiter(store, max_requests=3)
        await limiter.check_and_record("device-1")
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_requests: int = RateLimitConfig.DEFAULT_MAX_REQUESTS,
        window_seconds: int = RateLimitConfig.WINDOW_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the limiter.

        Args:
            store: Durable key-value storage for the request records.
            max_requests: Requests allowed per identity within the window.
            window_seconds: Length of the rolling window.
            clock: Source of the current time (timezone-aware).
        """
        self.store = store
        self.max_requests = max_requests
        self.window = timedelta(seconds=window_seconds)
        self.clock = clock
        self._lock = asyncio.Lock()

    async def is_allowed(self, identity: str) -> bool:
        """True when `identity` has fewer than `max_requests` requests in the window."""
        async with self._lock:
            records = await self._purged_records()
        return len(records.get(identity, [])) < self.max_requests

    async def record_request(self, identity: str) -> None:
        async with self._lock:
            records = await self._purged_records()
            records.setdefault(identity, []).append(self.clock().isoformat())
            await self._write(records)

    async def remaining(self, identity: str) -> int:
        async with self._lock:
            records = await self._purged_records()
        return max(self.max_requests - len(records.get(identity, [])), 0)

    async def check_and_record(self, identity: str) -> None:
        """
        Admit a request and count it, in one step.

        Raises:
            RateLimitError: If the identity has used up its allowance.
        """
        async with self._lock:
            records = await self._purged_records()
            timestamps = records.setdefault(identity, [])
            if len(timestamps) >= self.max_requests:
                logger.warning(f"Rate limit reached for {identity}")
                raise RateLimitError(
                    f"You have reached the limit of {self.max_requests} requests. "
                    "Please try again later."
                )
            timestamps.append(self.clock().isoformat())
            await self._write(records)
        logger.debug(f"Recorded request for {identity} ({len(timestamps)}/{self.max_requests})")

    async def reset(self, identity: str) -> None:
        async with self._lock:
            records = await self._purged_records()
            if records.pop(identity, None) is not None:
                await self._write(records)

    async def _purged_records(self) -> Dict[str, List[str]]:
        raw: Dict[str, List[str]] = await self.store.get_json(StorageKeys.REQUEST_RECORDS, default={})
        cutoff = self.clock() - self.window
        purged = {
            identity: [ts for ts in timestamps if datetime.fromisoformat(ts) > cutoff]
            for identity, timestamps in raw.items()
        }
        purged = {identity: timestamps for identity, timestamps in purged.items() if timestamps}
        if purged != raw:
            await self._write(purged)
        return purged

    async def _write(self, records: Dict[str, List[str]]) -> None:
        await self.store.set_json(StorageKeys.REQUEST_RECORDS, records)
