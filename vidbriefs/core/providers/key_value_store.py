"""
Abstract base class for durable key-value storage.

This module defines the vendor-neutral interface the repositories persist
through (conversation histories, saved insights, request records, the
terms flag). Concrete implementations (in-memory, SQL) implement it.
"""
import json
from abc import ABC, abstractmethod
from typing import Any, Optional


class KeyValueStore(ABC):
    """
    Abstract interface for string-keyed blob storage.

    Implementations must provide get, set and delete. JSON helpers are
    built on top of those three operations.

    Example:
        store = SqlKeyValueStore(session_factory)
        await store.set_json("termsAccepted", True)
        accepted = await store.get_json("termsAccepted", default=False)
    """

    async def initialize(self) -> None:
        """Prepare the backing storage. Called once at application startup."""
        return None

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under key.

        Returns:
            The stored value, or None if the key is absent.
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""
        ...

    async def get_json(self, key: str, default: Any = None) -> Any:
        """
        Read and decode a JSON blob.

        Returns:
            The decoded value, or default if the key is absent.
        """
        raw = await self.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    async def set_json(self, key: str, value: Any) -> None:
        """Encode value as JSON and store it under key."""
        await self.set(key, json.dumps(value))


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, used in tests and when persistence is disabled."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
