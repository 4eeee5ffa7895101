"""
SQLAlchemy implementation of KeyValueStore.

Backed by a single `key_value_entries` table; SQLite (aiosqlite) on the
device by default, any async SQLAlchemy URL otherwise.
"""
from typing import Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vidbriefs.core.db import create_tables
from vidbriefs.core.providers.key_value_store import KeyValueStore
from vidbriefs.models.sql import KeyValueEntry


class SqlKeyValueStore(KeyValueStore):
    """
    Key-value store persisted through SQLAlchemy.

    Each operation opens its own short-lived session so the store can be
    shared across concurrent requests.

    Example:
        engine = create_engine("sqlite+aiosqlite:///./vidbriefs.db")
        store = SqlKeyValueStore(create_session_factory(engine))
        await store.initialize()
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize the SQL store.

        Args:
            session_factory: Factory producing async sessions bound to the engine.
        """
        self.session_factory = session_factory

    async def initialize(self) -> None:
        """Create the backing table if it does not exist yet."""
        await create_tables(self.session_factory.kw["bind"])

    async def get(self, key: str) -> Optional[str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(KeyValueEntry.value).where(KeyValueEntry.key == key)
            )
            return result.scalars().first()

    async def set(self, key: str, value: str) -> None:
        async with self.session_factory() as session:
            entry = await session.get(KeyValueEntry, key)
            if entry is None:
                session.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            await session.commit()
        logger.debug(f"Persisted key '{key}' ({len(value)} chars)")

    async def delete(self, key: str) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            await session.commit()
        logger.debug(f"Deleted key '{key}'")
