import pytest
import pytest_asyncio

from vidbriefs.core.db import create_engine, create_session_factory, normalize_db_url
from vidbriefs.core.providers.sql_key_value_store import SqlKeyValueStore


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}")
    store = SqlKeyValueStore(create_session_factory(engine))
    await store.initialize()
    yield store
    await engine.dispose()


def test_normalize_db_url():
    assert normalize_db_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert normalize_db_url("sqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"
    assert normalize_db_url("sqlite+aiosqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"


@pytest.mark.asyncio
async def test_get_missing_key(sql_store):
    assert await sql_store.get("absent") is None
    assert await sql_store.get_json("absent", default=[]) == []


@pytest.mark.asyncio
async def test_set_overwrites(sql_store):
    await sql_store.set("k", "one")
    await sql_store.set("k", "two")
    assert await sql_store.get("k") == "two"


@pytest.mark.asyncio
async def test_json_roundtrip_and_delete(sql_store):
    await sql_store.set_json("requestRecords", {"device": ["2024-01-01T00:00:00+00:00"]})
    assert await sql_store.get_json("requestRecords") == {"device": ["2024-01-01T00:00:00+00:00"]}

    await sql_store.delete("requestRecords")
    await sql_store.delete("requestRecords")
    assert await sql_store.get("requestRecords") is None


@pytest.mark.asyncio
async def test_values_persist_across_engines(tmp_path):
    url = f"sqlite:///{tmp_path / 'durable.db'}"

    engine = create_engine(url)
    store = SqlKeyValueStore(create_session_factory(engine))
    await store.initialize()
    await store.set_json("termsAccepted", True)
    await engine.dispose()

    engine = create_engine(url)
    reopened = SqlKeyValueStore(create_session_factory(engine))
    await reopened.initialize()
    assert await reopened.get_json("termsAccepted") is True
    await engine.dispose()
