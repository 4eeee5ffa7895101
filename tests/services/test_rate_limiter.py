import json
from datetime import timedelta

import pytest

from vidbriefs.core.constants import StorageKeys
from vidbriefs.core.exceptions import RateLimitError
from vidbriefs.services.rate_limiter import RequestRateLimiter


@pytest.fixture
def limiter(kv_store, clock):
    return RequestRateLimiter(kv_store, max_requests=3, clock=clock)


@pytest.mark.asyncio
async def test_cap_within_window(limiter):
    for _ in range(3):
        assert await limiter.is_allowed("device-1")
        await limiter.record_request("device-1")

    assert not await limiter.is_allowed("device-1")
    assert await limiter.remaining("device-1") == 0


@pytest.mark.asyncio
async def test_allowed_again_after_window(limiter, clock):
    for _ in range(3):
        await limiter.record_request("device-1")
    assert not await limiter.is_allowed("device-1")

    clock.now += timedelta(days=8)

    assert await limiter.is_allowed("device-1")
    assert await limiter.remaining("device-1") == 3


@pytest.mark.asyncio
async def test_request_expires_exactly_at_window_end(limiter, clock):
    await limiter.record_request("device-1")

    clock.now += timedelta(days=7) - timedelta(seconds=1)
    assert await limiter.remaining("device-1") == 2

    clock.now += timedelta(seconds=1)
    assert await limiter.remaining("device-1") == 3


@pytest.mark.asyncio
async def test_identities_are_independent(limiter):
    for _ in range(3):
        await limiter.check_and_record("device-1")

    await limiter.check_and_record("device-2")
    assert await limiter.remaining("device-2") == 2


@pytest.mark.asyncio
async def test_check_and_record_raises_when_exhausted(limiter):
    for _ in range(3):
        await limiter.check_and_record("device-1")

    with pytest.raises(RateLimitError) as exc_info:
        await limiter.check_and_record("device-1")
    assert exc_info.value.status_code == 429
    # The refused request is not counted
    assert await limiter.remaining("device-1") == 0


@pytest.mark.asyncio
async def test_records_are_persisted_and_purged(limiter, kv_store, clock):
    await limiter.record_request("device-1")
    stored = json.loads(await kv_store.get(StorageKeys.REQUEST_RECORDS))
    assert stored == {"device-1": [clock.now.isoformat()]}

    clock.now += timedelta(days=8)
    await limiter.is_allowed("device-1")

    assert json.loads(await kv_store.get(StorageKeys.REQUEST_RECORDS)) == {}


@pytest.mark.asyncio
async def test_limits_survive_a_new_limiter_instance(limiter, kv_store, clock):
    for _ in range(3):
        await limiter.record_request("device-1")

    reloaded = RequestRateLimiter(kv_store, max_requests=3, clock=clock)
    assert not await reloaded.is_allowed("device-1")


@pytest.mark.asyncio
async def test_reset(limiter):
    await limiter.record_request("device-1")
    await limiter.reset("device-1")
    assert await limiter.remaining("device-1") == 3
