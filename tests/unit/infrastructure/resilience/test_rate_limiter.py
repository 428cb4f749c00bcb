import asyncio
import threading

import diskcache as dc
import pytest

from fetchguard.domain.errors import StoreUnavailableError
from fetchguard.domain.interfaces.key_value_store import KeyValueStore
from fetchguard.infrastructure.resilience.rate_limiter import RateLimiter
from fetchguard.infrastructure.store.disk_store import DiskKeyValueStore

KEY = "ratelimit:0123456789abcdef0123456789abcdef"


@pytest.fixture
def rate_limiter(disk_store):
    return RateLimiter(disk_store)


@pytest.mark.asyncio
async def test_fixed_window_allows_limit_then_denies(rate_limiter: RateLimiter, disk_store):
    results = [await rate_limiter.check_and_increment(KEY, limit=3, window=60) for _ in range(4)]

    assert results == [True, True, True, False]
    assert await rate_limiter.count(KEY) == 3
    assert await disk_store.get(KEY) == b"3"


@pytest.mark.asyncio
async def test_window_expiry_is_set_on_first_increment(rate_limiter: RateLimiter, disk_store):
    await rate_limiter.check_and_increment(KEY, limit=3, window=60)
    remaining = await disk_store.ttl(KEY)
    assert remaining is not None
    assert 0 < remaining <= 60


@pytest.mark.asyncio
async def test_denial_does_not_extend_the_window(rate_limiter: RateLimiter, disk_store):
    await rate_limiter.check_and_increment(KEY, limit=1, window=60)
    before = await disk_store.ttl(KEY)
    await asyncio.sleep(0.05)

    assert await rate_limiter.check_and_increment(KEY, limit=1, window=60) is False
    after = await disk_store.ttl(KEY)
    assert after <= before
    assert await rate_limiter.count(KEY) == 1


@pytest.mark.asyncio
async def test_counter_resets_when_window_expires(rate_limiter: RateLimiter):
    assert await rate_limiter.check_and_increment(KEY, limit=1, window=0.05)
    assert not await rate_limiter.check_and_increment(KEY, limit=1, window=0.05)
    await asyncio.sleep(0.1)
    assert await rate_limiter.check_and_increment(KEY, limit=1, window=0.05)


@pytest.mark.asyncio
async def test_concurrent_checks_never_exceed_limit(rate_limiter: RateLimiter):
    results = await asyncio.gather(*[
        rate_limiter.check_and_increment(KEY, limit=5, window=60) for _ in range(20)
    ])
    assert results.count(True) == 5
    assert await rate_limiter.count(KEY) == 5


@pytest.mark.asyncio
async def test_zero_limit_disables_limiting(rate_limiter: RateLimiter, disk_store):
    assert await rate_limiter.check_and_increment(KEY, limit=0, window=60)
    assert not await disk_store.exists(KEY)


@pytest.mark.asyncio
async def test_non_positive_window_is_rejected(rate_limiter: RateLimiter):
    with pytest.raises(ValueError):
        await rate_limiter.check_and_increment(KEY, limit=3, window=0)


@pytest.mark.asyncio
async def test_store_errors_propagate(mocker):
    store = mocker.MagicMock(spec=KeyValueStore)
    store.increment_within_limit = mocker.AsyncMock(side_effect=StoreUnavailableError("down"))

    with pytest.raises(StoreUnavailableError):
        await RateLimiter(store).check_and_increment(KEY, limit=3, window=60)


def test_limit_holds_across_connections_and_threads(tmp_path):
    directory = tmp_path / "shared"
    workers, calls_per_worker, limit = 8, 10, 25
    barrier = threading.Barrier(workers)
    allowed = []

    def worker():
        store = DiskKeyValueStore(directory, timeout=10.0)
        limiter = RateLimiter(store)

        async def hammer():
            return [await limiter.check_and_increment(KEY, limit=limit, window=60) for _ in range(calls_per_worker)]

        barrier.wait()
        try:
            allowed.append(asyncio.run(hammer()).count(True))
        finally:
            store._cache.close()

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(allowed) == workers
    assert sum(allowed) == limit
    with dc.Cache(str(directory)) as cache:
        assert cache.get(KEY) == limit
