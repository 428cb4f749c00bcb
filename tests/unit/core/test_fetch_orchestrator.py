import pytest
from unittest.mock import MagicMock

from fetchguard.core.services.fetch_orchestrator import FetchOrchestrator
from fetchguard.domain.errors import StoreUnavailableError, TransportError
from fetchguard.domain.interfaces.cache_layer import CacheLayer
from fetchguard.domain.interfaces.http_transport import HttpTransport
from fetchguard.domain.models.config import FetchConfig
from fetchguard.domain.models.http import HttpResponse
from fetchguard.domain.models.results import SOURCE_CACHE, SOURCE_NETWORK, FetchState
from fetchguard.infrastructure.cache.cache_keys import CacheKeyer
from fetchguard.infrastructure.cache.cache_layer import NullCacheLayer, StoreCacheLayer
from fetchguard.infrastructure.cache.cache_store import CacheStore
from fetchguard.infrastructure.http.fetcher import HttpFetcher
from fetchguard.infrastructure.resilience.backoff import constant_backoff
from fetchguard.infrastructure.resilience.cancellation import CancellationToken

URL = "https://example.com"


class CountingTransport(HttpTransport):
    """Answers every GET with 200 unless ``failures`` remain."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0

    async def get(self, url: str, timeout: float) -> HttpResponse:
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise TransportError("connection reset", url=url)
        return HttpResponse(
            status_code=200,
            headers={"Content-Type": "text/html"},
            body=b"<html>Example Domain</html>",
            url=url,
        )


@pytest.fixture
def config():
    return FetchConfig(cache_enabled=True, rate_limit=10, rate_limit_window=60, ttl=300, retries=2)


@pytest.fixture
def transport():
    return CountingTransport()


@pytest.fixture
def store_layer(disk_store, clock):
    return StoreCacheLayer(disk_store, cache_store=CacheStore(disk_store, clock=clock))


def make_orchestrator(config, cache_layer, transport):
    fetcher = HttpFetcher(transport, retries=config.retries, backoff=constant_backoff(0))
    return FetchOrchestrator(config, cache_layer, fetcher)


@pytest.mark.asyncio
async def test_miss_fetches_and_caches_then_hit_skips_transport(config, store_layer, transport, disk_store, clock):
    orchestrator = make_orchestrator(config, store_layer, transport)
    cache_key, rate_limit_key = CacheKeyer().derive(URL)

    first = await orchestrator.run(URL)

    assert first.state is FetchState.DONE
    assert first.source == SOURCE_NETWORK
    assert first.status_code == 200
    assert first.cached is True
    assert transport.calls == 1
    assert await disk_store.get(rate_limit_key) == b"1"
    stored = await store_layer.get(URL)
    assert (stored.expires_at - stored.cached_at).total_seconds() == 300
    assert 0 < await disk_store.ttl(cache_key) <= 300

    second = await orchestrator.run(URL)

    assert second.state is FetchState.DONE
    assert second.source == SOURCE_CACHE
    assert second.body == b"<html>Example Domain</html>"
    assert transport.calls == 1


@pytest.mark.asyncio
async def test_rate_limit_denial_aborts_before_cache_and_fetch(store_layer, transport):
    config = FetchConfig(cache_enabled=True, rate_limit=1)
    orchestrator = make_orchestrator(config, store_layer, transport)

    assert (await orchestrator.run(URL)).state is FetchState.DONE
    outcome = await orchestrator.run(URL)

    assert outcome.state is FetchState.ABORT
    assert transport.calls == 1


@pytest.mark.asyncio
async def test_fetch_failure_returns_error_and_writes_nothing(config, store_layer, disk_store):
    transport = CountingTransport(failures=10)
    orchestrator = make_orchestrator(config, store_layer, transport)

    outcome = await orchestrator.run(URL)

    assert outcome.state is FetchState.RETURN_ERROR
    assert isinstance(outcome.error, TransportError)
    assert outcome.attempts == 3
    assert transport.calls == 3
    assert not await disk_store.exists(CacheKeyer().cache_key(URL))


@pytest.mark.asyncio
async def test_cancelled_run_returns_error_without_fetching(config, store_layer, transport):
    token = CancellationToken()
    token.cancel()

    outcome = await make_orchestrator(config, store_layer, transport).run(URL, token)

    assert outcome.state is FetchState.RETURN_ERROR
    assert outcome.attempts == 0
    assert transport.calls == 0


@pytest.mark.asyncio
async def test_null_cache_layer_always_fetches(config, transport):
    orchestrator = make_orchestrator(config, NullCacheLayer(), transport)

    for _ in range(3):
        outcome = await orchestrator.run(URL)
        assert outcome.state is FetchState.DONE
        assert outcome.cached is False

    assert transport.calls == 3


@pytest.mark.asyncio
async def test_unreachable_store_degrades_to_plain_fetch(config, transport, mocker):
    layer = MagicMock(spec=CacheLayer)
    down = StoreUnavailableError("connection refused")
    layer.check_and_increment = mocker.AsyncMock(side_effect=down)
    layer.get = mocker.AsyncMock(side_effect=down)
    layer.put = mocker.AsyncMock(side_effect=down)

    outcome = await make_orchestrator(config, layer, transport).run(URL)

    assert outcome.state is FetchState.DONE
    assert outcome.source == SOURCE_NETWORK
    assert outcome.cached is False
    layer.put.assert_awaited_once()


@pytest.mark.asyncio
async def test_expired_entry_is_refetched(config, store_layer, transport, clock):
    orchestrator = make_orchestrator(config, store_layer, transport)
    await orchestrator.run(URL)
    clock.advance(301)

    outcome = await orchestrator.run(URL)

    assert outcome.source == SOURCE_NETWORK
    assert transport.calls == 2
