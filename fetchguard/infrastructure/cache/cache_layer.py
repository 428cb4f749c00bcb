"""CacheLayer implementations.

StoreCacheLayer wires key derivation, the cache-aside store and the rate
limiter onto one shared KeyValueStore. NullCacheLayer stands in when
caching is disabled or the store could not be reached at startup.
"""

import logging
from typing import Any, Dict, Optional

from fetchguard.domain.errors import CacheEntryNotFoundError
from fetchguard.domain.interfaces.cache_layer import CacheLayer
from fetchguard.domain.interfaces.key_value_store import KeyValueStore
from fetchguard.domain.models.cache import CacheEntry
from fetchguard.domain.models.http import HttpResponse
from fetchguard.infrastructure.cache.cache_keys import CacheKeyer
from fetchguard.infrastructure.cache.cache_store import CacheStore
from fetchguard.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class StoreCacheLayer(CacheLayer):
    """Cache and rate limiting over a single KeyValueStore."""

    enabled = True

    def __init__(
        self,
        store: KeyValueStore,
        keyer: Optional[CacheKeyer] = None,
        cache_store: Optional[CacheStore] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """Initializes the StoreCacheLayer.

        Args:
            store: The shared key-value store.
            keyer: Key derivation (default CacheKeyer).
            cache_store: Cache-aside store over ``store`` (built if omitted).
            rate_limiter: Rate limiter over ``store`` (built if omitted).
        """
        self.store = store
        self.keyer = keyer or CacheKeyer()
        self.cache_store = cache_store or CacheStore(store)
        self.rate_limiter = rate_limiter or RateLimiter(store)
        logger.debug(f"StoreCacheLayer initialized on {getattr(store, 'address', store)}")

    async def get(self, resource_id: str) -> Optional[CacheEntry]:
        return await self.cache_store.get(self.keyer.cache_key(resource_id))

    async def put(self, resource_id: str, response: HttpResponse, ttl: float) -> Optional[CacheEntry]:
        entry = self.cache_store.build_entry(response, ttl)
        await self.cache_store.put(self.keyer.cache_key(resource_id), entry, ttl)
        return entry

    async def check_and_increment(self, resource_id: str, limit: int, window: float) -> bool:
        return await self.rate_limiter.check_and_increment(
            self.keyer.rate_limit_key(resource_id), limit, window
        )

    async def stats(self, resource_id: str) -> Dict[str, Any]:
        result = await self.cache_store.stats(self.keyer.cache_key(resource_id))
        result["url"] = resource_id
        return result

    async def clear(self) -> int:
        return await self.cache_store.clear()

    async def close(self) -> None:
        await self.store.close()


class NullCacheLayer(CacheLayer):
    """No-op layer: every lookup misses and every request is allowed."""

    enabled = False

    async def get(self, resource_id: str) -> Optional[CacheEntry]:
        return None

    async def put(self, resource_id: str, response: HttpResponse, ttl: float) -> Optional[CacheEntry]:
        return None

    async def check_and_increment(self, resource_id: str, limit: int, window: float) -> bool:
        return True

    async def stats(self, resource_id: str) -> Dict[str, Any]:
        raise CacheEntryNotFoundError(resource_id)

    async def clear(self) -> int:
        return 0
