"""Cache-aside store for HTTP responses.

Entries are written with the store's native expiry, so they disappear even
if nobody reads them again. Readers additionally check ``expires_at`` and
purge stale entries themselves before reporting a miss.

Hit statistics live in a hash next to the entry (``<key>:stats``). They are
reset whenever the entry is written again, purged together with it, and
their expiry follows the entry's remaining lifetime, so statistics never
outlive the entry they describe.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from fetchguard.domain.errors import CacheEntryNotFoundError, SerializationError
from fetchguard.domain.interfaces.key_value_store import KeyValueStore
from fetchguard.domain.models.cache import CacheEntry
from fetchguard.domain.models.common import CACHE_NAMESPACE
from fetchguard.domain.models.http import HttpResponse
from fetchguard.infrastructure.cache.cache_keys import CacheKeyer

logger = logging.getLogger(__name__)

HITS_FIELD = "requests"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheStore:
    """get/put/stats/clear over a KeyValueStore."""

    def __init__(self, store: KeyValueStore, clock: Optional[Clock] = None):
        """Initializes the CacheStore.

        Args:
            store: Backing key-value store.
            clock: Source of the current UTC time (injectable for tests).
        """
        self.store = store
        self.clock = clock or utc_now

    async def _purge(self, key: str) -> None:
        await self.store.delete(key, CacheKeyer.stats_key(key))

    async def get(self, key: str) -> Optional[CacheEntry]:
        """Returns the live entry stored under ``key``, or None.

        Expired and undecodable entries are deleted before None is returned.
        A successful read increments the entry's hit counter.
        """
        raw = await self.store.get(key)
        if raw is None:
            logger.debug(f"Cache MISS for key: {key}")
            return None

        try:
            entry = CacheEntry.from_json(raw)
        except SerializationError as e:
            logger.warning(f"Purging corrupt cache entry {key}: {e}")
            await self._purge(key)
            return None

        now = self.clock()
        if entry.is_expired(now):
            await self._purge(key)
            logger.debug(f"Cache EXPIRED key: {key} (expired at {entry.expires_at.isoformat()})")
            return None

        stats_key = CacheKeyer.stats_key(key)
        await self.store.hincrby(stats_key, HITS_FIELD, 1)
        await self.store.expire(stats_key, entry.remaining_ttl(now))
        logger.debug(f"Cache HIT for key: {key}")
        return entry

    async def put(self, key: str, entry: CacheEntry, ttl: float) -> None:
        """Writes ``entry`` under ``key`` with a native expiry of ``ttl`` seconds."""
        if ttl <= 0:
            raise ValueError(f"ttl must be > 0, got {ttl}")
        await self.store.set(key, entry.to_json(), ttl=ttl)
        # Repopulated entries start counting hits afresh
        await self.store.delete(CacheKeyer.stats_key(key))
        logger.debug(f"Cache PUT key: {key} TTL: {ttl:g}s")

    async def stats(self, key: str) -> Dict[str, Any]:
        """Entry metadata merged with its accumulated hit counters.

        Raises:
            CacheEntryNotFoundError: If the entry is absent, expired or
                undecodable (the last two are purged first).
        """
        raw = await self.store.get(key)
        if raw is None:
            raise CacheEntryNotFoundError(key)
        try:
            entry = CacheEntry.from_json(raw)
        except SerializationError as e:
            logger.warning(f"Purging corrupt cache entry {key}: {e}")
            await self._purge(key)
            raise CacheEntryNotFoundError(key) from e
        if entry.is_expired(self.clock()):
            await self._purge(key)
            raise CacheEntryNotFoundError(key)

        result: Dict[str, Any] = {
            "cached_at": entry.cached_at,
            "expires_at": entry.expires_at,
            "status_code": entry.status_code,
            "body_size": entry.body_size,
            "headers_count": len(entry.headers),
            HITS_FIELD: 0,
        }
        counters = await self.store.hgetall(CacheKeyer.stats_key(key))
        for name, value in counters.items():
            result[name] = int(value) if value.lstrip("-").isdigit() else value
        return result

    async def clear(self) -> int:
        """Deletes every key in the cache namespace and returns how many were removed."""
        keys = await self.store.scan_prefix(CACHE_NAMESPACE)
        if not keys:
            logger.info("Cache already empty.")
            return 0
        removed = await self.store.delete(*keys)
        logger.info(f"Cleared cache. Removed {removed} keys.")
        return removed

    def build_entry(self, response: HttpResponse, ttl: float, now: Optional[datetime] = None) -> CacheEntry:
        """Creates the entry to cache for a received response."""
        if ttl <= 0:
            raise ValueError(f"ttl must be > 0, got {ttl}")
        cached_at = now or self.clock()
        return CacheEntry(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.body,
            cached_at=cached_at,
            expires_at=cached_at + timedelta(seconds=ttl),
            request_count=0,
        )
