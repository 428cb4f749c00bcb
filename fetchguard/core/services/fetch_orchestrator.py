"""
Core service composing rate limiting, the cache and the fetcher.

One run walks the states CHECK_RATE_LIMIT -> CHECK_CACHE -> FETCH_WITH_RETRY
-> WRITE_CACHE -> DONE, leaving early for ABORT (rate limited) or
RETURN_ERROR (fetch failed or cancelled). An unreachable store never stops
a run: the rate check counts as allowed, the lookup as a miss and the write
as skipped.
"""

import logging
from typing import Optional

from fetchguard.domain.errors import CancellationError, StoreUnavailableError, TransportError
from fetchguard.domain.interfaces.cache_layer import CacheLayer
from fetchguard.domain.models.cache import CacheEntry
from fetchguard.domain.models.config import FetchConfig
from fetchguard.domain.models.http import FetchResult, HttpResponse
from fetchguard.domain.models.results import SOURCE_CACHE, SOURCE_NETWORK, FetchOutcome, FetchState
from fetchguard.infrastructure.http.fetcher import HttpFetcher
from fetchguard.infrastructure.resilience.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class FetchOrchestrator:
    """Runs the rate-limit, cache-aside and fetch flow for one resource."""

    def __init__(self, config: FetchConfig, cache_layer: CacheLayer, fetcher: HttpFetcher):
        """Initializes the FetchOrchestrator.

        Args:
            config: Limits, TTL and deadline for every run.
            cache_layer: Cache and rate-limit capability (NullCacheLayer when disabled).
            fetcher: Performs the network GET with retries.
        """
        self.config = config
        self.cache_layer = cache_layer
        self.fetcher = fetcher

    def _enter(self, resource_id: str, state: FetchState) -> None:
        logger.debug(f"[{resource_id}] -> {state.name}")

    def _finish(self, outcome: FetchOutcome) -> FetchOutcome:
        self._enter(outcome.resource_id, outcome.state)
        return outcome

    async def run(self, resource_id: str, token: Optional[CancellationToken] = None) -> FetchOutcome:
        """Serves ``resource_id`` from the cache or the network.

        Args:
            resource_id: URL to fetch.
            token: Cancellation signal; a token with the configured overall
                deadline is created when omitted.

        Returns:
            The terminal FetchOutcome (DONE, ABORT or RETURN_ERROR).
        """
        token = token or CancellationToken(timeout=self.config.deadline)

        self._enter(resource_id, FetchState.CHECK_RATE_LIMIT)
        if not await self._allowed(resource_id):
            return self._finish(FetchOutcome(resource_id=resource_id, state=FetchState.ABORT))

        self._enter(resource_id, FetchState.CHECK_CACHE)
        entry = await self._lookup(resource_id)
        if entry is not None:
            return self._finish(FetchOutcome(
                resource_id=resource_id,
                state=FetchState.DONE,
                source=SOURCE_CACHE,
                entry=entry,
            ))

        self._enter(resource_id, FetchState.FETCH_WITH_RETRY)
        try:
            result: FetchResult = await self.fetcher.get(resource_id, token)
        except (TransportError, CancellationError) as e:
            logger.warning(f"Fetch of {resource_id} failed: {e}")
            return self._finish(FetchOutcome(
                resource_id=resource_id,
                state=FetchState.RETURN_ERROR,
                attempts=e.attempts,
                error=e,
            ))

        self._enter(resource_id, FetchState.WRITE_CACHE)
        written = await self._store(resource_id, result.response)
        return self._finish(FetchOutcome(
            resource_id=resource_id,
            state=FetchState.DONE,
            source=SOURCE_NETWORK,
            response=result.response,
            latency=result.latency,
            attempts=result.attempts,
            cached=written is not None,
        ))

    async def _allowed(self, resource_id: str) -> bool:
        try:
            allowed = await self.cache_layer.check_and_increment(
                resource_id, self.config.rate_limit, self.config.rate_limit_window
            )
        except StoreUnavailableError as e:
            logger.warning(f"Rate limit check failed, allowing request: {e}")
            return True
        if not allowed:
            logger.info(
                f"Rate limited: {resource_id} "
                f"(limit: {self.config.rate_limit} requests per {self.config.rate_limit_window:g}s)"
            )
        return allowed

    async def _lookup(self, resource_id: str) -> Optional[CacheEntry]:
        try:
            return await self.cache_layer.get(resource_id)
        except StoreUnavailableError as e:
            logger.warning(f"Cache check failed, treating as miss: {e}")
            return None

    async def _store(self, resource_id: str, response: HttpResponse) -> Optional[CacheEntry]:
        try:
            return await self.cache_layer.put(resource_id, response, self.config.ttl)
        except StoreUnavailableError as e:
            logger.warning(f"Failed to cache response for {resource_id}: {e}")
            return None
