"""Fixed-window rate limiter over the shared key-value store.

Counts requests per key inside a window that starts with the first counted
request and ends when the counter expires in the store. The counter is
never reset or decremented by this code.
"""

import logging

from fetchguard.domain.interfaces.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 10
DEFAULT_TIME_WINDOW_SECONDS = 60.0


class RateLimiter:
    """Fixed-window limiter whose state lives entirely in the store."""

    def __init__(self, store: KeyValueStore):
        """Initializes the rate limiter.

        Args:
            store: Shared store holding the counters.
        """
        self.store = store

    async def check_and_increment(
        self,
        key: str,
        limit: int = DEFAULT_MAX_REQUESTS,
        window: float = DEFAULT_TIME_WINDOW_SECONDS,
    ) -> bool:
        """Counts one request against ``key`` if the window still has room.

        The decision and the increment are a single atomic store operation,
        so concurrent callers can never jointly exceed ``limit``. A denied
        request is not counted and does not move the window.

        Args:
            key: Namespaced rate-limit key.
            limit: Allowed requests per window; 0 or less disables limiting.
            window: Window length in seconds, applied when the counter is created.

        Returns:
            True if the request is allowed, False if it is rate limited.
        """
        if limit <= 0:
            return True
        if window <= 0:
            raise ValueError(f"window must be > 0, got {window}")

        allowed, count = await self.store.increment_within_limit(key, limit, window)
        if allowed:
            logger.debug(f"Rate limit permission granted for {key} ({count}/{limit}).")
        else:
            logger.info(f"Rate limit reached for {key} ({count}/{limit} per {window:g}s).")
        return allowed

    async def count(self, key: str) -> int:
        """Current counter value for ``key`` (0 when no window is open)."""
        raw = await self.store.get(key)
        if raw is None:
            return 0
        return int(raw)
