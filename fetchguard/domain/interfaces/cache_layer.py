"""Interface for the optional cache and rate-limit capability.

The orchestrator depends on this capability instead of on a possibly-absent
store. When caching is disabled a no-op implementation is injected.
"""

import abc
from typing import Any, Dict, Optional

from fetchguard.domain.models.cache import CacheEntry
from fetchguard.domain.models.http import HttpResponse


class CacheLayer(abc.ABC):
    """Abstract Base Class for cache-aside reads/writes and rate limiting.

    Methods may raise StoreUnavailableError; callers decide how to degrade.
    """

    enabled: bool = True

    @abc.abstractmethod
    async def get(self, resource_id: str) -> Optional[CacheEntry]:
        """Retrieves the cached entry for a resource.

        Args:
            resource_id: The identifier (URL) the entry was stored under.

        Returns:
            The cached entry if found and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def put(self, resource_id: str, response: HttpResponse, ttl: float) -> Optional[CacheEntry]:
        """Stores a response for a resource with a time-to-live.

        Args:
            resource_id: The identifier (URL) to store the entry under.
            response: The received response to cache.
            ttl: Time-to-live in seconds.

        Returns:
            The entry that was written, or None if nothing was stored.
        """
        pass

    @abc.abstractmethod
    async def check_and_increment(self, resource_id: str, limit: int, window: float) -> bool:
        """Fixed-window rate check for a resource.

        Args:
            resource_id: The identifier being requested.
            limit: Allowed requests per window.
            window: Window length in seconds.

        Returns:
            True if the request is allowed (and was counted), False if denied.
        """
        pass

    @abc.abstractmethod
    async def stats(self, resource_id: str) -> Dict[str, Any]:
        """Returns entry metadata merged with hit counters.

        Raises:
            CacheEntryNotFoundError: If no live entry exists for the resource.
        """
        pass

    @abc.abstractmethod
    async def clear(self) -> int:
        """Removes every cached entry (never rate-limit counters).

        Returns:
            Number of store keys removed.
        """
        pass

    async def close(self) -> None:
        """Releases the underlying store. Default is a no-op."""
        return None
