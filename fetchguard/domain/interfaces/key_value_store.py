"""Interface for the shared key-value store.

Defines the primitives the cache and the rate limiter need from an external
store shared by independent (possibly multi-process) callers. Consistency is
delegated entirely to the store: no in-process locking happens above it.
"""

import abc
from typing import Dict, List, Optional, Tuple


class KeyValueStore(abc.ABC):
    """Abstract Base Class for key-value store backends.

    Implementations raise StoreUnavailableError for any backend failure.
    """

    address: str = ""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Returns the raw value stored under key, or None if absent or expired."""
        pass

    @abc.abstractmethod
    async def set(self, key: str, value: bytes, ttl: Optional[float] = None) -> None:
        """Stores value under key, with native expiry after ttl seconds if given."""
        pass

    @abc.abstractmethod
    async def delete(self, *keys: str) -> int:
        """Deletes the given keys and returns how many existed."""
        pass

    @abc.abstractmethod
    async def exists(self, key: str) -> bool:
        """Raw existence check, bypassing any application-level expiry logic."""
        pass

    @abc.abstractmethod
    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        """Atomically increments one field of the hash stored at key."""
        pass

    @abc.abstractmethod
    async def hgetall(self, key: str) -> Dict[str, str]:
        """Returns every field of the hash stored at key (empty if absent)."""
        pass

    @abc.abstractmethod
    async def expire(self, key: str, ttl: float) -> bool:
        """Sets the expiry of an existing key. Returns False if the key is absent."""
        pass

    @abc.abstractmethod
    async def ttl(self, key: str) -> Optional[float]:
        """Remaining lifetime of key in seconds; None if absent or persistent."""
        pass

    @abc.abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically increments the integer stored at key (created at 0)."""
        pass

    @abc.abstractmethod
    async def increment_within_limit(self, key: str, limit: int, window: float) -> Tuple[bool, int]:
        """Atomic fixed-window check-and-increment.

        If the counter is below ``limit`` it is incremented (and, when newly
        created, given an expiry of ``window`` seconds). At or above the
        limit nothing is written, so a denial never touches the window.

        Returns:
            ``(allowed, count)`` where count is the counter value afterwards.
        """
        pass

    @abc.abstractmethod
    async def scan_prefix(self, prefix: str) -> List[str]:
        """Lists every key starting with prefix."""
        pass

    @abc.abstractmethod
    async def ping(self) -> bool:
        """Checks that the store is reachable. Raises StoreUnavailableError otherwise."""
        pass

    @abc.abstractmethod
    async def close(self) -> None:
        """Releases connections or file handles."""
        pass
