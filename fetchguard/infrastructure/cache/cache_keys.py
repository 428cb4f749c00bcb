"""Derives namespaced store keys from a resource identifier.

Both keys share the same MD5 digest of the identifier and differ only in
their namespace prefix, so cache and rate-limit keys can never collide.
MD5 here is a content fingerprint, not a security boundary.
"""

import hashlib
from typing import Tuple

from fetchguard.domain.models.common import (
    CACHE_NAMESPACE,
    RATE_LIMIT_NAMESPACE,
    STATS_SUFFIX,
    CacheKey,
    RateLimitKey,
)


def _digest(resource_id: str) -> str:
    return hashlib.md5(resource_id.encode("utf-8")).hexdigest()


class CacheKeyer:
    """Deterministic key derivation for the cache and rate-limit namespaces."""

    def derive(self, resource_id: str) -> Tuple[CacheKey, RateLimitKey]:
        """Returns ``(cache_key, rate_limit_key)`` for ``resource_id``."""
        digest = _digest(resource_id)
        return CacheKey(f"{CACHE_NAMESPACE}{digest}"), RateLimitKey(f"{RATE_LIMIT_NAMESPACE}{digest}")

    def cache_key(self, resource_id: str) -> CacheKey:
        return self.derive(resource_id)[0]

    def rate_limit_key(self, resource_id: str) -> RateLimitKey:
        return self.derive(resource_id)[1]

    @staticmethod
    def stats_key(cache_key: str) -> str:
        """Key of the hit-statistics hash belonging to a cache entry."""
        return f"{cache_key}{STATS_SUFFIX}"
