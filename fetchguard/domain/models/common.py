"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like store keys
and backoff strategies, ensuring consistency and type safety.
"""

from typing import Callable, NewType

# === Caching Context ===
CacheKey = NewType("CacheKey", str)              # Namespaced key of a cached entry ("cache:<hash>")
RateLimitKey = NewType("RateLimitKey", str)      # Namespaced key of a rate-limit counter ("ratelimit:<hash>")

CACHE_NAMESPACE = "cache:"
RATE_LIMIT_NAMESPACE = "ratelimit:"
STATS_SUFFIX = ":stats"

# === Resilience Context ===
# Maps a 1-based attempt number to the delay (seconds) before the next attempt.
BackoffStrategy = Callable[[int], float]
