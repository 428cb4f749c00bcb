"""fetchguard: resilient HTTP fetches with cache-aside storage and rate limiting."""

__version__ = "1.0.0"
