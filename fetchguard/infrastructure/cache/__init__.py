"""Caching Service Implementation.

Provides key derivation, the cache-aside store with TTL expiry and hit
statistics, and the CacheLayer implementations (store-backed and no-op).
Bounded Context: Cache Management
"""
