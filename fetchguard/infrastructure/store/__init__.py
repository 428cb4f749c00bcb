"""Key-Value Store Adapters.

Concrete KeyValueStore implementations: Redis (shared across hosts) and
diskcache (shared across processes on one host).
Bounded Context: Shared State
"""
