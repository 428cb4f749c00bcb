"""API Resilience Implementations.

Contains backoff strategies, cancellation, the bounded retry executor and
the store-backed fixed-window rate limiter.
Bounded Context: API Resilience
"""
