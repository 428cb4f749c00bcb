"""HTTP Fetching.

Contains the httpx transport adapter and the retrying fetcher.
Bounded Context: Fetching
"""
