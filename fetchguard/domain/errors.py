"""Exception hierarchy for fetchguard.

Only TransportError and CancellationError ever reach the caller of a fetch
as a terminal result. Store-related errors are contained inside the cache
and rate-limit layer, where they degrade to "allowed"/"miss".
"""

from typing import Optional


class FetchGuardError(Exception):
    """Base class for all fetchguard errors."""


class ConfigurationError(FetchGuardError):
    """Raised when a configuration value is missing or out of range."""


class TransportError(FetchGuardError):
    """Raised when a GET could not produce a response (network error, timeout).

    When raised by the retry executor after exhaustion, ``attempts`` holds the
    number of attempts that were made.
    """

    def __init__(self, message: str, url: Optional[str] = None, attempts: int = 1):
        self.url = url
        self.attempts = attempts
        super().__init__(message)


class CancellationError(FetchGuardError):
    """Raised when a run is cancelled explicitly or its deadline passes.

    Never retried, and distinct from retry exhaustion.
    """

    def __init__(self, message: str = "Operation cancelled", attempts: int = 0):
        self.attempts = attempts
        super().__init__(message)


class StoreUnavailableError(FetchGuardError):
    """Raised when the backing key-value store cannot be reached."""

    def __init__(self, message: str, address: Optional[str] = None):
        self.address = address
        super().__init__(message)


class SerializationError(FetchGuardError):
    """Raised when a cached payload cannot be decoded."""


class CacheEntryNotFoundError(FetchGuardError):
    """Raised when statistics are requested for an entry that no longer exists."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No cache entry for key: {key}")
