"""Immutable configuration record for one orchestrated fetch.

Replaces variadic option closures with named fields and defaults; every
combination is a plain value that can be built, compared and tested.
"""

from dataclasses import dataclass, replace
from typing import Any

from fetchguard.domain.errors import ConfigurationError

DEFAULT_RETRIES = 3
DEFAULT_RATE_LIMIT = 10                 # requests per window
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60.0
DEFAULT_STORE_ADDRESS = "localhost:6379"
DEFAULT_TTL_SECONDS = 5 * 60.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 5.0
DEFAULT_DEADLINE_SECONDS = 30.0
DEFAULT_BACKOFF_BASE_SECONDS = 0.5
DEFAULT_BACKOFF_FACTOR = 2.0


@dataclass(frozen=True)
class FetchConfig:
    """Settings for the rate-limit → cache → fetch → cache flow.

    Attributes:
        retries: Retries after the first attempt (total attempts = retries + 1).
        cache_enabled: Whether the cache and rate-limit layer is used at all.
        rate_limit: Allowed requests per window and resource; 0 disables limiting.
        rate_limit_window: Window length in seconds.
        store_address: Backing store target (``host:port``, ``redis://...`` or ``disk://...``).
        ttl: Lifetime of cache entries in seconds.
        request_timeout: Timeout of a single HTTP attempt in seconds.
        deadline: Overall budget of one run in seconds (cancels retries when exceeded).
        backoff_base: Delay before the first retry in seconds.
        backoff_factor: Growth factor of the exponential backoff.
    """
    retries: int = DEFAULT_RETRIES
    cache_enabled: bool = False
    rate_limit: int = DEFAULT_RATE_LIMIT
    rate_limit_window: float = DEFAULT_RATE_LIMIT_WINDOW_SECONDS
    store_address: str = DEFAULT_STORE_ADDRESS
    ttl: float = DEFAULT_TTL_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    deadline: float = DEFAULT_DEADLINE_SECONDS
    backoff_base: float = DEFAULT_BACKOFF_BASE_SECONDS
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ConfigurationError(f"retries must be >= 0, got {self.retries}")
        if self.rate_limit < 0:
            raise ConfigurationError(f"rate_limit must be >= 0, got {self.rate_limit}")
        if self.rate_limit_window <= 0:
            raise ConfigurationError(f"rate_limit_window must be > 0, got {self.rate_limit_window}")
        if self.ttl <= 0:
            raise ConfigurationError(f"ttl must be > 0, got {self.ttl}")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be > 0, got {self.request_timeout}")
        if self.deadline <= 0:
            raise ConfigurationError(f"deadline must be > 0, got {self.deadline}")
        if self.backoff_base < 0:
            raise ConfigurationError(f"backoff_base must be >= 0, got {self.backoff_base}")
        if self.backoff_factor < 1:
            raise ConfigurationError(f"backoff_factor must be >= 1, got {self.backoff_factor}")
        if not self.store_address.strip():
            raise ConfigurationError("store_address must not be empty")

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def with_overrides(self, **changes: Any) -> "FetchConfig":
        """Returns a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
