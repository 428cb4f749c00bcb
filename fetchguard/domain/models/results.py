"""Records describing retry attempts and orchestrated fetch outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fetchguard.domain.models.cache import CacheEntry
from fetchguard.domain.models.http import HttpResponse

ATTEMPT_SUCCESS = "success"
ATTEMPT_FAILURE = "failure"
ATTEMPT_CANCELLED = "cancelled"


@dataclass(frozen=True)
class RetryAttempt:
    """One attempt made by the retry executor.

    ``delay`` is the backoff slept after this attempt (0.0 when none).
    """
    attempt: int
    delay: float
    outcome: str
    error: Optional[Exception] = None


class FetchState(str, Enum):
    """States of the orchestrated request flow."""

    CHECK_RATE_LIMIT = "check_rate_limit"
    CHECK_CACHE = "check_cache"
    FETCH_WITH_RETRY = "fetch_with_retry"
    WRITE_CACHE = "write_cache"
    DONE = "done"
    ABORT = "abort"
    RETURN_ERROR = "return_error"


SOURCE_CACHE = "cache"
SOURCE_NETWORK = "network"


@dataclass(frozen=True)
class FetchOutcome:
    """Terminal result of one orchestrated fetch."""
    resource_id: str
    state: FetchState
    source: Optional[str] = None
    entry: Optional[CacheEntry] = None
    response: Optional[HttpResponse] = None
    latency: Optional[float] = None
    attempts: int = 0
    cached: bool = False
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.state is FetchState.DONE

    @property
    def status_code(self) -> Optional[int]:
        if self.entry is not None:
            return self.entry.status_code
        if self.response is not None:
            return self.response.status_code
        return None

    @property
    def body(self) -> Optional[bytes]:
        if self.entry is not None:
            return self.entry.body
        if self.response is not None:
            return self.response.body
        return None
