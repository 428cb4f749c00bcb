"""Domain Events related to fetches and resilience.

Examples include events for when a request is sent, a response arrives, a
retry is scheduled, or a fetch fails definitively.
"""

from dataclasses import dataclass, field
import time
from typing import Optional

from fetchguard.domain.models.http import HttpResponse


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class RequestStarted(DomainEvent):
    """Event triggered right before an attempt's network call."""
    url: str
    attempt: int
    method: str = "GET"
    timestamp: float = field(default_factory=time.time)


@dataclass
class ResponseReceived(DomainEvent):
    """Event triggered when an attempt actually received a response."""
    url: str
    attempt: int
    response: HttpResponse
    latency_seconds: float
    timestamp: float = field(default_factory=time.time)

    @property
    def status_code(self) -> int:
        return self.response.status_code


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled after a failed attempt."""
    attempt_number: int
    delay_seconds: float
    error_type: str
    url: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class FetchFailed(DomainEvent):
    """Event triggered when a fetch fails definitively (after retries)."""
    url: str
    error_type: str
    error_message: str
    attempts: int
    timestamp: float = field(default_factory=time.time)
