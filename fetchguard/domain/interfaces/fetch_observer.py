"""Interface for observing fetch attempts.

Replaces loose pre/post request hooks. ``on_request`` fires before every
attempt's network call; ``on_response`` fires only when a response was
actually received, never on a transport failure.
"""

import abc

from fetchguard.domain.events.fetch_events import (
    FetchFailed,
    RequestStarted,
    ResponseReceived,
    RetryScheduled,
)


class FetchObserver(abc.ABC):
    """Abstract Base Class for fetch observability hooks."""

    @abc.abstractmethod
    def on_request(self, event: RequestStarted) -> None:
        """Called before each attempt's network call."""
        pass

    @abc.abstractmethod
    def on_response(self, event: ResponseReceived) -> None:
        """Called after a response is received, with that attempt's latency."""
        pass

    def on_retry(self, event: RetryScheduled) -> None:
        """Called when a failed attempt will be retried. Default is a no-op."""
        pass

    def on_failure(self, event: FetchFailed) -> None:
        """Called once when a fetch fails definitively. Default is a no-op."""
        pass
