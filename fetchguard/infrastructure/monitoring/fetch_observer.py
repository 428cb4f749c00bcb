"""FetchObserver implementations.

Observers receive the events fired by HttpFetcher. They must not raise;
the fetcher logs and ignores observer failures anyway.
"""

import logging
from typing import List, Optional

from fetchguard.domain.events.fetch_events import (
    FetchFailed,
    RequestStarted,
    ResponseReceived,
    RetryScheduled,
)
from fetchguard.domain.interfaces.fetch_observer import FetchObserver
from fetchguard.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)


def format_latency(seconds: float) -> str:
    """Human-readable latency ("850.3ms", "1.204s")."""
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.3f}s"


class NullFetchObserver(FetchObserver):
    """Ignores every event."""

    def on_request(self, event: RequestStarted) -> None:
        pass

    def on_response(self, event: ResponseReceived) -> None:
        pass


class LoggingFetchObserver(FetchObserver):
    """Writes fetch events to the application log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def on_request(self, event: RequestStarted) -> None:
        self.log.debug(f"Request: {event.method} {event.url} (attempt {event.attempt})")

    def on_response(self, event: ResponseReceived) -> None:
        self.log.debug(
            f"Response: {event.status_code} for {event.url} "
            f"(latency: {format_latency(event.latency_seconds)}, attempt {event.attempt})"
        )

    def on_retry(self, event: RetryScheduled) -> None:
        self.log.info(
            f"Retrying {event.url} after {event.error_type} "
            f"(attempt {event.attempt_number}, waiting {event.delay_seconds:.2f}s)"
        )

    def on_failure(self, event: FetchFailed) -> None:
        self.log.error(
            f"Fetch of {event.url} failed after {event.attempts} attempt(s): "
            f"{event.error_type}: {event.error_message}"
        )


class ConsoleFetchObserver(FetchObserver):
    """Prints request and response lines to the user interface."""

    def __init__(self, ui: UserInterface):
        self.ui = ui

    def on_request(self, event: RequestStarted) -> None:
        self.ui.display_output(f"Request: {event.method} {event.url}")

    def on_response(self, event: ResponseReceived) -> None:
        self.ui.display_output(
            f"Response: {event.status_code} (latency: {format_latency(event.latency_seconds)})"
        )

    def on_retry(self, event: RetryScheduled) -> None:
        self.ui.display_warning(
            f"Attempt {event.attempt_number} failed ({event.error_type}). "
            f"Retrying in {event.delay_seconds:.2f}s..."
        )


class CompositeFetchObserver(FetchObserver):
    """Fans every event out to several observers.

    A failing observer does not prevent the others from being notified.
    """

    def __init__(self, observers: Optional[List[FetchObserver]] = None):
        self.observers: List[FetchObserver] = list(observers or [])

    def _dispatch(self, hook: str, event) -> None:
        for observer in self.observers:
            try:
                getattr(observer, hook)(event)
            except Exception as e:
                logger.warning(f"{type(observer).__name__}.{hook} failed: {e}", exc_info=True)

    def on_request(self, event: RequestStarted) -> None:
        self._dispatch("on_request", event)

    def on_response(self, event: ResponseReceived) -> None:
        self._dispatch("on_response", event)

    def on_retry(self, event: RetryScheduled) -> None:
        self._dispatch("on_retry", event)

    def on_failure(self, event: FetchFailed) -> None:
        self._dispatch("on_failure", event)
