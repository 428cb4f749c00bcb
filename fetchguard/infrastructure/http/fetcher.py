"""One logical HTTP GET with bounded retries and observability hooks."""

import logging
import time
from typing import Any, Callable, Optional, Tuple

from fetchguard.domain.errors import CancellationError, TransportError
from fetchguard.domain.events.fetch_events import (
    DomainEvent,
    FetchFailed,
    RequestStarted,
    ResponseReceived,
    RetryScheduled,
)
from fetchguard.domain.interfaces.fetch_observer import FetchObserver
from fetchguard.domain.interfaces.http_transport import HttpTransport
from fetchguard.domain.models.common import BackoffStrategy
from fetchguard.domain.models.config import DEFAULT_REQUEST_TIMEOUT_SECONDS, DEFAULT_RETRIES
from fetchguard.domain.models.http import FetchResult, HttpResponse
from fetchguard.infrastructure.monitoring.fetch_observer import NullFetchObserver
from fetchguard.infrastructure.resilience.cancellation import CancellationToken
from fetchguard.infrastructure.resilience.retry_executor import RetryExecutor

logger = logging.getLogger(__name__)


class HttpFetcher:
    """Performs GET requests through a RetryExecutor.

    Any received response counts as success, whatever its status code; only
    transport failures are retried.
    """

    def __init__(
        self,
        transport: HttpTransport,
        retries: int = DEFAULT_RETRIES,
        backoff: Optional[BackoffStrategy] = None,
        observer: Optional[FetchObserver] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ):
        """Initializes the HttpFetcher.

        Args:
            transport: The HTTP transport issuing single requests.
            retries: Retries after the first attempt.
            backoff: Delay strategy between attempts (executor default if omitted).
            observer: Receives request/response/retry/failure events.
            request_timeout: Upper bound for a single attempt in seconds.
        """
        if retries < 0:
            raise ValueError(f"retries must be >= 0, got {retries}")
        self.transport = transport
        self.max_attempts = retries + 1
        self.backoff = backoff
        self.observer = observer or NullFetchObserver()
        self.request_timeout = request_timeout

    def _notify(self, callback: Callable[[Any], None], event: DomainEvent) -> None:
        try:
            callback(event)
        except Exception as e:
            logger.warning(f"Fetch observer {type(event).__name__} hook failed: {e}", exc_info=True)

    def _attempt_timeout(self, token: CancellationToken) -> float:
        remaining = token.remaining()
        if remaining is None:
            return self.request_timeout
        return min(self.request_timeout, remaining)

    async def get(self, url: str, token: Optional[CancellationToken] = None) -> FetchResult:
        """Fetches ``url``, retrying transport failures.

        Args:
            url: Absolute URL to fetch.
            token: Cancellation signal and overall deadline for this fetch.

        Returns:
            FetchResult with the response and the latency of the attempt that produced it.

        Raises:
            TransportError: When every attempt failed (``attempts`` holds the count).
            CancellationError: When cancelled or the deadline passed.
        """
        token = token or CancellationToken()

        def on_retry(event: RetryScheduled) -> None:
            event.url = url
            self._notify(self.observer.on_retry, event)

        executor = RetryExecutor(self.max_attempts, backoff=self.backoff, on_retry=on_retry)

        async def attempt_once(attempt: int) -> Tuple[HttpResponse, float]:
            self._notify(self.observer.on_request, RequestStarted(url=url, attempt=attempt))
            started = time.perf_counter()
            response = await self.transport.get(url, self._attempt_timeout(token))
            latency = time.perf_counter() - started
            self._notify(
                self.observer.on_response,
                ResponseReceived(url=url, attempt=attempt, response=response, latency_seconds=latency),
            )
            return response, latency

        try:
            response, latency = await executor.execute(attempt_once, token)
        except CancellationError:
            raise
        except Exception as e:
            attempts = executor.attempts_made
            self._notify(
                self.observer.on_failure,
                FetchFailed(url=url, error_type=type(e).__name__, error_message=str(e), attempts=attempts),
            )
            if isinstance(e, TransportError):
                e.attempts = attempts
                e.url = e.url or url
                raise
            raise TransportError(f"GET {url} failed: {type(e).__name__}: {e}", url=url, attempts=attempts) from e

        return FetchResult(response=response, latency=latency, attempts=executor.attempts_made)
