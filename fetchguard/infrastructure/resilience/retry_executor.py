"""Bounded-attempt retry execution with pluggable backoff.

Every failure is retried the same way: there is no classification into
retryable and terminal errors. Only cancellation stops a run early.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from fetchguard.domain.errors import CancellationError
from fetchguard.domain.models.common import BackoffStrategy
from fetchguard.domain.models.results import (
    ATTEMPT_CANCELLED,
    ATTEMPT_FAILURE,
    ATTEMPT_SUCCESS,
    RetryAttempt,
)
from fetchguard.domain.events.fetch_events import RetryScheduled
from fetchguard.infrastructure.resilience.backoff import constant_backoff
from fetchguard.infrastructure.resilience.cancellation import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0


class RetryExecutor:
    """Runs an async operation up to ``max_attempts`` times."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff: Optional[BackoffStrategy] = None,
        on_retry: Optional[Callable[[RetryScheduled], Any]] = None,
    ):
        """Initializes the RetryExecutor.

        Args:
            max_attempts: Total number of attempts, including the first one (>= 1).
            backoff: Delay strategy between attempts (constant 1s if omitted).
            on_retry: Optional callback receiving a RetryScheduled event before each sleep.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.backoff = backoff or constant_backoff(DEFAULT_BACKOFF_SECONDS)
        self.on_retry = on_retry
        self.history: List[RetryAttempt] = []

    async def execute(
        self,
        operation: Callable[[int], Awaitable[T]],
        token: Optional[CancellationToken] = None,
    ) -> T:
        """Executes the operation until it succeeds or attempts run out.

        Args:
            operation: Async callable receiving the 1-based attempt number.
            token: Cancellation signal checked before every attempt and raced
                against every backoff sleep.

        Returns:
            The result of the first successful attempt.

        Raises:
            CancellationError: If cancelled before an attempt or during a backoff.
            Exception: The last failure once every attempt has failed.
        """
        token = token or CancellationToken()
        self.history = []

        for attempt in range(1, self.max_attempts + 1):
            if token.cancelled:
                logger.info(f"Cancelled before attempt {attempt}/{self.max_attempts}: {token.reason}")
                self.history.append(RetryAttempt(attempt, 0.0, ATTEMPT_CANCELLED))
                raise CancellationError(token.reason, attempts=attempt - 1)

            try:
                result = await operation(attempt)
            except (CancellationError, asyncio.CancelledError) as e:
                self.history.append(RetryAttempt(attempt, 0.0, ATTEMPT_CANCELLED, e))
                raise
            except Exception as e:
                if attempt >= self.max_attempts:
                    self.history.append(RetryAttempt(attempt, 0.0, ATTEMPT_FAILURE, e))
                    logger.error(
                        f"All {self.max_attempts} attempts failed. "
                        f"Last error: {type(e).__name__}: {e}"
                    )
                    raise

                delay = self.backoff(attempt)
                self.history.append(RetryAttempt(attempt, delay, ATTEMPT_FAILURE, e))
                logger.warning(
                    f"{type(e).__name__}: {e}. "
                    f"Attempt {attempt}/{self.max_attempts}. Retrying in {delay:.2f}s..."
                )
                if self.on_retry is not None:
                    self.on_retry(RetryScheduled(
                        attempt_number=attempt,
                        delay_seconds=delay,
                        error_type=type(e).__name__,
                    ))
                await token.sleep(delay, attempts=attempt)
                continue

            self.history.append(RetryAttempt(attempt, 0.0, ATTEMPT_SUCCESS))
            if attempt > 1:
                logger.info(f"Operation succeeded on attempt {attempt}/{self.max_attempts}")
            return result

        # Unreachable: the loop either returns or raises
        raise RuntimeError("Retry loop exhausted without result")

    @property
    def attempts_made(self) -> int:
        """Number of times the operation was actually invoked in the last run."""
        # a cancelled record without an error was never invoked
        return sum(1 for a in self.history if not (a.outcome == ATTEMPT_CANCELLED and a.error is None))
