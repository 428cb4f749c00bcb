"""Cancellation signal shared by the retry executor and the fetcher.

A token is cancelled either explicitly via ``cancel()`` or implicitly once
its deadline passes. Sleeping through the token races the backoff delay
against cancellation, so an interrupted run never waits out a full backoff.
"""

import asyncio
import logging
import time
from typing import Optional

from fetchguard.domain.errors import CancellationError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Explicit cancellation flag with an optional monotonic deadline."""

    def __init__(self, timeout: Optional[float] = None):
        """Initializes the token.

        Args:
            timeout: Seconds from now after which the token counts as cancelled.
                None means no deadline.
        """
        self._event = asyncio.Event()
        self._deadline: Optional[float] = None
        self._reason = "Operation cancelled"
        if timeout is not None:
            self._deadline = time.monotonic() + timeout

    @classmethod
    def with_timeout(cls, timeout: float) -> "CancellationToken":
        return cls(timeout=timeout)

    def cancel(self, reason: str = "Operation cancelled") -> None:
        """Cancels the token and wakes up any pending sleep."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()
            logger.debug(f"Cancellation requested: {reason}")

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def reason(self) -> str:
        if not self._event.is_set() and self.cancelled:
            return "Deadline exceeded"
        return self._reason

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (None without a deadline)."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self, attempts: int = 0) -> None:
        if self.cancelled:
            raise CancellationError(self.reason, attempts=attempts)

    async def sleep(self, delay: float, attempts: int = 0) -> None:
        """Sleeps for ``delay`` seconds unless cancelled first.

        Raises:
            CancellationError: If the token is cancelled (or the deadline
                passes) before the delay elapses.
        """
        self.raise_if_cancelled(attempts)
        remaining = self.remaining()
        wait_for = delay if remaining is None else min(delay, remaining)
        try:
            await asyncio.wait_for(self._event.wait(), timeout=wait_for)
        except asyncio.TimeoutError:
            pass
        # Woken by cancel(), or the deadline was shorter than the delay
        self.raise_if_cancelled(attempts)
