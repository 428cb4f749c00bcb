"""Backoff strategies for the retry executor.

Each factory returns a pure function mapping the 1-based attempt number that
just failed to the delay (in seconds) to wait before the next attempt.
"""

import random
from typing import Optional

from fetchguard.domain.models.common import BackoffStrategy


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")


def constant_backoff(delay: float) -> BackoffStrategy:
    """Same delay before every retry."""
    _require_non_negative("delay", delay)

    def strategy(attempt: int) -> float:
        return float(delay)

    return strategy


def exponential_backoff(base: float, factor: float) -> BackoffStrategy:
    """``base * factor ** (attempt - 1)``: exactly ``base`` after the first attempt."""
    _require_non_negative("base", base)
    _require_non_negative("factor", factor)

    def strategy(attempt: int) -> float:
        if attempt <= 1:
            return float(base)
        return base * factor ** (attempt - 1)

    return strategy


def jittered_backoff(
    base: float,
    max_jitter: float,
    rng: Optional[random.Random] = None,
) -> BackoffStrategy:
    """``base`` plus a uniform jitter in ``[0, max_jitter)``.

    Args:
        base: Fixed part of the delay in seconds.
        max_jitter: Upper (exclusive) bound of the random part in seconds.
        rng: Random source; a fresh ``random.Random`` is used if omitted.
    """
    _require_non_negative("base", base)
    _require_non_negative("max_jitter", max_jitter)
    source = rng or random.Random()

    def strategy(attempt: int) -> float:
        if max_jitter == 0:
            return float(base)
        # random() is in [0, 1), so the jitter never reaches max_jitter
        return base + source.random() * max_jitter

    return strategy
