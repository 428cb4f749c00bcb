import asyncio
import time

import pytest

from fetchguard.domain.errors import CancellationError
from fetchguard.infrastructure.resilience.cancellation import CancellationToken


def test_new_token_is_not_cancelled():
    token = CancellationToken()
    assert not token.cancelled
    assert token.remaining() is None
    token.raise_if_cancelled()


def test_cancel_sets_reason():
    token = CancellationToken()
    token.cancel("shutting down")
    assert token.cancelled
    assert token.reason == "shutting down"
    with pytest.raises(CancellationError, match="shutting down"):
        token.raise_if_cancelled(attempts=2)


def test_deadline_expires():
    token = CancellationToken.with_timeout(0.01)
    time.sleep(0.02)
    assert token.cancelled
    assert token.reason == "Deadline exceeded"
    assert token.remaining() == 0.0


@pytest.mark.asyncio
async def test_sleep_completes_when_not_cancelled():
    token = CancellationToken()
    started = time.monotonic()
    await token.sleep(0.01)
    assert time.monotonic() - started >= 0.005


@pytest.mark.asyncio
async def test_sleep_is_interrupted_by_cancel():
    token = CancellationToken()
    asyncio.get_running_loop().call_later(0.02, token.cancel)
    started = time.monotonic()

    with pytest.raises(CancellationError) as exc_info:
        await token.sleep(30, attempts=1)

    assert time.monotonic() - started < 5
    assert exc_info.value.attempts == 1


@pytest.mark.asyncio
async def test_sleep_is_cut_short_by_deadline():
    token = CancellationToken(timeout=0.02)
    with pytest.raises(CancellationError, match="Deadline exceeded"):
        await asyncio.wait_for(token.sleep(30), timeout=5)
