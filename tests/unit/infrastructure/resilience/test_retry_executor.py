import asyncio
from unittest.mock import call

import pytest

from fetchguard.domain.errors import CancellationError, TransportError
from fetchguard.domain.events.fetch_events import RetryScheduled
from fetchguard.domain.models.results import ATTEMPT_FAILURE, ATTEMPT_SUCCESS
from fetchguard.infrastructure.resilience.backoff import constant_backoff
from fetchguard.infrastructure.resilience.cancellation import CancellationToken
from fetchguard.infrastructure.resilience.retry_executor import RetryExecutor


class FlakyOperation:
    """Fails ``failures`` times, then returns "ok"."""

    def __init__(self, failures: int, error: Exception = None):
        self.failures = failures
        self.error = error
        self.calls = []

    async def __call__(self, attempt: int) -> str:
        self.calls.append(attempt)
        if len(self.calls) <= self.failures:
            raise self.error or TransportError(f"boom {attempt}")
        return "ok"


@pytest.fixture
def executor():
    return RetryExecutor(max_attempts=4, backoff=constant_backoff(0))


@pytest.mark.asyncio
async def test_succeeds_after_k_failures(executor: RetryExecutor):
    operation = FlakyOperation(failures=2)

    result = await executor.execute(operation)

    assert result == "ok"
    assert operation.calls == [1, 2, 3]
    assert executor.attempts_made == 3
    assert [a.outcome for a in executor.history] == [ATTEMPT_FAILURE, ATTEMPT_FAILURE, ATTEMPT_SUCCESS]


@pytest.mark.asyncio
async def test_always_failing_raises_last_error_after_max_attempts():
    errors = [TransportError(f"failure {n}") for n in range(1, 4)]

    async def operation(attempt: int):
        raise errors[attempt - 1]

    executor = RetryExecutor(max_attempts=3, backoff=constant_backoff(0))
    with pytest.raises(TransportError) as exc_info:
        await executor.execute(operation)

    assert exc_info.value is errors[-1]
    assert executor.attempts_made == 3


@pytest.mark.asyncio
async def test_every_exception_type_is_retried(executor: RetryExecutor):
    operation = FlakyOperation(failures=1, error=ValueError("unexpected"))
    assert await executor.execute(operation) == "ok"
    assert operation.calls == [1, 2]


@pytest.mark.asyncio
async def test_cancelled_token_skips_the_first_attempt(executor: RetryExecutor):
    token = CancellationToken()
    token.cancel("user abort")
    operation = FlakyOperation(failures=0)

    with pytest.raises(CancellationError) as exc_info:
        await executor.execute(operation, token)

    assert operation.calls == []
    assert exc_info.value.attempts == 0
    assert executor.attempts_made == 0


@pytest.mark.asyncio
async def test_cancellation_during_backoff_stops_retrying():
    executor = RetryExecutor(max_attempts=5, backoff=constant_backoff(30))
    token = CancellationToken()
    operation = FlakyOperation(failures=10)
    asyncio.get_running_loop().call_later(0.05, token.cancel)

    with pytest.raises(CancellationError):
        await asyncio.wait_for(executor.execute(operation, token), timeout=5)

    assert operation.calls == [1]


@pytest.mark.asyncio
async def test_deadline_interrupts_backoff():
    executor = RetryExecutor(max_attempts=5, backoff=constant_backoff(30))
    token = CancellationToken(timeout=0.05)
    operation = FlakyOperation(failures=10)

    with pytest.raises(CancellationError, match="Deadline exceeded"):
        await asyncio.wait_for(executor.execute(operation, token), timeout=5)

    assert operation.calls == [1]


@pytest.mark.asyncio
async def test_cancellation_error_from_operation_is_not_retried(executor: RetryExecutor):
    operation = FlakyOperation(failures=3, error=CancellationError("stop"))

    with pytest.raises(CancellationError):
        await executor.execute(operation)

    assert operation.calls == [1]


@pytest.mark.asyncio
async def test_backoff_receives_failed_attempt_numbers(mocker):
    backoff = mocker.Mock(return_value=0.0)
    executor = RetryExecutor(max_attempts=3, backoff=backoff)

    await executor.execute(FlakyOperation(failures=2))

    assert backoff.call_args_list == [call(1), call(2)]


@pytest.mark.asyncio
async def test_on_retry_is_called_before_each_retry(mocker):
    on_retry = mocker.Mock()
    executor = RetryExecutor(max_attempts=3, backoff=constant_backoff(0), on_retry=on_retry)

    await executor.execute(FlakyOperation(failures=2))

    assert on_retry.call_count == 2
    event = on_retry.call_args_list[0].args[0]
    assert isinstance(event, RetryScheduled)
    assert event.attempt_number == 1
    assert event.error_type == "TransportError"


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        RetryExecutor(max_attempts=0)
