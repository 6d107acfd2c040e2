"""Unit tests for bounded AI retry."""

import pytest

from advancia_pay.ai.errors import AIErrorType, AIProviderError
from advancia_pay.ai.retry import RetryPolicy, call_with_retry

pytestmark = pytest.mark.asyncio


class Flaky:
    """Fails with the given errors in order, then returns ``"ok"``."""

    def __init__(self, *errors: Exception) -> None:
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self, *args, **kwargs) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def no_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


def _error(error_type: AIErrorType) -> AIProviderError:
    return AIProviderError("ollama", error_type, error_type.value)


async def test_returns_first_success(no_sleep):
    fn = Flaky()
    assert await call_with_retry(fn, "a", policy=RetryPolicy(), sleep=no_sleep, key="v") == "ok"
    assert fn.calls == 1


async def test_retries_retryable_errors_with_backoff(no_sleep, sleeps):
    fn = Flaky(_error(AIErrorType.rate_limit), _error(AIErrorType.server_error))

    result = await call_with_retry(fn, policy=RetryPolicy(max_retries=3, initial_delay=1.0), sleep=no_sleep)

    assert result == "ok"
    assert fn.calls == 3
    assert sleeps == [1.0, 2.0]


async def test_gives_up_after_max_retries(no_sleep):
    fn = Flaky(*[_error(AIErrorType.timeout) for _ in range(5)])

    with pytest.raises(AIProviderError) as exc_info:
        await call_with_retry(fn, policy=RetryPolicy(max_retries=2), sleep=no_sleep)

    assert exc_info.value.error_type == AIErrorType.timeout
    assert fn.calls == 3


async def test_non_retryable_error_is_raised_immediately(no_sleep, sleeps):
    fn = Flaky(_error(AIErrorType.authentication))

    with pytest.raises(AIProviderError):
        await call_with_retry(fn, policy=RetryPolicy(), sleep=no_sleep)

    assert fn.calls == 1
    assert sleeps == []


async def test_unrelated_exceptions_propagate(no_sleep):
    fn = Flaky(KeyError("boom"))
    with pytest.raises(KeyError):
        await call_with_retry(fn, policy=RetryPolicy(), sleep=no_sleep)
    assert fn.calls == 1


async def test_arguments_are_passed_on_every_attempt(no_sleep):
    seen = []

    async def fn(*args, **kwargs) -> str:
        seen.append((args, kwargs))
        if len(seen) == 1:
            raise _error(AIErrorType.network_error)
        return "ok"

    assert await call_with_retry(fn, "prompt", policy=RetryPolicy(), sleep=no_sleep, model="m") == "ok"
    assert seen == [(("prompt",), {"model": "m"}), (("prompt",), {"model": "m"})]


async def test_delay_for_is_capped():
    policy = RetryPolicy(initial_delay=1.0, max_delay=10.0, backoff_multiplier=2.0)
    assert [policy.delay_for(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 8.0, 10.0]
