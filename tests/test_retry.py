import pytest
from tenacity import retry_if_result

from wallet_percentiles.exceptions import RetryExhaustedError
from wallet_percentiles.retry import RetryPolicy


def test_call_succeeds_after_failures(sleep):
    attempts = {"n": 0}

    def flaky():
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise ConnectionError("boom")
        return "ok"

    policy = RetryPolicy(max_attempts=4, initial_delay=1.0, backoff_factor=2.0)
    assert policy.call(flaky, sleep=sleep) == "ok"
    assert sleep.calls == [pytest.approx(1.0), pytest.approx(2.0)]


def test_call_exhausted_raises_typed_error(sleep):
    def broken():
        raise ConnectionError("down")

    with pytest.raises(RetryExhaustedError) as exc_info:
        RetryPolicy(max_attempts=3).call(broken, sleep=sleep, description="node")

    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert len(sleep.calls) == 2


def test_call_retries_on_rejected_result(sleep):
    results = iter([0, 0, 7])
    policy = RetryPolicy(max_attempts=5, initial_delay=2.0)
    value = policy.call(lambda: next(results), retry=retry_if_result(lambda r: r == 0), sleep=sleep)
    assert value == 7
    assert sleep.calls == [pytest.approx(2.0), pytest.approx(2.0)]
