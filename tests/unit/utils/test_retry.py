import pytest
import requests

from titular.utils.exceptions import NetworkError
from titular.utils.retry import RetryPolicy, is_retryable_error


def _policy(sleeps):
    return RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=10.0, sleep=sleeps.append)


def _failing(error, calls):
    def fn():
        calls.append(1)
        raise error

    return fn


def test_not_found_is_not_retried():
    sleeps, calls = [], []
    with pytest.raises(NetworkError):
        _policy(sleeps).execute(_failing(NetworkError('https://x.com', 404), calls))
    assert len(calls) == 1
    assert sleeps == []


@pytest.mark.parametrize('status', [429, 503])
def test_retryable_statuses_are_retried_with_backoff(status):
    sleeps, calls = [], []
    with pytest.raises(NetworkError):
        _policy(sleeps).execute(_failing(NetworkError('https://x.com', status), calls))
    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]


def test_success_after_transient_failure():
    sleeps = []
    attempts = iter([NetworkError('https://x.com', None, 'reset'), None])

    def flaky():
        error = next(attempts)
        if error:
            raise error
        return 'ok'

    assert _policy(sleeps).execute(flaky) == 'ok'
    assert sleeps == [1.0]


def test_backoff_is_capped():
    policy = RetryPolicy(base_delay=1.0, max_delay=5.0)
    assert [policy.backoff(n) for n in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_is_retryable_error():
    assert is_retryable_error(requests.ConnectionError())
    assert is_retryable_error(requests.Timeout())
    assert is_retryable_error(NetworkError('u', 500))
    assert not is_retryable_error(NetworkError('u', 403))
    assert not is_retryable_error(ValueError('bad'))
