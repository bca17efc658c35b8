"""Standardized retry logic for Titular.

Provides a retry policy object and a single place to turn it into a
tenacity retryer, so every outbound call retries the same way.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import logfire
import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt

from titular.utils.exceptions import NetworkError

T = TypeVar('T')


def log_retry(retry_state: Any) -> None:
    """Default logging callback for retries.

    Args:
        retry_state: The tenacity retry state object.

    """
    exception = retry_state.outcome.exception()
    attempt = retry_state.attempt_number
    logfire.warn('Retrying operation', attempt=attempt, error=str(exception) if exception else 'Unknown error')


def is_retryable_error(error: BaseException) -> bool:
    """Decide whether an error is worth another attempt.

    Args:
        error: Exception raised by the previous attempt

    Returns:
        True for connection failures, timeouts, 5xx and 429 responses.
        False for other 4xx responses and for non-network errors.

    """
    if isinstance(error, NetworkError):
        return error.retryable
    if isinstance(error, requests.HTTPError) and error.response is not None:
        return NetworkError('', error.response.status_code).retryable
    return isinstance(error, (requests.ConnectionError, requests.Timeout, ConnectionError, TimeoutError))


@dataclass
class RetryPolicy:
    """Bounded exponential-backoff retry policy.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay, in seconds
        is_retryable: Predicate deciding if an error is retried
        sleep: Sleep function used between attempts

    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    is_retryable: Callable[[BaseException], bool] = is_retryable_error
    sleep: Callable[[float], None] = time.sleep

    def backoff(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (0-based)."""
        return min(self.base_delay * (2 ** max(attempt, 0)), self.max_delay)

    def retryer(self, log_callback: Callable[[Any], None] | None = log_retry) -> Retrying:
        """Build a tenacity retryer that applies this policy.

        Args:
            log_callback: before_sleep callback, defaults to log_retry

        Returns:
            A configured tenacity.Retrying object.

        """
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=lambda retry_state: self.backoff(retry_state.attempt_number - 1),
            retry=retry_if_exception(self.is_retryable),
            before_sleep=log_callback,
            sleep=self.sleep,
            reraise=True,
        )

    def execute(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` under this policy and return its result.

        Raises:
            The last error once attempts are exhausted, or immediately
            when the error is not retryable.

        """
        return self.retryer()(fn, *args, **kwargs)
