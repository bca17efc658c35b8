"""Rate limiting, circuit breaking and deadlines for external calls.

Every outbound dependency (HTTP fetches, the OCR backend) is wrapped in a
token-bucket limiter and a circuit breaker. Deadlines let a caller's overall
budget shrink the timeout of whatever stage is currently running.
"""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

import logfire

from titular.utils.exceptions import CircuitOpenError, ExtractionTimeoutError, RateLimitExceededError

T = TypeVar('T')

logger = logging.getLogger(__name__)


class TokenBucketRateLimiter:
    """Thread-safe token bucket.

    Attributes:
        capacity: Maximum number of tokens held at once
        refill_per_second: Tokens added per second

    """

    def __init__(
        self,
        capacity: int,
        refill_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the limiter with a full bucket.

        Args:
            capacity: Maximum burst size
            refill_per_second: Sustained rate in tokens per second
            clock: Monotonic clock, injectable for tests
            sleep: Sleep function, injectable for tests

        """
        if capacity <= 0 or refill_per_second <= 0:
            raise ValueError('capacity and refill_per_second must be positive')
        self.capacity = capacity
        self.refill_per_second = refill_per_second
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last_refill = clock()
        self._lock = threading.Lock()

    @classmethod
    def per_minute(cls, requests_per_minute: int, **kwargs: Any) -> 'TokenBucketRateLimiter':
        """Build a limiter allowing ``requests_per_minute`` with that same burst."""
        return cls(capacity=requests_per_minute, refill_per_second=requests_per_minute / 60.0, **kwargs)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._last_refill, 0.0)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_per_second)
        self._last_refill = now

    def acquire(self, timeout: float | None = None) -> None:
        """Block until a token is available.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely

        Raises:
            RateLimitExceededError: If no token became available in time

        """
        started = self._clock()
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return
                wait = (1 - self._tokens) / self.refill_per_second

            if timeout is not None:
                remaining = timeout - (self._clock() - started)
                if remaining <= 0:
                    raise RateLimitExceededError(f'No rate-limit token available within {timeout:.1f}s')
                wait = min(wait, remaining)
            self._sleep(wait)


class CircuitState(str, Enum):
    """States of a circuit breaker."""

    CLOSED = 'CLOSED'
    OPEN = 'OPEN'
    HALF_OPEN = 'HALF_OPEN'


class CircuitBreaker:
    """Closed / open / half-open circuit breaker.

    Failures are counted inside a sliding monitoring window. Reaching the
    threshold while closed opens the breaker; after ``reset_timeout`` seconds
    a single trial call is let through in half-open state. A successful
    trial closes the breaker, a failed one re-opens it.
    """

    def __init__(
        self,
        name: str = 'default',
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        monitoring_period: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the breaker in closed state.

        Args:
            name: Name of the guarded dependency, used in logs and errors
            failure_threshold: Failures within the window that open the breaker
            reset_timeout: Seconds to stay open before probing
            monitoring_period: Length of the failure-counting window in seconds
            clock: Monotonic clock, injectable for tests

        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.monitoring_period = monitoring_period
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures: deque[float] = deque()
        self._opened_at = 0.0
        self._trial_in_flight = False
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        """Current state, moving OPEN to HALF_OPEN once the cool-down passed."""
        with self._lock:
            self._maybe_half_open()
            return self._state

    def _maybe_half_open(self) -> None:
        if self._state is CircuitState.OPEN and self._clock() - self._opened_at >= self.reset_timeout:
            self._state = CircuitState.HALF_OPEN
            self._trial_in_flight = False
            logger.info(f"Circuit '{self.name}' half-open, allowing a trial call")

    def _prune(self, now: float) -> None:
        while self._failures and now - self._failures[0] > self.monitoring_period:
            self._failures.popleft()

    def _before_call(self) -> None:
        with self._lock:
            self._maybe_half_open()
            if self._state is CircuitState.OPEN:
                retry_after = self.reset_timeout - (self._clock() - self._opened_at)
                raise CircuitOpenError(self.name, max(retry_after, 0.0))
            if self._state is CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    raise CircuitOpenError(self.name, 0.0)
                self._trial_in_flight = True

    def record_success(self) -> None:
        """Register a successful call."""
        with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                logger.info(f"Circuit '{self.name}' closed after a successful trial call")
            self._state = CircuitState.CLOSED
            self._failures.clear()
            self._trial_in_flight = False

    def record_failure(self) -> None:
        """Register a failed call, opening the breaker when warranted."""
        with self._lock:
            now = self._clock()
            if self._state is CircuitState.HALF_OPEN:
                self._trip(now)
                return
            self._failures.append(now)
            self._prune(now)
            if self._state is CircuitState.CLOSED and len(self._failures) >= self.failure_threshold:
                self._trip(now)

    def _trip(self, now: float) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = now
        self._trial_in_flight = False
        logfire.warn('Circuit opened', circuit=self.name, failures=len(self._failures))

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke ``fn`` through the breaker.

        Raises:
            CircuitOpenError: If the breaker is open
            Exception: Whatever ``fn`` raises, after it is counted as a failure

        """
        self._before_call()
        try:
            result = fn(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def reset(self) -> None:
        """Force the breaker back to closed."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failures.clear()
            self._trial_in_flight = False


class Deadline:
    """Overall time budget propagated down into individual stages."""

    def __init__(self, seconds: float | None, clock: Callable[[], float] = time.monotonic):
        """Start the deadline now.

        Args:
            seconds: Total budget, or None for no overall limit
            clock: Monotonic clock, injectable for tests

        """
        self.seconds = seconds
        self._clock = clock
        self._started = clock()

    def remaining(self) -> float | None:
        """Seconds left, never negative, or None when unbounded."""
        if self.seconds is None:
            return None
        return max(self.seconds - (self._clock() - self._started), 0.0)

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def budget(self, stage_timeout: float) -> float:
        """Timeout for a stage: its own limit, shrunk to the time remaining."""
        remaining = self.remaining()
        if remaining is None:
            return stage_timeout
        return min(stage_timeout, remaining)

    def check(self, scope: str) -> None:
        """Raise if the deadline has already passed.

        Raises:
            ExtractionTimeoutError: If no time remains

        """
        if self.expired:
            raise ExtractionTimeoutError(scope, self.seconds or 0.0)
