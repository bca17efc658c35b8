"""Static HTTP fetcher with realistic headers, retries and resilience guards."""

import logging
import time

import logfire
import requests

from titular.core.fetcher.base import ContentAnalyzer, HTMLFetcher
from titular.models.results import FetchResult
from titular.utils.exceptions import BotDetectionError, NetworkError
from titular.utils.headers import HeaderGenerator, UserAgentRotator
from titular.utils.resilience import CircuitBreaker, TokenBucketRateLimiter
from titular.utils.retry import RetryPolicy
from titular.utils.urls import alternate_url


class SimpleFetcher(HTMLFetcher):
    """HTTP fetcher built on requests.

    Each fetch runs under the retry policy. When the retries are exhausted
    the URL with its trailing slash toggled is tried once more. The whole
    fetch goes through the circuit breaker, and every request takes a token
    from the rate limiter.

    Attributes:
        timeout: Request timeout in seconds
        rotate_user_agent: Whether to rotate user agents between requests
        retry_policy: Retry policy applied to each URL form
        breaker: Circuit breaker guarding the fetch, if any
        limiter: Rate limiter consulted before each request, if any
        limiter_timeout: Seconds to wait for a rate-limit token
        session: Requests session used for connection pooling

    """

    def __init__(
        self,
        timeout: int = 30,
        rotate_user_agent: bool = True,
        retry_policy: RetryPolicy | None = None,
        breaker: CircuitBreaker | None = None,
        limiter: TokenBucketRateLimiter | None = None,
        limiter_timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        """Initialize the simple fetcher.

        Args:
            timeout: Request timeout in seconds
            rotate_user_agent: If True a random user agent is sent with each request
            retry_policy: Retry policy. Defaults to RetryPolicy()
            breaker: Circuit breaker guarding the fetch. Defaults to None
            limiter: Rate limiter for outgoing requests. Defaults to None
            limiter_timeout: Seconds to wait for a rate-limit token
            session: Requests session. Defaults to a new session

        """
        self.timeout = timeout
        self.rotate_user_agent = rotate_user_agent
        self.retry_policy = retry_policy or RetryPolicy()
        self.breaker = breaker
        self.limiter = limiter
        self.limiter_timeout = limiter_timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def _get_headers(self) -> dict[str, str]:
        user_agent = UserAgentRotator.get_random() if self.rotate_user_agent else UserAgentRotator.get_chrome()
        return HeaderGenerator.generate_headers(user_agent=user_agent)

    def _request(self, url: str) -> FetchResult:
        """Single GET, turned into a FetchResult or an error.

        Raises:
            NetworkError: On connection failure, timeout or an error status
            BotDetectionError: If a 200 response is a block page

        """
        if self.limiter is not None:
            self.limiter.acquire(timeout=self.limiter_timeout)

        start_time = time.time()
        try:
            response = self.session.get(url, headers=self._get_headers(), timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise NetworkError(url, None, str(e)) from e

        status_code = response.status_code
        html = response.text
        if status_code >= 400:
            indicators = self._describe_block(html)
            raise NetworkError(url, status_code, ', '.join(indicators) or response.reason or '')

        is_blocked, indicators = self._check_for_bot_detection(html, status_code)
        if is_blocked:
            raise BotDetectionError(url, status_code, indicators)

        return FetchResult(
            url=url,
            html=html,
            status_code=status_code,
            fetch_time=time.time() - start_time,
            final_url=response.url or url,
            metadata=ContentAnalyzer.analyze(html),
        )

    def _fetch_with_fallback(self, url: str) -> FetchResult:
        try:
            return self.retry_policy.execute(self._request, url)
        except NetworkError as first_error:
            alternate = alternate_url(url)
            if alternate == url:
                raise
            self.logger.info(f'Retrying {url} as {alternate} after: {first_error}')
            try:
                result = self._request(alternate)
            except NetworkError:
                raise first_error from None
            result.url = url
            return result

    def fetch(self, url: str) -> FetchResult:
        """Fetch a page's HTML.

        Args:
            url: The URL that is being fetched

        Returns:
            FetchResult with the HTML and content metadata.

        Raises:
            NetworkError: If every attempt failed
            BotDetectionError: If the response is a block page
            CircuitOpenError: If the fetch breaker is open
            RateLimitExceededError: If no rate-limit token became available

        """
        with logfire.span('fetch', url=url):
            if self.breaker is None:
                return self._fetch_with_fallback(url)
            return self.breaker.call(self._fetch_with_fallback, url)

    def close(self):
        """Close the session."""
        self.session.close()
