"""Fetcher factory and exports."""

from titular.core.fetcher.base import ContentAnalyzer, HTMLFetcher
from titular.core.fetcher.simple import SimpleFetcher
from titular.utils.resilience import CircuitBreaker, TokenBucketRateLimiter


def create_fetcher(fetcher_type: str = 'simple', **kwargs) -> HTMLFetcher:
    """Create an HTML fetcher.

    Args:
        fetcher_type: Type of fetcher ('simple' or 'guarded')
        **kwargs: Additional arguments for the fetcher

    Returns:
        HTMLFetcher instance. 'guarded' is a SimpleFetcher with the default
        scraping breaker (3 failures, 60 s reset, 180 s window) and a
        10 requests/minute limiter unless those are passed in.

    """
    if fetcher_type == 'simple':
        return SimpleFetcher(**kwargs)
    if fetcher_type == 'guarded':
        kwargs.setdefault(
            'breaker', CircuitBreaker('scraping', failure_threshold=3, reset_timeout=60, monitoring_period=180)
        )
        kwargs.setdefault('limiter', TokenBucketRateLimiter.per_minute(10))
        return SimpleFetcher(**kwargs)

    raise ValueError(f"Unknown fetcher type: {fetcher_type}. Choose from: ['simple', 'guarded']")


__all__ = ['ContentAnalyzer', 'HTMLFetcher', 'SimpleFetcher', 'create_fetcher']
