"""Utility components for Titular."""

from titular.utils.exceptions import (
    AlreadyVerifiedError,
    BotDetectionError,
    CatalogError,
    CircuitOpenError,
    DuplicateRecipeError,
    ExtractionTimeoutError,
    InvalidSelectorError,
    InvalidUrlError,
    NetworkError,
    NoContentExtractedError,
    OcrUnavailableError,
    PermissionDeniedError,
    RateLimitExceededError,
    RecipeNotFoundError,
    TitularError,
)
from titular.utils.files import init_titular
from titular.utils.headers import HeaderGenerator, UserAgentRotator
from titular.utils.resilience import CircuitBreaker, CircuitState, Deadline, TokenBucketRateLimiter
from titular.utils.retry import RetryPolicy, is_retryable_error, log_retry
from titular.utils.urls import normalize_domain

__all__ = [
    'AlreadyVerifiedError',
    'BotDetectionError',
    'CatalogError',
    'CircuitBreaker',
    'CircuitOpenError',
    'CircuitState',
    'Deadline',
    'DuplicateRecipeError',
    'ExtractionTimeoutError',
    'HeaderGenerator',
    'InvalidSelectorError',
    'InvalidUrlError',
    'NetworkError',
    'NoContentExtractedError',
    'OcrUnavailableError',
    'PermissionDeniedError',
    'RateLimitExceededError',
    'RecipeNotFoundError',
    'RetryPolicy',
    'TitularError',
    'TokenBucketRateLimiter',
    'UserAgentRotator',
    'init_titular',
    'is_retryable_error',
    'log_retry',
    'normalize_domain',
]
