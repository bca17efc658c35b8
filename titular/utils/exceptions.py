"""Custom exceptions for Titular."""


class TitularError(Exception):
    """Base class for all Titular exceptions."""

    pass


class InvalidUrlError(TitularError):
    """Raised when a URL is not an absolute http(s) URL."""

    def __init__(self, url: str):
        """Initialize invalid URL error.

        Args:
            url: The rejected URL

        """
        self.url = url
        super().__init__(f'Invalid URL: {url!r}')


class InvalidSelectorError(TitularError):
    """Raised when a CSS selector cannot be parsed.

    Selectors are rejected before any extraction is attempted.
    """

    def __init__(self, selector: str, reason: str, field_name: str | None = None):
        """Initialize invalid selector error.

        Args:
            selector: The selector string that failed to parse
            reason: Parser message explaining the failure
            field_name: Recipe field the selector belongs to, if known

        """
        self.selector = selector
        self.reason = reason
        self.field_name = field_name
        where = f" for '{field_name}'" if field_name else ''
        super().__init__(f'Invalid selector{where}: {selector!r} ({reason})')


class NetworkError(TitularError):
    """Raised when an outbound HTTP request fails."""

    def __init__(self, url: str, status_code: int | None = None, message: str = ''):
        """Initialize network error.

        Args:
            url: URL that was requested
            status_code: HTTP status code, or None for connection-level failures
            message: Underlying error message

        """
        self.url = url
        self.status_code = status_code
        self.message = message
        status = f'status={status_code}' if status_code is not None else 'no response'
        super().__init__(f'Request to {url} failed ({status}): {message}'.rstrip(': '))

    @property
    def retryable(self) -> bool:
        """Client errors are terminal, except 429 Too Many Requests."""
        if self.status_code is None:
            return True
        if 400 <= self.status_code < 500:
            return self.status_code == 429
        return True


class BotDetectionError(TitularError):
    """Raised when bot detection is triggered."""

    def __init__(self, url: str, status_code: int, indicators: list[str]):
        """Initialize bot detection error.

        Args:
            url: URL where bot detection was triggered
            status_code: HTTP status code received
            indicators: List of bot detection indicators found

        """
        self.url = url
        self.status_code = status_code
        self.indicators = indicators
        super().__init__(f'Bot detection triggered on {url} (status={status_code}): {", ".join(indicators)}')


class ExtractionTimeoutError(TitularError):
    """Raised when a strategy or navigation exceeds its time budget."""

    def __init__(self, scope: str, seconds: float):
        """Initialize timeout error.

        Args:
            scope: What timed out (strategy name, 'navigation', ...)
            seconds: The budget that was exceeded

        """
        self.scope = scope
        self.seconds = seconds
        super().__init__(f'{scope} timed out after {seconds:.2f}s')


class NoContentExtractedError(TitularError):
    """Reported on the result when every extraction path has been exhausted."""

    def __init__(self, url: str, attempted: list[str]):
        """Initialize no-content error.

        Args:
            url: URL that could not be extracted
            attempted: Names of the strategies that were tried

        """
        self.url = url
        self.attempted = attempted
        super().__init__(f'No content extracted from {url} (tried: {", ".join(attempted) or "nothing"})')


class OcrUnavailableError(TitularError):
    """Raised when the OCR path is requested but no backend is configured."""

    pass


class CatalogError(TitularError):
    """Raised when the static recipe catalog cannot be loaded."""

    pass


class DuplicateRecipeError(TitularError):
    """Raised when saving a recipe for a domain that already has one."""

    def __init__(self, domain: str):
        """Initialize duplicate recipe error.

        Args:
            domain: Normalized domain that is already registered

        """
        self.domain = domain
        super().__init__(f'A recipe for {domain} already exists')


class RecipeNotFoundError(TitularError):
    """Raised when a recipe id or domain is unknown to the store."""

    pass


class PermissionDeniedError(TitularError):
    """Raised when a user edits a recipe they did not create."""

    pass


class AlreadyVerifiedError(TitularError):
    """Raised when the same user confirms a recipe twice."""

    pass


class CircuitOpenError(TitularError):
    """Raised when a call is short-circuited by an open breaker."""

    def __init__(self, name: str, retry_after: float):
        """Initialize circuit open error.

        Args:
            name: Name of the guarded dependency
            retry_after: Seconds until the breaker allows a trial call

        """
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit '{name}' is open, retry in {retry_after:.1f}s")


class RateLimitExceededError(TitularError):
    """Raised when no rate-limit token becomes available in time."""

    pass
