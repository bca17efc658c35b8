"""OCR fallback: capture, preprocess, recognize, reconstruct headlines."""

import logging

import logfire

from titular.core.ocr.backends import OcrBackend, create_ocr_backend
from titular.core.ocr.capture import ScreenshotCapturer
from titular.core.ocr.preprocess import preprocess_image
from titular.core.ocr.titles import clean_ocr_text, process_titles
from titular.models.results import OcrBlock, OcrResult
from titular.utils.exceptions import CircuitOpenError, OcrUnavailableError
from titular.utils.resilience import CircuitBreaker, Deadline, TokenBucketRateLimiter


class OcrPipeline:
    """Reads text off a page that renders its content as images.

    Backend calls go through a circuit breaker (5 failures, 120 s reset,
    300 s window) and a 30 requests/minute limiter unless others are given.

    Attributes:
        backend_name: Name passed to create_ocr_backend when no backend is given
        capturer: Screenshot capturer
        breaker: Circuit breaker guarding the backend
        limiter: Rate limiter for backend calls
        limiter_timeout: Seconds to wait for a rate-limit token
        preprocess: Run images through preprocess_image before recognition

    """

    def __init__(
        self,
        backend: OcrBackend | None = None,
        backend_name: str | None = None,
        capturer: ScreenshotCapturer | None = None,
        breaker: CircuitBreaker | None = None,
        limiter: TokenBucketRateLimiter | None = None,
        limiter_timeout: float = 60.0,
        preprocess: bool = True,
    ):
        """Initialize the pipeline.

        Args:
            backend: OCR backend. Defaults to None (created from backend_name on first run)
            backend_name: 'google' or 'easyocr'
            capturer: Screenshot capturer. Defaults to a new ScreenshotCapturer
            breaker: Circuit breaker for backend calls
            limiter: Rate limiter for backend calls
            limiter_timeout: Seconds to wait for a rate-limit token
            preprocess: Preprocess screenshots. Defaults to True

        """
        self._backend = backend
        self.backend_name = backend_name
        self.capturer = capturer or ScreenshotCapturer()
        self.breaker = breaker or CircuitBreaker('ocr', failure_threshold=5, reset_timeout=120, monitoring_period=300)
        self.limiter = limiter or TokenBucketRateLimiter.per_minute(30)
        self.limiter_timeout = limiter_timeout
        self.preprocess = preprocess
        self.logger = logging.getLogger(__name__)

    @property
    def backend(self) -> OcrBackend:
        """The OCR backend, created on first access.

        Raises:
            OcrUnavailableError: If no backend is configured

        """
        if self._backend is None:
            self._backend = create_ocr_backend(self.backend_name)
        return self._backend

    def recognize(self, image_bytes: bytes) -> OcrBlock:
        """Recognize one screenshot through the limiter and breaker."""
        image = preprocess_image(image_bytes) if self.preprocess else image_bytes
        self.limiter.acquire(timeout=self.limiter_timeout)
        return self.breaker.call(self.backend.recognize, image)

    def run(self, url: str, deadline: Deadline | None = None) -> OcrResult:
        """Capture ``url`` and read its text.

        Args:
            url: Page to read
            deadline: Overall deadline

        Returns:
            OcrResult with the cleaned text and probable headlines.

        Raises:
            OcrUnavailableError: If no backend is configured, or its library or
                credentials are missing. Raised before anything is captured
            CircuitOpenError: If the OCR breaker is open
            Exception: The last recognition error when no screenshot could be read

        """
        backend = self.backend
        backend.ensure_available()

        with logfire.span('ocr_pipeline', url=url, backend=backend.name):
            screenshots = self.capturer.capture(url, deadline)

            blocks: list[OcrBlock] = []
            last_error: Exception | None = None
            for index, screenshot in enumerate(screenshots):
                try:
                    blocks.append(self.recognize(screenshot))
                except (OcrUnavailableError, CircuitOpenError):
                    raise
                except Exception as e:
                    logfire.error('OCR recognition failed', url=url, screenshot=index, error=str(e))
                    last_error = e

            if not blocks and last_error is not None:
                raise last_error

        texts = [block for block in blocks if block.text.strip()]
        text = clean_ocr_text('\n'.join(block.text for block in texts))
        confidence = sum(block.confidence for block in texts) / len(texts) if texts else 0.0
        titles = process_titles(text)

        self.logger.info(f'OCR read {len(text)} chars and {len(titles)} titles from {url}')
        return OcrResult(
            url=url, text=text, titles=titles, confidence=round(confidence, 4), screenshots=len(screenshots)
        )
