"""OCR backends.

Both backends import their library lazily, on first use, so the package
works without either installed. Asking for a backend that cannot run raises
OcrUnavailableError instead of silently returning no text.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any

from titular.models.results import OcrBlock
from titular.utils.exceptions import OcrUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES = ('es', 'en')
# Vision rarely reports per-word confidence for text detection
GOOGLE_DEFAULT_CONFIDENCE = 0.95


class OcrBackend(ABC):
    """Turns one image into text."""

    name: str = ''

    @abstractmethod
    def recognize(self, image_bytes: bytes) -> OcrBlock:
        """Recognize the text in an encoded image.

        Args:
            image_bytes: PNG or JPEG bytes

        Returns:
            OcrBlock with the text, lines separated by newlines, and a confidence in [0, 1].

        """
        pass

    def ensure_available(self) -> None:
        """Raise OcrUnavailableError now if recognition could not run.

        Lets callers fail before paying for a browser capture.
        """
        pass


class GoogleVisionBackend(OcrBackend):
    """Google Cloud Vision text detection."""

    name = 'google'

    def __init__(self, client: Any = None):
        """Initialize the backend.

        Args:
            client: An ImageAnnotatorClient. Defaults to None (created on first
                use from GOOGLE_APPLICATION_CREDENTIALS)

        """
        self._client = client

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        if not os.getenv('GOOGLE_APPLICATION_CREDENTIALS'):
            raise OcrUnavailableError('GOOGLE_APPLICATION_CREDENTIALS is not set')
        try:
            from google.cloud import vision
        except ImportError as e:
            raise OcrUnavailableError('google-cloud-vision is not installed (pip install titular[ocr])') from e
        self._client = vision.ImageAnnotatorClient()
        logger.info('Google Vision client initialized')
        return self._client

    def ensure_available(self) -> None:
        self._get_client()

    def recognize(self, image_bytes: bytes) -> OcrBlock:
        client = self._get_client()
        response = client.text_detection(image={'content': image_bytes})
        if response.error.message:
            raise RuntimeError(f'Google Vision error: {response.error.message}')

        annotations = list(response.text_annotations)
        if not annotations:
            return OcrBlock(text='', confidence=0.0)

        scores = [a.confidence for a in annotations[1:] if getattr(a, 'confidence', 0)]
        confidence = sum(scores) / len(scores) if scores else GOOGLE_DEFAULT_CONFIDENCE
        return OcrBlock(text=annotations[0].description or '', confidence=min(confidence, 1.0))


class EasyOcrBackend(OcrBackend):
    """Local recognition with EasyOCR."""

    name = 'easyocr'

    def __init__(self, languages: tuple[str, ...] = DEFAULT_LANGUAGES, reader: Any = None):
        """Initialize the backend.

        Args:
            languages: EasyOCR language codes
            reader: An easyocr.Reader. Defaults to None (created on first use, CPU only)

        """
        self.languages = languages
        self._reader = reader

    def _get_reader(self) -> Any:
        if self._reader is not None:
            return self._reader
        try:
            import easyocr
        except ImportError as e:
            raise OcrUnavailableError('easyocr is not installed (pip install titular[ocr])') from e
        logger.info(f'Initializing EasyOCR reader ({", ".join(self.languages)})')
        self._reader = easyocr.Reader(list(self.languages), gpu=False, verbose=False)
        return self._reader

    def ensure_available(self) -> None:
        self._get_reader()

    def recognize(self, image_bytes: bytes) -> OcrBlock:
        reader = self._get_reader()
        detections = reader.readtext(image_bytes, detail=1)

        lines = [text for _bbox, text, _confidence in detections if text and text.strip()]
        scores = [float(confidence) for _bbox, text, confidence in detections if text and text.strip()]
        confidence = sum(scores) / len(scores) if scores else 0.0
        return OcrBlock(text='\n'.join(lines), confidence=max(0.0, min(confidence, 1.0)))


def create_ocr_backend(name: str | None) -> OcrBackend:
    """Create the OCR backend named by configuration.

    Args:
        name: 'google' or 'easyocr'

    Returns:
        OcrBackend instance.

    Raises:
        OcrUnavailableError: If no backend is configured or the name is unknown

    """
    backends: dict[str, type[OcrBackend]] = {
        'google': GoogleVisionBackend,
        'easyocr': EasyOcrBackend,
    }
    if not name:
        raise OcrUnavailableError('No OCR backend configured (set TITULAR_OCR_BACKEND)')
    if name not in backends:
        raise OcrUnavailableError(f'Unknown OCR backend: {name}. Choose from: {list(backends.keys())}')
    return backends[name]()
