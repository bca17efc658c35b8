"""OCR fallback for pages that render their content as images."""

from titular.core.ocr.backends import EasyOcrBackend, GoogleVisionBackend, OcrBackend, create_ocr_backend
from titular.core.ocr.capture import ScreenshotCapturer
from titular.core.ocr.pipeline import OcrPipeline
from titular.core.ocr.preprocess import preprocess_image
from titular.core.ocr.titles import clean_ocr_text, has_title_characteristics, is_valid_ocr_line, process_titles

__all__ = [
    'EasyOcrBackend',
    'GoogleVisionBackend',
    'OcrBackend',
    'OcrPipeline',
    'ScreenshotCapturer',
    'clean_ocr_text',
    'create_ocr_backend',
    'has_title_characteristics',
    'is_valid_ocr_line',
    'preprocess_image',
    'process_titles',
]
