"""Engine configuration read from the environment."""

import os
from pathlib import Path

from pydantic import BaseModel, Field

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


class EngineConfig(BaseModel):
    """Settings shared by every engine call.

    Attributes:
        catalog_path: Static recipe catalog document, None for no catalog
        store_path: JSON recipe store file, None for the default under .titular/recipes
        strategy_timeout: Per-strategy timeout of the smart scraper, in seconds
        navigation_timeout: Browser navigation timeout, in milliseconds
        ocr_backend: 'google', 'easyocr' or None to disable OCR
        headless: Run browsers without a window
        default_deadline: Overall budget of one extract call in seconds, None for unbounded
        detect_paywalls: Annotate results with the paywall verdict
        listing_concurrency: Articles of a listing page extracted at the same time

    """

    catalog_path: Path | None = None
    store_path: Path | None = None
    strategy_timeout: float = Field(default=5.0, gt=0)
    navigation_timeout: int = Field(default=30000, gt=0)
    ocr_backend: str | None = None
    headless: bool = True
    default_deadline: float | None = None
    detect_paywalls: bool = True
    listing_concurrency: int = Field(default=5, ge=1)

    @property
    def ocr_enabled(self) -> bool:
        return bool(self.ocr_backend)

    @classmethod
    def from_env(cls, **overrides) -> 'EngineConfig':
        """Build a configuration from TITULAR_* environment variables.

        Args:
            **overrides: Values that take precedence over the environment

        Returns:
            EngineConfig instance.

        """
        values: dict = {
            'catalog_path': os.getenv('TITULAR_CATALOG_PATH') or None,
            'store_path': os.getenv('TITULAR_STORE_PATH') or None,
            'ocr_backend': (os.getenv('TITULAR_OCR_BACKEND') or '').strip().lower() or None,
            'headless': os.getenv('TITULAR_HEADLESS', 'true').strip().lower() in _TRUE_VALUES,
        }
        if os.getenv('TITULAR_STRATEGY_TIMEOUT'):
            values['strategy_timeout'] = os.getenv('TITULAR_STRATEGY_TIMEOUT')
        if os.getenv('TITULAR_NAVIGATION_TIMEOUT'):
            values['navigation_timeout'] = os.getenv('TITULAR_NAVIGATION_TIMEOUT')
        if os.getenv('TITULAR_LISTING_CONCURRENCY'):
            values['listing_concurrency'] = os.getenv('TITULAR_LISTING_CONCURRENCY')
        values.update(overrides)
        return cls.model_validate(values)
