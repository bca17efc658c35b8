from pathlib import Path

import pytest
from pydantic import ValidationError

from titular.config import EngineConfig

ENV_VARS = (
    'TITULAR_CATALOG_PATH',
    'TITULAR_STORE_PATH',
    'TITULAR_OCR_BACKEND',
    'TITULAR_HEADLESS',
    'TITULAR_STRATEGY_TIMEOUT',
    'TITULAR_NAVIGATION_TIMEOUT',
    'TITULAR_LISTING_CONCURRENCY',
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = EngineConfig.from_env()

    assert config.catalog_path is None
    assert config.store_path is None
    assert config.strategy_timeout == 5.0
    assert config.navigation_timeout == 30000
    assert config.headless
    assert not config.ocr_enabled
    assert config.detect_paywalls
    assert config.listing_concurrency == 5


def test_reads_environment(monkeypatch):
    monkeypatch.setenv('TITULAR_CATALOG_PATH', '/etc/titular/sites.json')
    monkeypatch.setenv('TITULAR_OCR_BACKEND', ' EasyOCR ')
    monkeypatch.setenv('TITULAR_HEADLESS', 'no')
    monkeypatch.setenv('TITULAR_STRATEGY_TIMEOUT', '2.5')
    monkeypatch.setenv('TITULAR_NAVIGATION_TIMEOUT', '15000')
    monkeypatch.setenv('TITULAR_LISTING_CONCURRENCY', '3')

    config = EngineConfig.from_env()

    assert config.catalog_path == Path('/etc/titular/sites.json')
    assert config.ocr_backend == 'easyocr'
    assert config.ocr_enabled
    assert not config.headless
    assert config.strategy_timeout == 2.5
    assert config.navigation_timeout == 15000
    assert config.listing_concurrency == 3


def test_overrides_win(monkeypatch):
    monkeypatch.setenv('TITULAR_STRATEGY_TIMEOUT', '2.5')

    config = EngineConfig.from_env(strategy_timeout=1.0, default_deadline=20.0)

    assert config.strategy_timeout == 1.0
    assert config.default_deadline == 20.0


def test_rejects_non_positive_timeouts(monkeypatch):
    monkeypatch.setenv('TITULAR_STRATEGY_TIMEOUT', '0')

    with pytest.raises(ValidationError):
        EngineConfig.from_env()


def test_rejects_zero_listing_concurrency(monkeypatch):
    monkeypatch.setenv('TITULAR_LISTING_CONCURRENCY', '0')

    with pytest.raises(ValidationError):
        EngineConfig.from_env()
