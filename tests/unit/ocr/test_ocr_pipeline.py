import pytest

from titular.core.ocr.backends import GoogleVisionBackend
from titular.core.ocr.capture import ScreenshotCapturer
from titular.core.ocr.pipeline import OcrPipeline
from titular.models.results import OcrBlock
from titular.utils.exceptions import CircuitOpenError, ExtractionTimeoutError, OcrUnavailableError
from titular.utils.resilience import CircuitBreaker, Deadline

URL = 'https://papel.diario.cl/edicion/2024-05-14'


@pytest.fixture
def capturer(mocker):
    fake = mocker.Mock()
    fake.capture.return_value = [b'shot-1', b'shot-2']
    return fake


@pytest.fixture
def backend(mocker):
    fake = mocker.Mock()
    fake.name = 'fake'
    fake.recognize.side_effect = [
        OcrBlock(text='Gobierno anuncia nueva reforma de pensiones\nEL DIARIO', confidence=0.9),
        OcrBlock(text='Temporal deja miles de hogares sin luz en Santiago', confidence=0.7),
    ]
    return fake


def test_run_combines_blocks(capturer, backend):
    pipeline = OcrPipeline(backend=backend, capturer=capturer, preprocess=False)

    result = pipeline.run(URL)

    assert result.screenshots == 2
    assert result.confidence == pytest.approx(0.8)
    assert result.titles[0] == 'Temporal deja miles de hogares sin luz en Santiago'
    assert 'EL DIARIO' in result.text
    backend.recognize.assert_any_call(b'shot-1')


def test_missing_backend_fails_before_capture(capturer):
    pipeline = OcrPipeline(backend_name=None, capturer=capturer)

    with pytest.raises(OcrUnavailableError):
        pipeline.run(URL)
    capturer.capture.assert_not_called()


def test_google_without_credentials_fails_before_capture(capturer, monkeypatch):
    monkeypatch.delenv('GOOGLE_APPLICATION_CREDENTIALS', raising=False)
    pipeline = OcrPipeline(backend=GoogleVisionBackend(), capturer=capturer)

    with pytest.raises(OcrUnavailableError, match='GOOGLE_APPLICATION_CREDENTIALS'):
        pipeline.run(URL)
    capturer.capture.assert_not_called()


def test_single_failed_screenshot_is_skipped(capturer, backend):
    backend.recognize.side_effect = [RuntimeError('transient'), OcrBlock(text='Texto legible', confidence=0.6)]
    pipeline = OcrPipeline(backend=backend, capturer=capturer, preprocess=False)

    result = pipeline.run(URL)

    assert result.text == 'Texto legible'


def test_all_screenshots_failing_raises_last_error(capturer, backend):
    backend.recognize.side_effect = [RuntimeError('first'), RuntimeError('second')]
    pipeline = OcrPipeline(backend=backend, capturer=capturer, preprocess=False)

    with pytest.raises(RuntimeError, match='second'):
        pipeline.run(URL)


def test_open_breaker_propagates(capturer, backend):
    breaker = CircuitBreaker('ocr', failure_threshold=1)
    breaker.record_failure()
    pipeline = OcrPipeline(backend=backend, capturer=capturer, breaker=breaker, preprocess=False)

    with pytest.raises(CircuitOpenError):
        pipeline.run(URL)
    backend.recognize.assert_not_called()


def test_capturer_scrolls_then_screenshots_each_position(mock_browser):
    mock_browser.scroll_to_load.return_value = 5000
    mock_browser.screenshot_at.side_effect = lambda fraction: f'{fraction}'.encode()
    capturer = ScreenshotCapturer(session_factory=lambda: mock_browser, positions=(0.0, 0.5, 1.0))

    shots = capturer.capture(URL)

    assert shots == [b'0.0', b'0.5', b'1.0']
    mock_browser.goto.assert_called_once_with(URL, timeout=30000)
    mock_browser.scroll_to_load.assert_called_once_with(25, 4, 3000, deadline=None)


def test_capturer_honors_deadline(mock_browser):
    capturer = ScreenshotCapturer(session_factory=lambda: mock_browser)

    with pytest.raises(ExtractionTimeoutError, match='ocr capture'):
        capturer.capture(URL, Deadline(0))
    mock_browser.goto.assert_not_called()
    mock_browser.scroll_to_load.assert_not_called()


def test_capturer_shrinks_navigation_to_the_deadline(mock_browser):
    mock_browser.scroll_to_load.return_value = 5000
    deadline = Deadline(2.5, clock=lambda: 0.0)
    capturer = ScreenshotCapturer(session_factory=lambda: mock_browser, positions=(0.0,))

    capturer.capture(URL, deadline)

    mock_browser.goto.assert_called_once_with(URL, timeout=2500)
    mock_browser.scroll_to_load.assert_called_once_with(25, 4, 3000, deadline=deadline)
