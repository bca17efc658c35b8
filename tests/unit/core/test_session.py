import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from titular.core.browser.session import BrowserSession
from titular.utils.exceptions import ExtractionTimeoutError, NetworkError
from titular.utils.resilience import Deadline


@pytest.fixture
def session(mocker):
    browser = BrowserSession(navigation_timeout=20000)
    browser.page = mocker.Mock()
    return browser


def test_goto_returns_status(session):
    session.page.goto.return_value.status = 200

    assert session.goto('https://site.cl/a') == 200
    session.page.goto.assert_called_once_with('https://site.cl/a', wait_until='networkidle', timeout=20000)


def test_goto_error_status_raises(session):
    session.page.goto.return_value.status = 403

    with pytest.raises(NetworkError) as exc_info:
        session.goto('https://site.cl/a')
    assert exc_info.value.status_code == 403


def test_goto_timeout_raises_extraction_timeout(session):
    session.page.goto.side_effect = PlaywrightTimeoutError('Timeout 5000ms exceeded')

    with pytest.raises(ExtractionTimeoutError) as exc_info:
        session.goto('https://site.cl/a', timeout=5000)
    assert exc_info.value.seconds == 5


def test_wait_for_reports_missing_selector(session):
    session.page.wait_for_selector.side_effect = PlaywrightTimeoutError('Timeout')
    assert session.wait_for('.never') is False


def test_requires_open_page():
    with pytest.raises(RuntimeError):
        BrowserSession().content()


def test_scroll_to_load_stops_when_height_is_stable(session):
    session.page.evaluate.side_effect = lambda script, arg=None: 1000 if 'scrollHeight :' in script else None

    height = session.scroll_to_load(max_scrolls=25, stable_cycles=2, wait_ms=0)

    assert height == 1000
    scrolls = [c for c in session.page.evaluate.call_args_list if 'scrollTo(0, document' in c.args[0]]
    assert len(scrolls) == 2


def test_close_is_idempotent(session):
    page = session.page
    session.close()
    session.close()
    page.close.assert_called_once()
    assert session.page is None


def test_scroll_to_load_stops_at_the_deadline(session):
    now = [0.0]
    heights = iter(range(1000, 100000, 500))
    session.page.evaluate.side_effect = lambda script, arg=None: next(heights) if 'scrollHeight :' in script else None
    session.page.wait_for_timeout.side_effect = lambda ms: now.__setitem__(0, now[0] + ms / 1000)
    deadline = Deadline(5, clock=lambda: now[0])

    session.scroll_to_load(max_scrolls=25, stable_cycles=4, wait_ms=3000, deadline=deadline)

    scrolls = [c for c in session.page.evaluate.call_args_list if 'scrollTo(0, document' in c.args[0]]
    assert len(scrolls) == 2
    waits = [c.args[0] for c in session.page.wait_for_timeout.call_args_list]
    assert waits[:2] == [3000, 2000]
