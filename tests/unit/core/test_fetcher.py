import pytest
import requests

from titular.core.fetcher import ContentAnalyzer, SimpleFetcher, create_fetcher
from titular.utils.exceptions import BotDetectionError, CircuitOpenError, NetworkError
from titular.utils.headers import HeaderGenerator, UserAgentRotator
from titular.utils.retry import RetryPolicy

URL = 'https://site.cl/nota'
PAGE = '<html><body>' + '<p>Contenido de la nota con texto suficiente para no parecer un bloqueo.</p>' * 3 + '</body></html>'


def _response(mocker, status_code=200, text=PAGE, url=URL):
    return mocker.Mock(status_code=status_code, text=text, url=url, reason='reason')


def _fetcher(session, **kwargs):
    return SimpleFetcher(session=session, retry_policy=RetryPolicy(sleep=lambda seconds: None), **kwargs)


def test_fetch_returns_html(mocker):
    session = mocker.Mock()
    session.get.return_value = _response(mocker)

    result = _fetcher(session).fetch(URL)

    assert result.success
    assert result.html == PAGE
    assert result.status_code == 200
    assert result.final_url == URL
    headers = session.get.call_args.kwargs['headers']
    assert headers['User-Agent'] in UserAgentRotator.USER_AGENTS


def test_not_found_is_not_retried_but_alternate_url_is_tried(mocker):
    session = mocker.Mock()
    session.get.return_value = _response(mocker, 404, 'Not found')

    with pytest.raises(NetworkError) as exc_info:
        _fetcher(session).fetch(URL)

    assert exc_info.value.status_code == 404
    assert [c.args[0] for c in session.get.call_args_list] == [URL, URL + '/']


def test_alternate_url_success_keeps_requested_url(mocker):
    session = mocker.Mock()
    session.get.side_effect = [_response(mocker, 404, 'Not found'), _response(mocker, url=URL + '/')]

    result = _fetcher(session).fetch(URL)

    assert result.url == URL
    assert result.final_url == URL + '/'


def test_service_unavailable_is_retried(mocker):
    session = mocker.Mock()
    session.get.side_effect = [_response(mocker, 503, 'busy'), _response(mocker)]

    result = _fetcher(session).fetch(URL)

    assert result.success
    assert session.get.call_count == 2


def test_connection_errors_exhaust_retries(mocker):
    session = mocker.Mock()
    session.get.side_effect = requests.ConnectionError('reset')

    with pytest.raises(NetworkError) as exc_info:
        _fetcher(session).fetch(URL)

    assert exc_info.value.status_code is None
    assert session.get.call_count == 4


def test_block_page_raises_bot_detection(mocker):
    session = mocker.Mock()
    html = '<html><body><h1>Please verify you are human</h1>' + ' ' * 200 + '</body></html>'
    session.get.return_value = _response(mocker, text=html)

    with pytest.raises(BotDetectionError) as exc_info:
        _fetcher(session).fetch(URL)

    assert 'Human verification' in exc_info.value.indicators
    assert session.get.call_count == 1


def test_guarded_fetcher_opens_breaker(mocker):
    session = mocker.Mock()
    session.get.return_value = _response(mocker, 404, 'Not found')
    fetcher = create_fetcher('guarded', session=session, retry_policy=RetryPolicy(sleep=lambda seconds: None))

    for _ in range(3):
        with pytest.raises(NetworkError):
            fetcher.fetch(URL)
    calls = session.get.call_count

    with pytest.raises(CircuitOpenError):
        fetcher.fetch(URL)
    assert session.get.call_count == calls


def test_create_fetcher_unknown_type():
    with pytest.raises(ValueError):
        create_fetcher('telepathic')


def test_fetcher_context_manager_closes_session(mocker):
    session = mocker.Mock()
    with _fetcher(session):
        pass
    session.close.assert_called_once()


def test_content_analyzer_detects_client_rendering():
    spa = '<html><body><div id="root"></div><script src="/app.js"></script></body></html>'
    metadata = ContentAnalyzer.analyze(spa)
    assert metadata.js_framework == 'react'
    assert metadata.requires_js

    assert not ContentAnalyzer.analyze(PAGE).requires_js


def test_generated_headers_use_spanish_locale():
    headers = HeaderGenerator.generate_headers(user_agent='ua', referer='https://google.cl')
    assert headers['User-Agent'] == 'ua'
    assert headers['Accept-Language'].startswith('es')
    assert headers['Referer'] == 'https://google.cl'
