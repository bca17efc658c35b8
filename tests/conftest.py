import pytest

from titular.models.results import ContentMetadata, FetchResult
from titular.storage.store import InMemoryRecipeStore

ARTICLE_URL = 'https://www.diarioejemplo.cl/nacional/2024/05/reforma-pensiones'

PARAGRAPHS = [
    'El gobierno anunció este martes una nueva reforma previsional que busca aumentar las pensiones '
    'de los jubilados mediante un aporte adicional de los empleadores.',
    'La propuesta contempla un aumento gradual de la cotización durante los próximos nueve años, '
    'según explicó la ministra del Trabajo en una conferencia de prensa.',
    'Los gremios empresariales manifestaron reparos al financiamiento, mientras que las centrales '
    'sindicales valoraron el fortalecimiento del pilar solidario.',
]


@pytest.fixture
def article_html():
    paragraphs = '\n'.join(f'<p>{text}</p>' for text in PARAGRAPHS)
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Gobierno anuncia nueva reforma de pensiones | Diario Ejemplo</title>
        <meta property="og:site_name" content="Diario Ejemplo">
    </head>
    <body>
        <nav class="main-menu"><a href="/">Inicio</a><a href="/nacional">Nacional</a></nav>
        <article class="nota">
            <h1 class="headline">Gobierno anuncia nueva reforma de pensiones</h1>
            <time datetime="2024-05-14T10:00:00-04:00">14 de mayo de 2024</time>
            <span class="author">María González</span>
            <div class="article-body">
                <img src="/fotos/2024/05/ministra.jpg">
                {paragraphs}
            </div>
        </article>
        <aside class="related"><a href="/otra">Otra nota relacionada del día</a></aside>
    </body>
    </html>
    """


@pytest.fixture
def article_url():
    return ARTICLE_URL


@pytest.fixture
def article_text():
    return '\n\n'.join(PARAGRAPHS)


@pytest.fixture
def listing_html():
    return """
    <html>
    <body>
        <div class="card"><a href="/nota/1?utm=home" title="Senado aprueba proyecto de ley corta">Ver</a></div>
        <div class="card"><a href="/nota/2" title="Senado aprueba proyecto de ley corta">Ver</a></div>
        <div class="card"><a href="/nota/3#comentarios" title="Temporal deja miles de hogares sin luz">Ver</a></div>
        <div class="card"><a href="/nota/4" title="Corto">Ver</a></div>
        <div class="card"><a title="Nota sin enlace alguno en portada">Ver</a></div>
    </body>
    </html>
    """


@pytest.fixture
def recipe_data():
    return {
        'domain': 'diarioejemplo.cl',
        'name': 'Diario Ejemplo',
        'selectors': {
            'title': 'h1.headline',
            'content': '.article-body',
            'date': 'time',
            'author': '.author',
        },
    }


@pytest.fixture
def store():
    return InMemoryRecipeStore()


@pytest.fixture
def make_fetch_result():
    def _make(html, url=ARTICLE_URL, status_code=200):
        return FetchResult(
            url=url,
            html=html,
            status_code=status_code,
            final_url=url,
            metadata=ContentMetadata(content_length=len(html or '')),
        )

    return _make


@pytest.fixture
def mock_fetcher(mocker, article_html, make_fetch_result):
    fetcher = mocker.Mock()
    fetcher.fetch.return_value = make_fetch_result(article_html)
    return fetcher


@pytest.fixture
def mock_browser(mocker, article_html):
    """An open browser session double; the factory below hands it out."""
    session = mocker.MagicMock()
    session.__enter__.return_value = session
    session.__exit__.return_value = False
    session.navigation_timeout = 30000
    session.wait_for.return_value = True
    session.content.return_value = article_html
    return session


@pytest.fixture
def browser_factory(mocker, mock_browser):
    return mocker.Mock(return_value=mock_browser)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line('markers', 'integration: marks tests as integration tests')
    config.addinivalue_line('markers', 'unit: marks tests as unit tests')


def pytest_collection_modifyitems(config, items):
    """Apply directory-based marks to collected test items."""

    for item in items:
        if hasattr(item, 'fspath'):
            file_path = str(item.fspath)

            if '/tests/integration/' in file_path:
                item.add_marker(pytest.mark.integration)
            elif '/tests/unit/' in file_path:
                item.add_marker(pytest.mark.unit)
