from titular.validation.paywall import detect_paywall, is_known_paywall_domain

LONG_CONTENT = 'El texto completo de la noticia continúa con muchos detalles sobre el caso. ' * 5


def test_spanish_keyword_detected():
    html = '<html><body><p>Para seguir leyendo, suscríbete a nuestro plan digital.</p></body></html>'
    result = detect_paywall(html, LONG_CONTENT)
    assert result.has_paywall
    assert result.method == 'keyword'
    assert result.confidence == 0.9


def test_paywall_class_detected():
    html = '<html><body><div class="article-body locked-content">Texto</div></body></html>'
    result = detect_paywall(html, LONG_CONTENT)
    assert result.has_paywall
    assert result.method == 'html-class'
    assert result.confidence == 0.85


def test_short_content_is_suspicious():
    result = detect_paywall('<p>Hola</p>', 'Solo el primer párrafo de la nota.')
    assert result.has_paywall
    assert result.method == 'length'
    assert result.confidence == 0.5


def test_open_article():
    result = detect_paywall('<article><p>Noticia abierta</p></article>', LONG_CONTENT)
    assert not result.has_paywall
    assert result.method == 'none'
    assert result.confidence == 0.95


def test_no_content():
    result = detect_paywall(None, None)
    assert not result.has_paywall
    assert result.method == 'no-content'


def test_known_paywall_domains():
    assert is_known_paywall_domain('https://www.latercera.com/politica/nota/')
    assert is_known_paywall_domain('https://digital.elmercurio.com/2024/01/01')
    assert not is_known_paywall_domain('https://www.biobiochile.cl/noticias/')


def test_known_publisher_with_partial_content():
    html = '<article><p>Noticia</p></article>'

    gated = detect_paywall(html, LONG_CONTENT, 'https://www.latercera.com/politica/noticia/')
    assert gated.has_paywall
    assert gated.method == 'domain'
    assert gated.confidence == 0.75

    assert detect_paywall(html, LONG_CONTENT * 3, 'https://www.latercera.com/politica/noticia/').method == 'none'
    assert detect_paywall(html, LONG_CONTENT, 'https://www.biobiochile.cl/noticias/').method == 'none'
