from titular.core.extraction.article import ArticleExtractor
from titular.models.recipe import ArticleSelectors, CleaningRule


def test_extract_with_recipe_selectors(article_url, article_html, article_text, recipe_data):
    selectors = ArticleSelectors.model_validate(recipe_data['selectors'])

    result = ArticleExtractor().extract(article_html, article_url, selectors)

    assert result.success
    assert result.title == 'Gobierno anuncia nueva reforma de pensiones'
    assert result.content == article_text
    assert result.date == '2024-05-14T10:00:00-04:00'
    assert result.author == 'María González'
    assert result.images == ['https://www.diarioejemplo.cl/fotos/2024/05/ministra.jpg']
    assert result.confidence == 1.0
    assert result.strategy == 'recipe'


def test_attribute_selector_reads_attribute(article_text):
    html = f"""
    <html><body>
        <a class="hl" title="Temporal deja miles de hogares sin luz" href="/n/1">Temporal deja...</a>
        <div class="body"><p>{article_text}</p></div>
    </body></html>
    """
    selectors = ArticleSelectors(title='a.hl[title]', content='.body')

    result = ArticleExtractor().extract(html, 'https://site.cl/n/1', selectors, strategy='custom')

    assert result.success
    assert result.title == 'Temporal deja miles de hogares sin luz'
    assert result.strategy == 'custom'


def test_cleaning_rules_are_applied(article_url, article_html, recipe_data):
    selectors = ArticleSelectors.model_validate(recipe_data['selectors'])
    rules = [CleaningRule(pattern=r'^Gobierno\s+'), CleaningRule(pattern='empleadores', replacement='patrones')]

    result = ArticleExtractor().extract(article_html, article_url, selectors, rules)

    assert result.title == 'anuncia nueva reforma de pensiones'
    assert 'patrones' in result.content
    assert 'empleadores' not in result.content


def test_unmatched_selectors_fail_without_raising(article_url, article_html):
    selectors = ArticleSelectors(title='h1.missing', content='.missing')

    result = ArticleExtractor().extract(article_html, article_url, selectors)

    assert not result.success
    assert result.title is None
    assert result.content is None
    assert result.reason
    assert result.confidence == 0.5


def test_short_content_does_not_validate():
    html = '<html><body><h1>Temporal deja miles de hogares sin luz</h1><div class="b"><p>Muy breve.</p></div></body></html>'
    result = ArticleExtractor().extract(html, 'https://site.cl/', ArticleSelectors(title='h1', content='.b'))
    assert not result.success
    assert result.title == 'Temporal deja miles de hogares sin luz'
