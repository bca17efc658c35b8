from titular.core.extraction.listing import ListingExtractor, finalize_items
from titular.models.recipe import ListingSelectors

PAGE_URL = 'https://portal.cl/portada'


def test_listing_deduplicates_titles_and_drops_bad_links(listing_html):
    selectors = ListingSelectors(container='div.card', link='a[title]')

    items = ListingExtractor().extract(listing_html, PAGE_URL, selectors)

    assert [(item.title, item.link) for item in items] == [
        ('Senado aprueba proyecto de ley corta', 'https://portal.cl/nota/1'),
        ('Temporal deja miles de hogares sin luz', 'https://portal.cl/nota/3'),
    ]


def test_listing_with_title_selector():
    html = """
    <ul>
        <li class="item"><h3>Nueva línea de metro abre en diciembre</h3><a href="/metro">Leer</a></li>
        <li class="item"><h3>Menu de secciones principales</h3><a href="/menu">Leer</a></li>
    </ul>
    """
    selectors = ListingSelectors(container='li.item', link='a', title='h3')

    items = ListingExtractor().extract(html, PAGE_URL, selectors)

    assert len(items) == 1
    assert items[0].title == 'Nueva línea de metro abre en diciembre'
    assert items[0].link == 'https://portal.cl/metro'


def test_listing_container_is_the_anchor():
    html = '<a class="teaser" href="/n/9">Alcaldía anuncia plan de invierno</a>'
    selectors = ListingSelectors(container='a.teaser', link='a')

    items = ListingExtractor().extract(html, PAGE_URL, selectors)

    assert items[0].link == 'https://portal.cl/n/9'


def test_finalize_items_is_case_insensitive_on_titles():
    items = finalize_items(
        [('Alcaldía anuncia plan de invierno', '/a'), ('ALCALDÍA ANUNCIA PLAN DE INVIERNO', '/b')], PAGE_URL
    )
    assert [item.link for item in items] == ['https://portal.cl/a']
