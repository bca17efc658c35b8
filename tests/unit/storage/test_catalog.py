import json

import pytest

from titular.storage.catalog import RecipeCatalog
from titular.utils.exceptions import CatalogError

SITES = {
    'sites': [
        {
            'domain': 'latercera.com',
            'name': 'La Tercera',
            'selectors': {'title': 'h1.titulo', 'content': '.cuerpo p'},
            'cleaningRules': [{'pattern': r'Lee también:.*', 'replacement': ''}],
        },
        {
            'domain': 'www.biobiochile.cl',
            'selectors': {'title': 'a[title]', 'content': '.post-content'},
            'requiresOcr': True,
            'renderMode': 'browser',
        },
        {
            'domain': 'apagado.cl',
            'name': 'Apagado',
            'enabled': False,
            'selectors': {'title': 'h1', 'content': 'article'},
        },
    ]
}


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / 'catalog.json'
    path.write_text(json.dumps(SITES), encoding='utf-8')
    return path


def test_init_loads_sites(catalog_file):
    catalog = RecipeCatalog(catalog_file).init()

    assert len(catalog.sites) == 3
    status = catalog.status()
    assert status['loaded']
    assert status['enabled'] == 2
    assert status['requires_ocr'] == 1
    assert status['last_error'] is None


def test_sites_come_from_json_source(catalog_file):
    catalog = RecipeCatalog(catalog_file).init()

    site = catalog.find('biobiochile.cl')
    assert site.source == 'json'
    assert site.name == 'www.biobiochile.cl'
    assert site.requires_ocr
    assert site.render_mode == 'browser'


def test_find_exact_then_substring(catalog_file):
    catalog = RecipeCatalog(catalog_file).init()

    assert catalog.find('https://www.latercera.com/politica/nota/').domain == 'latercera.com'
    assert catalog.find('https://especiales.latercera.com/x').domain == 'latercera.com'
    assert catalog.find('https://emol.com/') is None
    assert catalog.find('') is None


def test_disabled_sites_are_never_found(catalog_file):
    catalog = RecipeCatalog(catalog_file).init()

    assert catalog.find('apagado.cl') is None


def test_reload_keeps_snapshot_on_bad_document(catalog_file):
    catalog = RecipeCatalog(catalog_file).init()
    catalog_file.write_text('{"sites": [', encoding='utf-8')

    with pytest.raises(CatalogError):
        catalog.reload()

    assert len(catalog.sites) == 3
    assert catalog.find('latercera.com') is not None
    assert 'not valid JSON' in catalog.status()['last_error']


@pytest.mark.parametrize(
    'document',
    [
        [],
        {'sites': 'nope'},
        {'sites': [{'domain': 'x.cl'}]},
        {'sites': [{'domain': 'x.cl', 'selectors': {'title': 'h1[', 'content': 'p'}}]},
    ],
)
def test_malformed_documents_raise(tmp_path, document):
    path = tmp_path / 'catalog.json'
    path.write_text(json.dumps(document), encoding='utf-8')

    with pytest.raises(CatalogError):
        RecipeCatalog(path).init()


def test_missing_file_raises(tmp_path):
    with pytest.raises(CatalogError, match='Cannot read'):
        RecipeCatalog(tmp_path / 'missing.json').init()


def test_no_path_is_an_empty_catalog():
    catalog = RecipeCatalog().init()

    assert catalog.sites == []
    assert catalog.find('latercera.com') is None
    assert catalog.status()['loaded']


def test_catalog_cleaning_rules_are_parsed(catalog_file):
    catalog = RecipeCatalog(catalog_file).init()
    site = catalog.find('latercera.com')

    [rule] = site.cleaning_rules
    assert rule.apply('Cuerpo de la nota. Lee también: otra cosa') == 'Cuerpo de la nota. '
