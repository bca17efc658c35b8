import pytest

from titular.models.selectors import AttributeSelector, TextSelector
from titular.utils.exceptions import InvalidSelectorError
from titular.validation.selectors import (
    extract_attribute_name,
    is_attribute_selector,
    parse_selector,
    validate_selectors,
)


@pytest.mark.parametrize('css', ['h1', 'h1.title', 'article .body p', 'a[title]', 'img[data-src^="http"]', 'div > p'])
def test_valid_selectors(css):
    assert parse_selector(css).css == css


@pytest.mark.parametrize('css', ['', '   ', 'div[', 'h1..title', '>>>', None])
def test_invalid_selectors(css):
    with pytest.raises(InvalidSelectorError):
        parse_selector(css)


def test_attribute_detection():
    assert is_attribute_selector('a[title]')
    assert is_attribute_selector('img[data-src="x"]')
    assert not is_attribute_selector('h1.title')
    assert not is_attribute_selector('')


@pytest.mark.parametrize(
    'css,expected',
    [
        ('a[title]', 'title'),
        ('img[data-src="x"]', 'data-src'),
        ("a[href^='https']", 'href'),
        ('div[aria-label*=headline]', 'aria-label'),
        ('h1', None),
    ],
)
def test_extract_attribute_name(css, expected):
    assert extract_attribute_name(css) == expected


def test_parse_selector_classifies_kind():
    assert parse_selector('h1.headline') == TextSelector(css='h1.headline')
    assert parse_selector(' a[title] ') == AttributeSelector(css='a[title]', attr_name='title')


def test_parse_selector_accepts_dump_forms():
    dumped = AttributeSelector(css='img[alt]', attr_name='alt').model_dump(by_alias=True)
    assert parse_selector(dumped) == AttributeSelector(css='img[alt]', attr_name='alt')
    assert parse_selector({'css': 'h2'}) == TextSelector(css='h2')


def test_parse_selector_rejects_bad_syntax():
    with pytest.raises(InvalidSelectorError) as exc_info:
        parse_selector('div[', field_name='title')
    assert exc_info.value.field_name == 'title'
    assert exc_info.value.selector == 'div['


def test_validate_selectors_reports_each_bad_field():
    errors = validate_selectors({'title': 'h1', 'content': 'div[', 'date': None, 'author': ''})
    assert [name for name, _ in errors] == ['content', 'author']
