"""Applies parsed recipe selectors to a parsed DOM."""

from bs4 import Tag

from titular.models.selectors import AttributeSelector, TextSelector
from titular.validation.content import sanitize_text

SelectorLike = TextSelector | AttributeSelector

URL_ATTRIBUTES = ('href', 'data-href', 'data-url', 'data-link')


def attribute_value(element: Tag, name: str) -> str:
    """Read an attribute as a string; multi-valued attributes are joined."""
    value = element.get(name)
    if isinstance(value, list):
        value = ' '.join(value)
    return (value or '').strip()


def select_first(root: Tag, selector: SelectorLike) -> Tag | None:
    """First element under ``root`` matching the selector, or None."""
    return root.select_one(selector.css)


def select_value(root: Tag, selector: SelectorLike | None) -> str:
    """Value of a recipe field under ``root``.

    A TextSelector yields the first match's text. An AttributeSelector yields
    the named attribute of the first match, falling back to its text when
    the attribute is empty.

    Returns:
        Sanitized value, empty string when nothing matched.

    """
    if selector is None:
        return ''
    element = select_first(root, selector)
    if element is None:
        return ''

    if isinstance(selector, AttributeSelector):
        value = attribute_value(element, selector.attr_name)
        if value:
            return sanitize_text(value)
    return sanitize_text(element.get_text(' '))


def select_link(root: Tag, selector: SelectorLike) -> tuple[str, Tag | None]:
    """Raw href of a listing link under ``root``.

    The matched element itself is used when ``root`` matches the selector
    (containers that are the anchor). An AttributeSelector naming a URL
    attribute reads it; otherwise ``href`` is read from the match or its
    first anchor.

    Returns:
        (href, matched element) with an empty href when nothing matched.

    """
    element = root if root.css.match(selector.css) else select_first(root, selector)
    if element is None:
        return '', None

    if isinstance(selector, AttributeSelector) and selector.attr_name in URL_ATTRIBUTES:
        value = attribute_value(element, selector.attr_name)
        if value:
            return value, element
    href = attribute_value(element, 'href')
    if not href and element.name != 'a':
        anchor = element.find('a', href=True)
        if anchor is not None:
            href = attribute_value(anchor, 'href')
    return href, element


def element_title(element: Tag, selector: SelectorLike) -> str:
    """Title carried by a matched element.

    For an AttributeSelector on a non-URL attribute (``a[title]``) the
    attribute is read first; the element text is the fallback.
    """
    if isinstance(selector, AttributeSelector) and selector.attr_name not in URL_ATTRIBUTES:
        value = attribute_value(element, selector.attr_name)
        if value:
            return sanitize_text(value)
    return sanitize_text(element.get_text(' '))

