"""Selector syntax validation and classification."""

import re
from collections.abc import Mapping
from typing import Any

import soupsieve

from titular.models.selectors import AttributeSelector, TextSelector
from titular.utils.exceptions import InvalidSelectorError

_ATTRIBUTE_CLAUSE = re.compile(r'\[([^\]]+)\]')


def _syntax_error(css: str) -> str | None:
    """Return the parser message for an invalid selector, or None if it parses."""
    if not isinstance(css, str) or not css.strip():
        return 'empty selector'
    try:
        soupsieve.compile(css.strip())
    except soupsieve.SelectorSyntaxError as e:
        return str(e).splitlines()[0]
    except (ValueError, TypeError) as e:
        return str(e)
    return None


def is_attribute_selector(css: str) -> bool:
    """True if ``css`` contains a ``[name]`` or ``[name="value"]`` clause.

    Examples:
        >>> is_attribute_selector('a[title]')
        True
        >>> is_attribute_selector('h1.title')
        False

    """
    return bool(css) and _ATTRIBUTE_CLAUSE.search(css) is not None


def extract_attribute_name(css: str) -> str | None:
    """Attribute name from the first bracket clause of ``css``.

    ``a[title]`` gives 'title'; ``img[data-src="x"]`` gives 'data-src'.
    Operators such as ``^=`` or ``*=`` are stripped with the value.
    """
    match = _ATTRIBUTE_CLAUSE.search(css or '')
    if not match:
        return None
    clause = match.group(1).replace('"', '').replace("'", '')
    name = re.split(r'[~|^$*]?=', clause, maxsplit=1)[0].strip()
    return name or None


def parse_selector(value: Any, field_name: str | None = None) -> TextSelector | AttributeSelector:
    """Parse a raw selector into the tagged union.

    Already-parsed selectors and their dict forms pass through.

    Args:
        value: Selector string, selector model, or its dict dump
        field_name: Recipe field name, used in error messages

    Returns:
        TextSelector or AttributeSelector

    Raises:
        InvalidSelectorError: If the selector is empty or cannot be parsed

    """
    if isinstance(value, (TextSelector, AttributeSelector)):
        css = value.css
    elif isinstance(value, Mapping) and 'css' in value:
        css = value['css']
        if value.get('kind') == 'attribute' and (value.get('attr_name') or value.get('attrName')):
            error = _syntax_error(css)
            if error:
                raise InvalidSelectorError(css, error, field_name)
            return AttributeSelector(css=css.strip(), attr_name=value.get('attr_name') or value.get('attrName'))
    else:
        css = value

    error = _syntax_error(css)
    if error:
        raise InvalidSelectorError(str(css), error, field_name)

    css = css.strip()
    if is_attribute_selector(css):
        attr_name = extract_attribute_name(css)
        if attr_name:
            return AttributeSelector(css=css, attr_name=attr_name)
    return TextSelector(css=css)


def validate_selectors(selectors: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Check every selector in a mapping.

    Args:
        selectors: Field name to raw selector mapping; None values are skipped

    Returns:
        List of (field_name, reason) for each invalid selector. Empty when all parse.

    """
    errors = []
    for field_name, value in selectors.items():
        if value is None:
            continue
        try:
            parse_selector(value, field_name)
        except InvalidSelectorError as e:
            errors.append((field_name, e.reason))
    return errors
