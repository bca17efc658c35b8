"""Plausibility checks for extracted editorial content.

Judges whether an extracted title or body looks like real article content
rather than navigation, boilerplate or widget text.
"""

import math
import re
import unicodedata
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

NAVIGATION_KEYWORDS = (
    'home',
    'menú',
    'menu',
    'navegación',
    'navigation',
    'sidebar',
    'footer',
    'header',
    'login',
    'registro',
    'sign in',
    'sign up',
    'search',
    'buscar',
    'compartir',
    'share',
    'tweet',
    'facebook',
    'instagram',
    'twitter',
    'suscribir',
    'subscribe',
    'newsletter',
    'cookie',
    'política',
    'privacy',
    'términos',
    'terms',
    'condiciones',
    'conditions',
    'copyright',
    'derechos',
    'all rights reserved',
    'todos los derechos',
    'contacto',
    'contact',
    'about us',
    'acerca de',
    'quiénes somos',
)

MIN_TITLE_LENGTH = 10
MAX_TITLE_LENGTH = 200
MIN_CONTENT_LENGTH = 100
MIN_CONTENT_WORDS = 3

_LETTERS = 'a-zA-ZáéíóúüñÁÉÍÓÚÜÑ'
_TITLE_WORD = re.compile(f'[{_LETTERS}]{{5,}}')
_CONTENT_WORD = re.compile(f'[{_LETTERS}]{{10,}}')
_ZERO_WIDTH = re.compile('[\u200b\u200c\u200d\u2060\ufeff]')
_WHITESPACE = re.compile(r'\s+')

IMAGE_SKIP_PATTERN = re.compile(r'pixel|tracker|\bads?\b|/ads?/|banner|logo|icon|avatar|emoji', re.IGNORECASE)


def sanitize_text(text: str | None) -> str:
    """Normalize whitespace and remove invisible characters.

    Control and zero-width characters are removed, non-breaking spaces become
    regular spaces, and runs of whitespace collapse to a single space.
    """
    if not text:
        return ''
    text = _ZERO_WIDTH.sub('', text).replace('\u00a0', ' ')
    text = ''.join(ch for ch in text if ch in '\n\t ' or unicodedata.category(ch)[0] != 'C')
    return _WHITESPACE.sub(' ', text).strip()


def is_valid_title(title: str | None) -> bool:
    """Whether ``title`` looks like an article headline.

    A headline is 10 to 200 characters, contains a word of at least five
    letters and is not a navigation label.
    """
    clean = sanitize_text(title)
    if not MIN_TITLE_LENGTH <= len(clean) <= MAX_TITLE_LENGTH:
        return False
    if not _TITLE_WORD.search(clean):
        return False

    lowered = clean.lower()
    return not any(lowered == keyword or lowered.startswith(keyword + ' ') for keyword in NAVIGATION_KEYWORDS)


def is_valid_content(content: str | None) -> bool:
    """Whether ``content`` looks like an article body.

    Requires at least 100 characters, three words, one word of ten or more
    letters, and a majority of alphabetic characters.
    """
    clean = sanitize_text(content)
    if len(clean) < MIN_CONTENT_LENGTH:
        return False
    if len(clean.split()) < MIN_CONTENT_WORDS:
        return False
    if not _CONTENT_WORD.search(clean):
        return False

    visible = [ch for ch in clean if not ch.isspace()]
    letters = sum(1 for ch in visible if ch.isalpha())
    return letters * 2 > len(visible)


def text_density(element: Tag) -> float:
    """Ratio of non-whitespace text length to inner markup length."""
    inner_html = element.decode_contents()
    if not inner_html:
        return 0.0
    text = re.sub(r'\s', '', element.get_text())
    return len(text) / len(inner_html)


def density_score(element: Tag) -> tuple[float, int]:
    """Return (score, text_length) where score is density times log of length."""
    text_length = len(sanitize_text(element.get_text(' ')))
    if text_length <= 1:
        return 0.0, text_length
    return text_density(element) * math.log(text_length), text_length


def _dimension_too_small(value) -> bool:
    if value is None:
        return False
    match = re.match(r'\s*(\d+)', str(value))
    return bool(match) and int(match.group(1)) < 100


def extract_images(source: str | Tag | BeautifulSoup, base_url: str, limit: int | None = None) -> list[str]:
    """Collect article image URLs.

    Reads ``src``, ``data-src`` or ``data-lazy-src``; skips images declared
    smaller than 100px and URLs that look like trackers, logos or icons.

    Args:
        source: Markup string or an already parsed element
        base_url: URL used to resolve relative sources
        limit: Maximum number of images to return

    Returns:
        Absolute, de-duplicated image URLs in document order.

    """
    root = BeautifulSoup(source, 'lxml') if isinstance(source, str) else source
    images: list[str] = []

    for img in root.find_all('img'):
        src = img.get('src') or img.get('data-src') or img.get('data-lazy-src')
        if not src or str(src).startswith('data:'):
            continue
        if _dimension_too_small(img.get('width')) or _dimension_too_small(img.get('height')):
            continue
        if IMAGE_SKIP_PATTERN.search(str(src)):
            continue

        absolute = urljoin(base_url, str(src).strip())
        if absolute not in images:
            images.append(absolute)
        if limit is not None and len(images) >= limit:
            break

    return images

