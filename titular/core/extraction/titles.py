"""Page title extraction from meta tags and headings."""

import logging
import re

from bs4 import BeautifulSoup

from titular.models.results import TitleCandidate
from titular.validation.content import sanitize_text

logger = logging.getLogger(__name__)

GENERIC_TITLES = (
    'inicio',
    'home',
    'página principal',
    'bienvenido',
    'welcome',
    'untitled',
    'sin título',
    'no title',
    'página de inicio',
    'homepage',
    'index',
    'default',
    'main page',
)

TITLE_SEPARATORS = (' | ', ' - ', ' :: ', ' — ', ' – ', ' » ')

# (source, css, attribute or None for text, confidence)
TITLE_SOURCES = (
    ('og:title', 'meta[property="og:title"]', 'content', 0.95),
    ('twitter:title', 'meta[name="twitter:title"]', 'content', 0.90),
    ('title', 'title', None, 0.85),
    ('h1', 'h1', None, 0.80),
    ('description', 'meta[name="description"]', 'content', 0.60),
)

_GENERIC_PATTERN = re.compile(r'\b(?:' + '|'.join(re.escape(g) for g in GENERIC_TITLES) + r')\b', re.IGNORECASE)


def is_generic_title(title: str | None, site_name: str | None = None) -> bool:
    """True for titles that say nothing about the article.

    Too short or too long, a generic label such as 'Home' or 'Inicio',
    just the site name, or no letters at all.
    """
    normalized = sanitize_text(title).lower()
    if not 10 <= len(normalized) <= 200:
        return True
    if _GENERIC_PATTERN.search(normalized):
        return True
    if site_name and normalized == site_name.lower().strip():
        return True
    return re.fullmatch(r'[\W\d_\s]+', normalized) is not None


def clean_title(title: str | None, site_name: str | None = None) -> str:
    """Strip the site-name part of a compound title.

    'Headline | Site' becomes 'Headline'. When the site name is unknown, the
    longest part is kept.
    """
    if not title:
        return ''

    cleaned = title.strip()
    for separator in TITLE_SEPARATORS:
        if separator not in cleaned:
            continue
        parts = [part.strip() for part in cleaned.split(separator)]
        site = (site_name or '').lower().strip()
        if site and parts[-1].lower() == site:
            cleaned = separator.join(parts[:-1])
        elif site and parts[0].lower() == site:
            cleaned = separator.join(parts[1:])
        else:
            cleaned = max(parts, key=len)
        break

    return sanitize_text(cleaned)


def extract_site_name(soup: BeautifulSoup) -> str | None:
    """Publisher name from og:site_name, application-name or the <title> suffix."""
    for css in ('meta[property="og:site_name"]', 'meta[name="application-name"]'):
        tag = soup.select_one(css)
        if tag and tag.get('content', '').strip():
            return tag['content'].strip()

    title_tag = soup.find('title')
    if title_tag:
        text = title_tag.get_text().strip()
        for separator in (' | ', ' - ', ' :: '):
            if separator in text:
                name = text.split(separator)[-1].strip()
                if 0 < len(name) < 50:
                    return name
    return None


def extract_title(html: str | BeautifulSoup) -> list[TitleCandidate]:
    """Candidate titles ordered by source confidence.

    Sources are tried in order og:title, twitter:title, <title>, the first
    h1, then the first 15 words of the meta description. Candidates are
    cleaned of the site name and generic ones are dropped.

    Args:
        html: Page markup or a parsed soup

    Returns:
        List of TitleCandidate, best first. Empty if nothing usable was found.

    """
    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html or '', 'lxml')
    site_name = extract_site_name(soup)
    candidates: list[TitleCandidate] = []

    for source, css, attribute, confidence in TITLE_SOURCES:
        tag = soup.select_one(css)
        if tag is None:
            continue
        raw = tag.get(attribute, '') if attribute else tag.get_text(' ')
        raw = sanitize_text(raw if isinstance(raw, str) else ' '.join(raw))
        if source == 'description':
            if len(raw) <= 20:
                continue
            raw = ' '.join(raw.split()[:15])

        title = clean_title(raw, site_name)
        if is_generic_title(title, site_name):
            logger.debug(f'Rejected {source} title: {title!r}')
            continue
        candidates.append(TitleCandidate(title=title, source=source, confidence=confidence))

    return candidates


def best_title(html: str | BeautifulSoup) -> TitleCandidate | None:
    """The highest-confidence title candidate, or None."""
    candidates = extract_title(html)
    return candidates[0] if candidates else None
