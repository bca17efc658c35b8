"""Listing-mode extraction: article links from a page that lists many."""

import logging
import re
from collections.abc import Iterable

from bs4 import BeautifulSoup

from titular.core.extraction.selectors import element_title, select_link, select_value
from titular.models.recipe import ListingSelectors
from titular.models.results import ListingItem
from titular.utils.urls import normalize_link
from titular.validation.content import sanitize_text

BOILERPLATE_PATTERN = re.compile(r'menu|navegacion|search|newsletter', re.IGNORECASE)
MIN_LISTING_TITLE_LENGTH = 10


def finalize_items(raw_items: Iterable[tuple[str, str]], page_url: str) -> list[ListingItem]:
    """Filter and de-duplicate raw (title, href) pairs.

    Links are resolved against the page's base URL without query or
    fragment. Records without a link, with a title of 10 characters or
    fewer, or with boilerplate titles are dropped. Duplicate titles keep
    their first occurrence, so document order is preserved.

    Args:
        raw_items: (title, href) pairs in document order
        page_url: URL of the listing page

    Returns:
        Unique listing items.

    """
    seen: set[str] = set()
    items: list[ListingItem] = []

    for raw_title, raw_href in raw_items:
        title = sanitize_text(raw_title)
        link = normalize_link(raw_href or '', page_url)
        if not link or len(title) <= MIN_LISTING_TITLE_LENGTH:
            continue
        if BOILERPLATE_PATTERN.search(title):
            continue

        key = title.lower()
        if key in seen:
            continue
        seen.add(key)
        items.append(ListingItem(title=title, link=link))

    return items


class ListingExtractor:
    """Extracts article links from statically fetched listing markup."""

    def __init__(self):
        """Initialize the listing extractor."""
        self.logger = logging.getLogger(__name__)

    def extract(self, html: str | BeautifulSoup, page_url: str, selectors: ListingSelectors) -> list[ListingItem]:
        """Apply listing selectors to markup.

        Args:
            html: Listing page markup or a parsed soup
            page_url: URL of the listing page
            selectors: Container, link and optional title selectors

        Returns:
            Unique listing items in document order.

        """
        soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html or '', 'lxml')
        containers = soup.select(selectors.container.css)
        self.logger.debug(f'{len(containers)} containers matched {selectors.container.css!r} on {page_url}')

        raw_items: list[tuple[str, str]] = []
        for container in containers:
            href, link_element = select_link(container, selectors.link)
            title = select_value(container, selectors.title)
            if not title and link_element is not None:
                title = element_title(link_element, selectors.link)
            raw_items.append((title, href))

        items = finalize_items(raw_items, page_url)
        self.logger.info(f'Listing {page_url}: {len(items)} unique items from {len(containers)} containers')
        return items
