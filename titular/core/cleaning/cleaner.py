"""Cleans page markup before heuristic extraction and text after it."""

import html as html_lib
import re

from bs4 import BeautifulSoup, Comment

from titular.validation.content import sanitize_text

# Mangled typographic entities that show up as '8220;' after bad decoding
_BROKEN_ENTITIES = {
    'p8220;': '"',
    'p8221;': '"',
    '8220;': '"',
    '8221;': '"',
    '8216;': "'",
    '8217;': "'",
    '8211;': '-',
    '8212;': '-',
    '8230;': '...',
}


class ContentCleaner:
    """Removes noise from markup and normalizes extracted text.

    Attributes:
        NOISE_TAGS: Tags that never carry article content
        NOISE_SELECTORS: Ad and widget selectors removed before scoring

    """

    NOISE_TAGS = ('script', 'style', 'noscript', 'iframe', 'svg', 'template')
    NOISE_SELECTORS = (
        '.advertisement',
        '.ad',
        '[class^="ad-"]',
        '[class*=" ad-"]',
        '[id^="ad-"]',
        '.social-share',
        '.related-posts',
        '.newsletter',
        '[aria-hidden="true"]',
    )

    def clean_html(self, html: str, remove_ads: bool = True) -> BeautifulSoup:
        """Parse markup and strip scripts, styles, comments and ads.

        Structural chrome (nav, header, footer) is kept: the heuristic
        strategies score it themselves.

        Args:
            html: Raw page markup
            remove_ads: Also remove ad and widget selectors. Defaults to True.

        Returns:
            The cleaned soup.

        """
        soup = BeautifulSoup(html or '', 'lxml')

        for tag in soup.find_all(self.NOISE_TAGS):
            tag.decompose()

        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

        if remove_ads:
            for selector in self.NOISE_SELECTORS:
                for element in soup.select(selector):
                    element.decompose()

        return soup

    def clean_text(self, text: str | None) -> str:
        """Normalize extracted text.

        Decodes HTML entities, repairs mangled typographic entities and
        stray paragraph tags, tidies punctuation spacing and keeps paragraph
        breaks.
        """
        if not text:
            return ''

        cleaned = re.sub(r'<(script|style)\b.*?</\1>', '', text, flags=re.IGNORECASE | re.DOTALL)
        cleaned = re.sub(r'</?[^>]+(>|$)', ' ', cleaned)
        cleaned = re.sub(r'\.p\s+p\b', '. ', cleaned)
        cleaned = re.sub(r'\.p(?=\s|$)', '.', cleaned)

        for broken, fixed in _BROKEN_ENTITIES.items():
            cleaned = cleaned.replace(broken, fixed)

        cleaned = html_lib.unescape(cleaned)
        cleaned = re.sub(r'&[a-z]+;|&#\d+;', '', cleaned, flags=re.IGNORECASE)

        paragraphs = []
        for block in re.split(r'\n\s*\n', cleaned):
            block = sanitize_text(block)
            block = re.sub(r'\s+([.,;:!?])', r'\1', block)
            block = re.sub(r'([.!?])(?=[A-ZÁÉÍÓÚÑ])', r'\1 ', block)
            if block:
                paragraphs.append(block)

        result = '\n\n'.join(paragraphs)
        return re.sub(r'^[.\s,;:]+|[\s,;:]+$', '', result)
