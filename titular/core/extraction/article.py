"""Article-mode extraction with recipe selectors."""

import logging
import re
from collections.abc import Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from titular.core.cleaning.cleaner import ContentCleaner
from titular.core.extraction.selectors import attribute_value, select_value
from titular.core.smart.scoring import FieldPresence, score_fields
from titular.models.recipe import ArticleSelectors, CleaningRule
from titular.models.results import ExtractionResult
from titular.models.selectors import AttributeSelector
from titular.validation.content import extract_images, is_valid_content, is_valid_title, sanitize_text


class ArticleExtractor:
    """Applies a recipe's article selectors to one page.

    Attributes:
        MIN_PARAGRAPH_LENGTH: Paragraphs this short or shorter are dropped
        MIN_CONTENT_LENGTH: Content must be longer than this to succeed
        MAX_IMAGES: Maximum images returned

    """

    MIN_PARAGRAPH_LENGTH = 20
    MIN_CONTENT_LENGTH = 100
    MAX_IMAGES = 5
    IMAGE_SKIP_PATTERN = re.compile(r'avatar|icon|logo|banner|advertisement', re.IGNORECASE)

    def __init__(self, cleaner: ContentCleaner | None = None):
        """Initialize the extractor.

        Args:
            cleaner: Text cleaner. Defaults to None (creates a new ContentCleaner).

        """
        self.cleaner = cleaner or ContentCleaner()
        self.logger = logging.getLogger(__name__)

    def extract(
        self,
        html: str | BeautifulSoup,
        url: str,
        selectors: ArticleSelectors,
        cleaning_rules: Sequence[CleaningRule] = (),
        strategy: str = 'recipe',
    ) -> ExtractionResult:
        """Extract an article using recipe selectors.

        Args:
            html: Page markup or a parsed soup
            url: Page URL, used to resolve image sources
            selectors: Article selectors of the recipe
            cleaning_rules: Regex substitutions applied to title and content
            strategy: Strategy tag reported on the result

        Returns:
            ExtractionResult. ``success`` requires a valid title and a valid
            content longer than 100 characters.

        """
        soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html or '', 'lxml')

        title = select_value(soup, selectors.title)
        content = self._extract_content(soup, selectors)
        date = self._extract_date(soup, selectors)
        author = select_value(soup, selectors.author) if selectors.author else ''
        images = self._extract_images(soup, url, selectors)

        for rule in cleaning_rules:
            title = rule.apply(title)
            content = rule.apply(content)
        title = sanitize_text(title)
        content = content.strip()

        success = is_valid_title(title) and is_valid_content(content) and len(content) > self.MIN_CONTENT_LENGTH
        if not success:
            self.logger.debug(f'Recipe selectors did not validate on {url} (title={len(title)}, content={len(content)})')

        return ExtractionResult(
            success=success,
            url=url,
            title=title or None,
            content=content or None,
            date=date or None,
            author=author or None,
            images=images,
            confidence=score_fields(FieldPresence.of(title, content, date, author)),
            strategy=strategy,
            reason=None if success else 'selectors matched no valid title/content',
        )

    def _extract_content(self, soup: BeautifulSoup, selectors: ArticleSelectors) -> str:
        """Join the paragraphs under the content selector.

        Raw element text is only used when no paragraph is long enough,
        since it picks up nested widget and ad text.
        """
        selector = selectors.content
        if isinstance(selector, AttributeSelector):
            return select_value(soup, selector)

        matches = soup.select(selector.css)
        if not matches:
            return ''

        paragraphs: list[str] = []
        for element in matches:
            candidates = [element] if element.name == 'p' else element.find_all('p')
            for p in candidates:
                text = sanitize_text(p.get_text(' '))
                if len(text) > self.MIN_PARAGRAPH_LENGTH and text not in paragraphs:
                    paragraphs.append(text)

        if paragraphs:
            return self.cleaner.clean_text('\n\n'.join(paragraphs))
        return self.cleaner.clean_text(' '.join(element.get_text(' ') for element in matches))

    def _extract_date(self, soup: BeautifulSoup, selectors: ArticleSelectors) -> str:
        if selectors.date is None:
            return ''
        if isinstance(selectors.date, AttributeSelector):
            return select_value(soup, selectors.date)

        element = soup.select_one(selectors.date.css)
        if element is None:
            return ''
        return attribute_value(element, 'datetime') or sanitize_text(element.get_text(' '))

    def _extract_images(self, soup: BeautifulSoup, url: str, selectors: ArticleSelectors) -> list[str]:
        if selectors.images is None:
            content = soup.select_one(selectors.content.css)
            return extract_images(content, url, limit=self.MAX_IMAGES) if isinstance(content, Tag) else []

        images: list[str] = []
        for element in soup.select(selectors.images.css):
            img = element if element.name == 'img' else element.find('img')
            if img is None:
                continue
            if isinstance(selectors.images, AttributeSelector):
                src = attribute_value(img, selectors.images.attr_name)
            else:
                src = attribute_value(img, 'src') or attribute_value(img, 'data-src')
            if not src or src.startswith('data:') or self.IMAGE_SKIP_PATTERN.search(src):
                continue
            absolute = urljoin(url, src)
            if absolute not in images:
                images.append(absolute)
            if len(images) >= self.MAX_IMAGES:
                break
        return images
