"""Generic extraction strategies for pages without a recipe.

Each strategy parses its own soup, so a strategy abandoned on timeout
never shares a tree with the one that runs after it.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from bs4 import BeautifulSoup, Tag

from titular.core.cleaning.cleaner import ContentCleaner
from titular.core.smart.scoring import STRATEGY_CONFIDENCE
from titular.models.results import ExtractionResult
from titular.validation.content import density_score, extract_images, sanitize_text, text_density

logger = logging.getLogger(__name__)

ARTICLE_TYPES = {'NewsArticle', 'Article', 'BlogPosting'}
ARTICLE_BODY_SELECTOR = 'article, [role="article"], .article-content, .post-content, .entry-content'
MAIN_CONTAINER_SELECTOR = 'article, main, [role="main"], [role="article"]'
SEMANTIC_TITLE_SELECTORS = ('h1', 'h2', '.title', '.headline', '[itemprop="headline"]')
SEMANTIC_DATE_SELECTOR = 'time[datetime], [datetime], .date, .published, [itemprop="datePublished"]'
SEMANTIC_AUTHOR_SELECTORS = ('[rel="author"]', '[itemprop="author"]', '.author', '.byline', '.author-name')
SEMANTIC_CONTENT_SELECTORS = (
    '.entry-content',
    '.post-content',
    '.article-content',
    '.article-body',
    '[itemprop="articleBody"]',
    '.content',
)
SKIPPED_TAGS = {'script', 'style', 'noscript', 'iframe'}

MAIN_CONTENT_POSITIVE = (
    'article',
    'content',
    'main',
    'post',
    'entry',
    'story',
    'body',
    'texto',
    'contenido',
    'noticia',
    'articulo',
)
MAIN_CONTENT_NEGATIVE = (
    'nav',
    'menu',
    'sidebar',
    'footer',
    'header',
    'advertisement',
    'comment',
    'widget',
    'related',
    'share',
    'social',
    'popup',
    'modal',
)

# Matches class/id tokens that start with a noise word or are exactly 'ad'/'ads'.
# A bare substring match would also drop 'headline', 'read-more' and 'lead-text'.
_TOKEN_START = r'(?:^|[\s_-])'
_TOKEN_END = r'(?=$|[\s_-])'
DENSITY_NOISE_PATTERN = re.compile(
    _TOKEN_START + r'(?:nav|menu|footer|sidebar|header|comment|widget|ads?' + _TOKEN_END + ')', re.IGNORECASE
)
MAIN_CONTENT_NEGATIVE_PATTERN = re.compile(
    _TOKEN_START + '(?:' + '|'.join(MAIN_CONTENT_NEGATIVE) + '|ads?' + _TOKEN_END + ')', re.IGNORECASE
)

MIN_PARAGRAPH_LENGTH = 20
MIN_HEADING_LENGTH = 10
MIN_BLOCK_TEXT_LENGTH = 100
MIN_DENSITY = 0.3
SHORT_CONTENT_LENGTH = 500


def class_and_id(element: Tag) -> str:
    """Class names and id of an element as one lower-case string."""
    classes = element.get('class') or []
    if isinstance(classes, str):
        classes = classes.split()
    return f'{" ".join(classes)} {element.get("id") or ""}'.lower().strip()


def is_probably_main_content(element: Tag) -> bool:
    """True when class/id name the main content and nothing that looks like chrome."""
    combined = class_and_id(element)
    if not combined:
        return False
    has_positive = any(keyword in combined for keyword in MAIN_CONTENT_POSITIVE)
    return has_positive and not MAIN_CONTENT_NEGATIVE_PATTERN.search(combined)


def join_paragraphs(element: Tag, min_length: int = MIN_PARAGRAPH_LENGTH) -> str:
    """Join the text of ``<p>`` descendants longer than ``min_length`` with blank lines."""
    paragraphs = []
    for p in element.find_all('p'):
        text = sanitize_text(p.get_text(' '))
        if len(text) > min_length:
            paragraphs.append(text)
    return '\n\n'.join(paragraphs)


def first_heading(root: Tag, selectors: tuple[str, ...] = ('h1',)) -> str:
    """Text of the first heading under ``root`` longer than 10 characters."""
    for css in selectors:
        element = root.select_one(css)
        if element is None:
            continue
        text = sanitize_text(element.get_text(' '))
        if len(text) > MIN_HEADING_LENGTH:
            return text
    return ''


class ExtractionStrategy(ABC):
    """One generic way of finding an article in a page.

    Attributes:
        name: Strategy tag reported on results
        confidence: Fixed confidence of results from this strategy
        strip_noise: Parse through ContentCleaner.clean_html so ads and widgets are gone before scoring

    """

    name: str = ''
    strip_noise: bool = False

    def __init__(self, cleaner: ContentCleaner | None = None):
        """Initialize the strategy.

        Args:
            cleaner: Text cleaner. Defaults to None (creates a new ContentCleaner).

        """
        self.cleaner = cleaner or ContentCleaner()

    @property
    def confidence(self) -> float:
        return STRATEGY_CONFIDENCE[self.name]

    def run(self, html: str, url: str) -> ExtractionResult | None:
        """Parse ``html`` and apply the strategy.

        Returns:
            Unvalidated result, or None when the strategy found nothing to work with.

        """
        soup = self.cleaner.clean_html(html) if self.strip_noise else BeautifulSoup(html or '', 'lxml')
        return self.extract(soup, url)

    @abstractmethod
    def extract(self, soup: BeautifulSoup, url: str) -> ExtractionResult | None:
        """Apply the strategy to a parsed page."""
        pass

    def _result(self, url: str, title: str = '', content: str = '', **fields: Any) -> ExtractionResult:
        return ExtractionResult(
            url=url,
            title=title or None,
            content=content or None,
            confidence=self.confidence,
            strategy=self.name,
            **fields,
        )


class StructuredDataStrategy(ExtractionStrategy):
    """JSON-LD article data, then Open Graph and meta tags."""

    name = 'structured-data'

    @staticmethod
    def _is_article(data: dict) -> bool:
        types = data.get('@type')
        if isinstance(types, list):
            return any(t in ARTICLE_TYPES for t in types)
        return types in ARTICLE_TYPES

    @staticmethod
    def _json_ld_objects(soup: BeautifulSoup) -> list[dict]:
        objects: list[dict] = []
        for script in soup.find_all('script', type='application/ld+json'):
            try:
                data = json.loads(script.string or script.get_text() or '')
            except (json.JSONDecodeError, TypeError):
                logger.debug('Skipping malformed JSON-LD block')
                continue
            if isinstance(data, list):
                data = data[0] if data else None
            if not isinstance(data, dict):
                continue
            objects.append(data)
            graph = data.get('@graph')
            if isinstance(graph, list):
                objects.extend(item for item in graph if isinstance(item, dict))
        return objects

    @staticmethod
    def _author_name(author: Any) -> str:
        if isinstance(author, list):
            author = author[0] if author else None
        if isinstance(author, dict):
            return str(author.get('name') or '')
        if isinstance(author, str):
            return author
        return ''

    @staticmethod
    def _image_urls(image: Any) -> list[str]:
        items = image if isinstance(image, list) else [image]
        urls = []
        for item in items:
            if isinstance(item, dict):
                item = item.get('url')
            if isinstance(item, str) and item.strip():
                urls.append(item.strip())
        return urls

    @staticmethod
    def _meta(soup: BeautifulSoup, *selectors: str) -> str:
        for css in selectors:
            tag = soup.select_one(css)
            if tag is not None and tag.get('content'):
                return sanitize_text(tag['content'])
        return ''

    def extract(self, soup: BeautifulSoup, url: str) -> ExtractionResult | None:
        title = content = date = author = ''
        images: list[str] = []

        for data in self._json_ld_objects(soup):
            if not self._is_article(data):
                continue
            title = title or sanitize_text(str(data.get('headline') or data.get('name') or ''))
            content = content or sanitize_text(str(data.get('articleBody') or data.get('description') or ''))
            date = date or sanitize_text(str(data.get('datePublished') or data.get('dateCreated') or ''))
            author = author or sanitize_text(self._author_name(data.get('author')))
            for image in self._image_urls(data.get('image')):
                if image not in images:
                    images.append(image)

        title = title or self._meta(soup, 'meta[property="og:title"]')
        content = content or self._meta(soup, 'meta[property="og:description"]')
        date = date or self._meta(
            soup, 'meta[property="article:published_time"]', 'meta[name="publish-date"]', 'meta[name="date"]'
        )
        author = author or self._meta(soup, 'meta[property="article:author"]', 'meta[name="author"]')
        og_image = self._meta(soup, 'meta[property="og:image"]')
        if og_image and og_image not in images:
            images.append(og_image)

        # Descriptions are short; prefer the article body when it is longer
        if title and content and len(content) < SHORT_CONTENT_LENGTH:
            body = soup.select_one(ARTICLE_BODY_SELECTOR)
            if body is not None:
                body_text = join_paragraphs(body) or sanitize_text(body.get_text(' '))
                body_text = self.cleaner.clean_text(body_text)
                if len(body_text) > len(content):
                    content = body_text

        if not title and not content:
            return None
        logger.debug(f'Structured data on {url}: title={bool(title)}, content={len(content)}')
        return self._result(url, title, content, date=date or None, author=author or None, images=images)


class SemanticHtmlStrategy(ExtractionStrategy):
    """HTML5 article/main containers and conventional class names."""

    name = 'semantic-html'

    def extract(self, soup: BeautifulSoup, url: str) -> ExtractionResult | None:
        main = soup.select_one(MAIN_CONTAINER_SELECTOR)
        if main is None:
            return None

        title = first_heading(main, SEMANTIC_TITLE_SELECTORS)

        date = ''
        time_element = main.select_one(SEMANTIC_DATE_SELECTOR)
        if time_element is not None:
            date = sanitize_text(time_element.get('datetime') or time_element.get_text(' '))

        author = ''
        for css in SEMANTIC_AUTHOR_SELECTORS:
            element = main.select_one(css)
            if element is not None and element.get_text(strip=True):
                author = sanitize_text(element.get_text(' '))
                break

        container = main
        for css in SEMANTIC_CONTENT_SELECTORS:
            found = main.select_one(css)
            if found is not None:
                container = found
                break
        content = self.cleaner.clean_text(join_paragraphs(container))

        return self._result(
            url,
            title,
            content,
            date=date or None,
            author=author or None,
            images=extract_images(container, url),
        )


class TextDensityStrategy(ExtractionStrategy):
    """Densest block of text in the body, scored by density times log length."""

    name = 'text-density'
    strip_noise = True

    def extract(self, soup: BeautifulSoup, url: str) -> ExtractionResult | None:
        title = first_heading(soup)
        body = soup.body or soup

        best: Tag | None = None
        best_score = 0.0
        for element in body.find_all(True):
            if element.name in SKIPPED_TAGS:
                continue
            if DENSITY_NOISE_PATTERN.search(class_and_id(element)):
                continue
            score, text_length = density_score(element)
            if text_length <= MIN_BLOCK_TEXT_LENGTH or text_density(element) <= MIN_DENSITY:
                continue
            if score > best_score:
                best, best_score = element, score

        if best is None:
            return self._result(url, title) if title else None

        content = join_paragraphs(best) or sanitize_text(best.get_text(' '))
        logger.debug(f'Text density on {url}: score={best_score:.2f}, length={len(content)}')
        return self._result(url, title, self.cleaner.clean_text(content), images=extract_images(best, url))


class LongestContentStrategy(ExtractionStrategy):
    """Longest run of paragraphs inside a container that looks like main content."""

    name = 'longest-content'
    strip_noise = True

    def extract(self, soup: BeautifulSoup, url: str) -> ExtractionResult | None:
        title = first_heading(soup)

        longest: Tag | None = None
        longest_content = ''
        for element in soup.find_all(['div', 'section', 'article', 'main']):
            if not is_probably_main_content(element):
                continue
            content = join_paragraphs(element)
            if len(content) > MIN_BLOCK_TEXT_LENGTH and len(content) > len(longest_content):
                longest, longest_content = element, content

        if longest is None:
            return self._result(url, title) if title else None
        return self._result(
            url, title, self.cleaner.clean_text(longest_content), images=extract_images(longest, url)
        )


def default_strategies(cleaner: ContentCleaner | None = None) -> list[ExtractionStrategy]:
    """The four strategies in descending confidence order."""
    return [
        StructuredDataStrategy(cleaner),
        SemanticHtmlStrategy(cleaner),
        TextDensityStrategy(cleaner),
        LongestContentStrategy(cleaner),
    ]
