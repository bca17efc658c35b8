"""Runs recipe selectors on the right substrate: a browser page or static HTML."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

import logfire

from titular.core.browser.rpc import ListingEvaluationRequest, evaluate_listing
from titular.core.browser.session import BrowserSession
from titular.core.extraction.article import ArticleExtractor
from titular.core.extraction.listing import ListingExtractor
from titular.core.fetcher.base import HTMLFetcher
from titular.models.recipe import ArticleSelectors, CleaningRule, ListingSelectors, SiteRecipe
from titular.models.results import ExtractionResult, ListingItem
from titular.utils.exceptions import NetworkError
from titular.utils.resilience import Deadline
from titular.utils.urls import base_url

Substrate = Literal['browser', 'static']


def choose_substrate(recipe: SiteRecipe | None) -> Substrate:
    """Pick where a recipe's selectors run.

    Explicit render modes win. In 'auto' mode a recipe with listing
    selectors, or one coming from the database, is run in a browser page;
    everything else, including transient custom selectors, runs against
    static HTML.
    """
    if recipe is None or recipe.render_mode == 'static':
        return 'static'
    if recipe.render_mode == 'browser':
        return 'browser'
    if recipe.listing_selectors is not None or recipe.source == 'database':
        return 'browser'
    return 'static'


@dataclass
class ChainOutcome:
    """Result of running article selectors, plus the markup they ran on.

    Attributes:
        result: The extraction result
        html: Page markup, reused by later stages to avoid a refetch
        substrate: Where the selectors actually ran

    """

    result: ExtractionResult
    html: str | None
    substrate: Substrate


class StrategyChainExecutor:
    """Applies recipe selectors, in a browser when required, else statically.

    When the browser path fails for any reason the executor falls back
    exactly once to a static fetch.
    """

    def __init__(
        self,
        fetcher: HTMLFetcher,
        browser_factory: Callable[[], BrowserSession] | None = None,
        article_extractor: ArticleExtractor | None = None,
        listing_extractor: ListingExtractor | None = None,
    ):
        """Initialize the executor.

        Args:
            fetcher: Static HTML fetcher
            browser_factory: Creates an unopened browser session. Defaults to BrowserSession
            article_extractor: Defaults to a new ArticleExtractor
            listing_extractor: Defaults to a new ListingExtractor

        """
        self.fetcher = fetcher
        self.browser_factory = browser_factory or BrowserSession
        self.article_extractor = article_extractor or ArticleExtractor()
        self.listing_extractor = listing_extractor or ListingExtractor()
        self.logger = logging.getLogger(__name__)

    def _fetch_static(self, url: str) -> str:
        result = self.fetcher.fetch(url)
        if not result.success or result.html is None:
            raise NetworkError(url, result.status_code, result.block_reason or 'empty response')
        return result.html

    def _navigate(self, session: BrowserSession, url: str, deadline: Deadline | None) -> None:
        timeout = session.navigation_timeout
        if deadline is not None:
            deadline.check('navigation')
            timeout = int(deadline.budget(timeout / 1000) * 1000) or 1
        session.goto(url, timeout=timeout)

    def render(self, url: str, deadline: Deadline | None = None, wait_selector: str | None = None) -> str:
        """Markup of ``url`` after the browser ran its scripts.

        Args:
            url: Page to render
            deadline: Overall deadline, shrinks the navigation timeout
            wait_selector: Selector to wait for before reading the page

        Raises:
            NetworkError: If navigation failed
            ExtractionTimeoutError: If navigation or the deadline ran out

        """
        with logfire.span('browser_render', url=url), self.browser_factory() as session:
            self._navigate(session, url, deadline)
            if wait_selector:
                session.wait_for(wait_selector)
            return session.content()

    def execute_article(
        self,
        url: str,
        selectors: ArticleSelectors,
        cleaning_rules: Sequence[CleaningRule] = (),
        substrate: Substrate = 'static',
        deadline: Deadline | None = None,
        strategy: str = 'recipe',
    ) -> ChainOutcome:
        """Extract one article with recipe selectors.

        Args:
            url: Article URL
            selectors: Article selectors
            cleaning_rules: Regex substitutions applied after extraction
            substrate: 'browser' to render the page first, 'static' to fetch it
            deadline: Overall deadline, shrinks navigation timeouts
            strategy: Strategy tag reported on the result

        Returns:
            ChainOutcome with the result and the markup it was extracted from.

        Raises:
            NetworkError: If the static fetch failed
            BotDetectionError: If the static fetch hit a block page
            ExtractionTimeoutError: If the deadline expired

        """
        html: str | None = None
        used: Substrate = substrate

        with logfire.span('execute_article', url=url, substrate=substrate):
            if substrate == 'browser':
                try:
                    html = self.render(url, deadline, selectors.title.css)
                except Exception as e:
                    self.logger.warning(f'Browser path failed for {url}, falling back to static fetch: {e}')
                    used = 'static'

            if html is None:
                if deadline is not None:
                    deadline.check('static fetch')
                html = self._fetch_static(url)

        result = self.article_extractor.extract(html, url, selectors, cleaning_rules, strategy=strategy)
        return ChainOutcome(result=result, html=html, substrate=used)

    def execute_listing(
        self,
        url: str,
        selectors: ListingSelectors,
        substrate: Substrate = 'browser',
        deadline: Deadline | None = None,
    ) -> list[ListingItem]:
        """Discover article links on a listing page.

        Args:
            url: Listing page URL
            selectors: Container, link and optional title selectors
            substrate: 'browser' to evaluate in a page, 'static' to parse fetched HTML
            deadline: Overall deadline, shrinks navigation timeouts

        Returns:
            Unique listing items in document order.

        Raises:
            NetworkError: If the static fetch failed
            BotDetectionError: If the static fetch hit a block page

        """
        with logfire.span('execute_listing', url=url, substrate=substrate):
            if substrate == 'browser':
                try:
                    with self.browser_factory() as session:
                        self._navigate(session, url, deadline)
                        session.wait_for(selectors.container.css)
                        request = ListingEvaluationRequest.from_selectors(selectors, base_url(url))
                        return evaluate_listing(session, request)
                except Exception as e:
                    self.logger.warning(f'Browser listing failed for {url}, falling back to static fetch: {e}')

            html = self._fetch_static(url)
            return self.listing_extractor.extract(html, url, selectors)
