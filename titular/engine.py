"""Extraction engine: the public entry point tying every stage together."""

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any

import logfire
from pydantic import BaseModel, Field, ValidationError

from titular.config import EngineConfig
from titular.core.browser.session import BrowserSession
from titular.core.extraction.executor import StrategyChainExecutor, choose_substrate
from titular.core.fetcher import HTMLFetcher, create_fetcher
from titular.core.ocr.capture import ScreenshotCapturer
from titular.core.ocr.pipeline import OcrPipeline
from titular.core.smart.scraper import SmartScraper
from titular.models.recipe import ArticleSelectors, ListingSelectors, SiteRecipe
from titular.models.results import (
    ExtractionResult,
    ListingError,
    ListingItem,
    ListingResult,
    OcrResult,
    StrategyAttempt,
)
from titular.storage.catalog import RecipeCatalog
from titular.storage.feedback import FeedbackLoop
from titular.storage.resolver import ConfigResolver
from titular.storage.store import JsonRecipeStore, RecipeStore
from titular.utils.exceptions import (
    ExtractionTimeoutError,
    InvalidUrlError,
    NoContentExtractedError,
    OcrUnavailableError,
    RecipeNotFoundError,
    TitularError,
)
from titular.utils.resilience import Deadline
from titular.utils.urls import is_valid_url
from titular.validation.content import is_valid_content, is_valid_title
from titular.validation.duplicates import are_duplicates, content_hash
from titular.validation.paywall import detect_paywall


class ExtractOptions(BaseModel):
    """Per-call options of ExtractionEngine.extract.

    Attributes:
        force_recipe_id: Use this store recipe instead of resolving one
        custom_selectors: Transient article selectors with absolute priority
        deadline_seconds: Overall time budget of the call
        allow_ocr: Permit the OCR fallback for recipes that require it

    """

    force_recipe_id: str | None = None
    custom_selectors: dict[str, Any] | ArticleSelectors | None = Field(default=None, union_mode='left_to_right')
    deadline_seconds: float | None = None
    allow_ocr: bool = True


class ExtractionEngine:
    """Extracts articles using recipes, generic strategies and OCR, in that order.

    Per-request calls share only the store; everything else is created per
    call or is thread-safe.
    """

    def __init__(
        self,
        store: RecipeStore,
        catalog: RecipeCatalog | None = None,
        config: EngineConfig | None = None,
        fetcher: HTMLFetcher | None = None,
        browser_factory: Callable[[], BrowserSession] | None = None,
        ocr_pipeline: OcrPipeline | None = None,
        smart_scraper: SmartScraper | None = None,
    ):
        """Initialize the engine.

        Args:
            store: Recipe store
            catalog: Static recipe catalog, already initialized
            config: Engine settings. Defaults to EngineConfig()
            fetcher: Static fetcher. Defaults to a guarded SimpleFetcher
            browser_factory: Creates unopened browser sessions. Defaults to headless BrowserSession
            ocr_pipeline: OCR pipeline. Defaults to one built from config.ocr_backend
            smart_scraper: Generic-strategy scraper. Defaults to one using config.strategy_timeout

        """
        self.config = config or EngineConfig()
        self.store = store
        self.catalog = catalog
        self.fetcher = fetcher or create_fetcher('guarded')
        self.browser_factory = browser_factory or partial(
            BrowserSession, headless=self.config.headless, navigation_timeout=self.config.navigation_timeout
        )
        self.resolver = ConfigResolver(store, catalog)
        self.feedback = FeedbackLoop(store)
        self.executor = StrategyChainExecutor(self.fetcher, self.browser_factory)
        self.smart_scraper = smart_scraper or SmartScraper(
            strategy_timeout=self.config.strategy_timeout, detect_paywalls=False
        )
        self._ocr_pipeline = ocr_pipeline
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: EngineConfig | None = None) -> 'ExtractionEngine':
        """Engine backed by the JSON store and the catalog named in ``config``.

        Raises:
            CatalogError: If the catalog document is malformed

        """
        config = config or EngineConfig.from_env()
        catalog = RecipeCatalog(config.catalog_path).init()
        return cls(JsonRecipeStore(config.store_path), catalog, config)

    @property
    def ocr_pipeline(self) -> OcrPipeline:
        if self._ocr_pipeline is None:
            capturer = ScreenshotCapturer(
                session_factory=partial(
                    BrowserSession,
                    headless=self.config.headless,
                    navigation_timeout=self.config.navigation_timeout,
                    viewport={'width': 2560, 'height': 1440},
                    device_scale_factor=2,
                )
            )
            self._ocr_pipeline = OcrPipeline(backend_name=self.config.ocr_backend, capturer=capturer)
        return self._ocr_pipeline

    def _finish(self, result: ExtractionResult, html: str | None, started: float) -> ExtractionResult:
        if self.config.detect_paywalls:
            result = result.with_paywall(detect_paywall(html, result.content, result.url))
        return result.model_copy(
            update={'content_hash': content_hash(result.content), 'extraction_time': round(time.time() - started, 3)}
        )

    def extract(self, url: str, options: ExtractOptions | None = None) -> ExtractionResult:
        """Extract one article.

        Custom selectors run first when given. Otherwise the resolved (or
        forced) recipe runs, then the generic strategies on the statically
        fetched page, then OCR for recipes that require it.

        Args:
            url: Article URL
            options: Per-call options

        Returns:
            ExtractionResult. Never raises; failures are reported on the result.

        """
        options = options or ExtractOptions()
        started = time.time()

        with logfire.span('extract', url=url):
            try:
                result, html = self._extract(url, options)
            except Exception as e:
                self.logger.exception(f'Unexpected error extracting {url}')
                logfire.error('Extraction crashed', url=url, error=str(e))
                result, html = ExtractionResult(success=False, url=url, error=str(e), reason='unexpected error'), None

            result = self._finish(result, html, started)
            logfire.info(
                'Extraction finished',
                url=url,
                success=result.success,
                strategy=result.strategy,
                confidence=result.confidence,
            )
            return result

    def _extract(self, url: str, options: ExtractOptions) -> tuple[ExtractionResult, str | None]:
        if not is_valid_url(url):
            return ExtractionResult(success=False, url=url, error=str(InvalidUrlError(url)), reason='invalid url'), None

        deadline = Deadline(options.deadline_seconds or self.config.default_deadline)
        attempts: list[StrategyAttempt] = []
        html: str | None = None
        recipe: SiteRecipe | None = None

        if options.custom_selectors is not None:
            try:
                selectors = ArticleSelectors.model_validate(options.custom_selectors)
            except (TitularError, ValidationError) as e:
                return ExtractionResult(success=False, url=url, error=str(e), reason='invalid selectors'), None

            result, html = self._run_selectors(url, selectors, None, deadline, attempts, strategy='custom')
            if result is not None and result.success:
                return result.model_copy(update={'attempted_strategies': attempts}), html
        else:
            try:
                recipe = self._select_recipe(url, options.force_recipe_id)
            except RecipeNotFoundError as e:
                return ExtractionResult(success=False, url=url, error=str(e), reason='recipe not found'), None

            if recipe is not None:
                result, html = self._run_selectors(url, recipe.selectors, recipe, deadline, attempts, strategy='recipe')
                if result is not None and result.success:
                    return result.model_copy(update={'attempted_strategies': attempts}), html

        if html is None:
            html = self._fetch(url, deadline, attempts)

        if html is not None and not deadline.expired:
            smart = self.smart_scraper.scrape(html, url, deadline)
            attempts.extend(smart.attempted_strategies)
            if smart.success:
                update: dict[str, Any] = {'attempted_strategies': attempts}
                if recipe is not None:
                    update['recipe_id'] = recipe.id
                return smart.model_copy(update=update), html

        if recipe is not None and recipe.requires_ocr and options.allow_ocr:
            result = self._run_ocr(url, deadline, attempts)
            if result is not None and result.success:
                return result.model_copy(update={'attempted_strategies': attempts, 'recipe_id': recipe.id}), html

        exhausted = NoContentExtractedError(url, [attempt.name for attempt in attempts])
        self.logger.warning(str(exhausted))
        return (
            ExtractionResult(
                success=False,
                url=url,
                needs_help=True,
                reason='no extraction path produced a valid title and content',
                recipe_id=recipe.id if recipe is not None else None,
                attempted_strategies=attempts,
                error=next((a.error for a in reversed(attempts) if a.error), str(exhausted)),
            ),
            html,
        )

    def _select_recipe(self, url: str, force_recipe_id: str | None) -> SiteRecipe | None:
        if force_recipe_id:
            recipe = self.store.get_by_id(force_recipe_id)
            if recipe is None:
                raise RecipeNotFoundError(f'No recipe with id {force_recipe_id}')
            return recipe

        resolved = self.resolver.resolve(url)
        if resolved.found:
            self.logger.info(f'Using {resolved.source} recipe for {url} (priority {resolved.priority})')
        return resolved.recipe

    def _run_selectors(
        self,
        url: str,
        selectors: ArticleSelectors,
        recipe: SiteRecipe | None,
        deadline: Deadline,
        attempts: list[StrategyAttempt],
        strategy: str,
    ) -> tuple[ExtractionResult | None, str | None]:
        """Run recipe or custom selectors and record the attempt.

        Store recipes get feedback for both outcomes; custom selectors and
        catalog recipes do not.
        """
        record_feedback = recipe is not None and recipe.id is not None and recipe.source == 'database'
        substrate = choose_substrate(recipe)
        cleaning_rules = recipe.cleaning_rules if recipe is not None else ()

        try:
            outcome = self.executor.execute_article(url, selectors, cleaning_rules, substrate, deadline, strategy)
        except Exception as e:
            self.logger.warning(f'{strategy} selectors failed on {url}: {e}')
            attempts.append(StrategyAttempt(name=strategy, error=str(e)))
            if record_feedback:
                self._record_feedback(recipe.id, False, str(e))
            return None, None

        result = outcome.result
        if recipe is not None:
            result = result.model_copy(update={'recipe_id': recipe.id})
        attempts.append(
            StrategyAttempt(name=strategy, confidence=result.confidence, success=result.success, error=result.reason)
        )
        if record_feedback:
            self._record_feedback(recipe.id, result.success, result.reason)
        return result, outcome.html

    def _record_feedback(self, recipe_id: str, success: bool, error: str | None) -> None:
        """Update recipe statistics; a failing store never changes the extraction outcome."""
        try:
            self.feedback.record(recipe_id, success, error)
        except Exception as e:
            self.logger.error(f'Could not record outcome of recipe {recipe_id}: {e}')
            logfire.error('Recipe outcome not recorded', recipe_id=recipe_id, success=success, error=str(e))

    def _fetch(self, url: str, deadline: Deadline, attempts: list[StrategyAttempt]) -> str | None:
        try:
            deadline.check('static fetch')
            fetched = self.fetcher.fetch(url)
        except Exception as e:
            self.logger.warning(f'Static fetch failed for {url}: {e}')
            attempts.append(StrategyAttempt(name='fetch', error=str(e)))
            return None

        if fetched.requires_js:
            rendered = self._render(url, deadline, attempts, fetched.metadata.js_framework)
            if rendered is not None:
                return rendered
        return fetched.html

    def _render(
        self, url: str, deadline: Deadline, attempts: list[StrategyAttempt], framework: str | None
    ) -> str | None:
        """Render a client-side page in the browser; None keeps the static markup."""
        self.logger.info(f'{url} looks client-side rendered ({framework or "no framework"}), rendering in browser')
        try:
            return self.executor.render(url, deadline)
        except Exception as e:
            self.logger.warning(f'Browser render failed for {url}, keeping static markup: {e}')
            attempts.append(StrategyAttempt(name='render', error=str(e)))
            return None

    def _run_ocr(self, url: str, deadline: Deadline, attempts: list[StrategyAttempt]) -> ExtractionResult | None:
        if deadline.expired:
            self.logger.warning(f'Skipping OCR for {url}: deadline exceeded')
            attempts.append(StrategyAttempt(name='ocr', timed_out=True, error='deadline exceeded'))
            return None

        try:
            ocr = self.ocr_pipeline.run(url, deadline)
        except OcrUnavailableError as e:
            logfire.warn('OCR unavailable', url=url, error=str(e))
            attempts.append(StrategyAttempt(name='ocr', error=str(e)))
            return None
        except Exception as e:
            self.logger.warning(f'OCR failed for {url}: {e}')
            attempts.append(
                StrategyAttempt(name='ocr', timed_out=isinstance(e, ExtractionTimeoutError), error=str(e))
            )
            return None

        result = ocr_to_result(ocr)
        attempts.append(
            StrategyAttempt(name='ocr', confidence=result.confidence, success=result.success, error=result.reason)
        )
        return result

    def extract_listing(
        self,
        url: str,
        listing_selectors: ListingSelectors | dict[str, Any],
        article_selectors: ArticleSelectors | dict[str, Any],
        deadline_seconds: float | None = None,
    ) -> ListingResult:
        """Discover the articles on a listing page and extract each one.

        Articles are extracted concurrently, at most ``listing_concurrency``
        at a time. An article whose body repeats an earlier one is skipped.

        Args:
            url: Listing page URL
            listing_selectors: Container, link and optional title selectors
            article_selectors: Selectors applied to every discovered article
            deadline_seconds: Overall budget for the listing page itself

        Returns:
            ListingResult; per-article failures are collected in ``errors`` and
            skipped repeats in ``duplicates``.

        """
        with logfire.span('extract_listing', url=url):
            if not is_valid_url(url):
                return ListingResult(url=url, errors=[ListingError(url=url, error=str(InvalidUrlError(url)))])
            try:
                listing = ListingSelectors.model_validate(listing_selectors)
                article = ArticleSelectors.model_validate(article_selectors)
            except (TitularError, ValidationError) as e:
                return ListingResult(url=url, errors=[ListingError(url=url, error=str(e))])

            deadline = Deadline(deadline_seconds or self.config.default_deadline)
            try:
                items = self.executor.execute_listing(url, listing, 'browser', deadline)
            except Exception as e:
                self.logger.warning(f'Listing discovery failed for {url}: {e}')
                return ListingResult(url=url, errors=[ListingError(url=url, error=str(e))])

            result = ListingResult(url=url, total_found=len(items), items=items)
            outcomes = self._extract_listed_articles(items, article)
            for item, (extracted, error) in zip(items, outcomes):
                if extracted is None:
                    result.errors.append(ListingError(url=item.link, error=error or 'extraction failed'))
                elif any(are_duplicates(extracted.content, kept.content) for kept in result.articles):
                    self.logger.info(f'Skipping {item.link}: same story as an earlier article')
                    result.duplicates.append(item.link)
                else:
                    result.articles.append(extracted)

            result.total_scraped = len(result.articles)
            logfire.info(
                'Listing finished',
                url=url,
                found=result.total_found,
                scraped=result.total_scraped,
                duplicates=len(result.duplicates),
            )
            return result

    def _extract_listed_articles(
        self, items: list[ListingItem], selectors: ArticleSelectors
    ) -> list[tuple[ExtractionResult | None, str | None]]:
        """Extract every listed article on a bounded thread pool.

        Returns:
            One (result, error) pair per item, in item order. Exactly one of
            the two is None.

        """
        if not items:
            return []
        workers = min(self.config.listing_concurrency, len(items))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='listing') as pool:
            futures = [pool.submit(self._extract_listed_article, item.link, selectors) for item in items]
            return [future.result() for future in futures]

    def _extract_listed_article(
        self, link: str, selectors: ArticleSelectors
    ) -> tuple[ExtractionResult | None, str | None]:
        started = time.time()
        try:
            outcome = self.executor.execute_article(link, selectors, strategy='listing')
        except Exception as e:
            self.logger.warning(f'Listed article {link} failed: {e}')
            return None, str(e)
        if not outcome.result.success:
            return None, outcome.result.reason or 'extraction failed'
        return self._finish(outcome.result, outcome.html, started), None


def ocr_to_result(ocr: OcrResult) -> ExtractionResult:
    """Turn OCR output into an extraction result.

    The first headline becomes the title and the cleaned text the content;
    success requires both to validate.
    """
    title = ocr.titles[0] if ocr.titles else None
    content = ocr.text or None
    success = is_valid_title(title) and is_valid_content(content)
    return ExtractionResult(
        success=success,
        url=ocr.url,
        title=title,
        content=content,
        confidence=ocr.confidence,
        strategy='ocr',
        reason=None if success else 'OCR text did not validate',
    )
