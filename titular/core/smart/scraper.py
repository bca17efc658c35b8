"""Smart scraper: runs generic strategies in order until one validates."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import logfire

from titular.core.extraction.titles import best_title
from titular.core.smart.strategies import ExtractionStrategy, default_strategies
from titular.models.results import ExtractionResult, StrategyAttempt
from titular.utils.resilience import Deadline
from titular.validation.content import is_valid_content, is_valid_title
from titular.validation.paywall import detect_paywall

DEFAULT_STRATEGY_TIMEOUT = 5.0


class SmartScraper:
    """Extracts an article from arbitrary markup without a recipe.

    Strategies run one after the other, highest confidence first. Each one
    runs in a worker thread with a hard timeout; a strategy that overruns is
    abandoned, recorded as timed out and not retried.

    Attributes:
        strategies: Strategies in the order they are tried
        strategy_timeout: Per-strategy timeout in seconds
        detect_paywalls: Annotate successful results with the paywall verdict

    """

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy] | None = None,
        strategy_timeout: float = DEFAULT_STRATEGY_TIMEOUT,
        detect_paywalls: bool = True,
    ):
        """Initialize the scraper.

        Args:
            strategies: Strategies to try. Defaults to the four generic strategies
            strategy_timeout: Per-strategy timeout in seconds. Defaults to 5.0
            detect_paywalls: Annotate results with the paywall verdict. Defaults to True

        """
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.strategy_timeout = strategy_timeout
        self.detect_paywalls = detect_paywalls
        self.logger = logging.getLogger(__name__)

    def _run_with_timeout(self, strategy: ExtractionStrategy, html: str, url: str, timeout: float):
        """Run one strategy in a worker thread, giving up after ``timeout`` seconds.

        Raises:
            concurrent.futures.TimeoutError: If the strategy overran
            Exception: Whatever the strategy raised

        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f'strategy-{strategy.name}')
        try:
            future = executor.submit(strategy.run, html, url)
            return future.result(timeout=timeout)
        finally:
            # Never join: an overrunning strategy is left to finish on its own
            executor.shutdown(wait=False)

    def _complete_title(self, result: ExtractionResult, html: str) -> ExtractionResult:
        if is_valid_title(result.title):
            return result
        candidate = best_title(html)
        if candidate is None or not is_valid_title(candidate.title):
            return result
        self.logger.debug(f'Using {candidate.source} title for {result.strategy}')
        return result.model_copy(update={'title': candidate.title})

    def scrape(self, html: str, url: str, deadline: Deadline | None = None) -> ExtractionResult:
        """Extract an article from ``html``.

        Args:
            html: Page markup
            url: Page URL, used to resolve images
            deadline: Overall deadline; each strategy gets the smaller of its
                own timeout and the time remaining

        Returns:
            The first validated result, annotated with the paywall verdict.
            When every strategy fails, ``success`` is False, ``needs_help``
            is True and ``attempted_strategies`` lists every try.

        """
        attempts: list[StrategyAttempt] = []

        with logfire.span('smart_scrape', url=url):
            for strategy in self.strategies:
                timeout = deadline.budget(self.strategy_timeout) if deadline else self.strategy_timeout
                if timeout <= 0:
                    attempts.append(StrategyAttempt(name=strategy.name, timed_out=True, error='deadline exceeded'))
                    continue

                try:
                    result = self._run_with_timeout(strategy, html, url, timeout)
                except FutureTimeoutError:
                    self.logger.warning(f'Strategy {strategy.name} timed out after {timeout:.2f}s on {url}')
                    attempts.append(
                        StrategyAttempt(name=strategy.name, timed_out=True, error=f'timed out after {timeout:.2f}s')
                    )
                    continue
                except Exception as e:
                    self.logger.warning(f'Strategy {strategy.name} failed on {url}: {e}')
                    attempts.append(StrategyAttempt(name=strategy.name, error=str(e)))
                    continue

                if result is None:
                    attempts.append(StrategyAttempt(name=strategy.name, error='nothing found'))
                    continue

                result = self._complete_title(result, html)
                if not (is_valid_title(result.title) and is_valid_content(result.content)):
                    self.logger.debug(f'Strategy {strategy.name} produced no valid result on {url}')
                    attempts.append(
                        StrategyAttempt(name=strategy.name, confidence=result.confidence, error='validation failed')
                    )
                    continue

                attempts.append(StrategyAttempt(name=strategy.name, confidence=result.confidence, success=True))
                self.logger.info(f'Strategy {strategy.name} succeeded on {url} (confidence {result.confidence})')
                result = result.model_copy(update={'success': True, 'attempted_strategies': attempts})
                if self.detect_paywalls:
                    result = result.with_paywall(detect_paywall(html, result.content, url))
                return result

        self.logger.warning(f'All strategies failed for {url}')
        return ExtractionResult(
            success=False,
            url=url,
            needs_help=True,
            reason='no strategy extracted a valid title and content',
            attempted_strategies=attempts,
        )
