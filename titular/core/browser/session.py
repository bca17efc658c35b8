"""Headless browser sessions built on Playwright."""

import logging
from typing import Any

import logfire
from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from titular.utils.exceptions import ExtractionTimeoutError, NetworkError
from titular.utils.headers import UserAgentRotator
from titular.utils.resilience import Deadline


class BrowserSession:
    """A single browser, context and page, always closed on exit.

    Use as a context manager::

        with BrowserSession() as session:
            session.goto(url)
            html = session.content()

    Attributes:
        LAUNCH_ARGS: Chromium flags used for every launch
        headless: Run the browser without a window
        navigation_timeout: Page navigation timeout in milliseconds
        selector_timeout: wait_for_selector timeout in milliseconds
        viewport: Viewport size
        device_scale_factor: Device pixel ratio of the context
        page: The open page, None outside the session

    """

    LAUNCH_ARGS = [
        '--no-sandbox',
        '--disable-setuid-sandbox',
        '--disable-dev-shm-usage',
        '--disable-accelerated-2d-canvas',
        '--disable-gpu',
    ]

    def __init__(
        self,
        headless: bool = True,
        navigation_timeout: int = 30000,
        selector_timeout: int = 10000,
        viewport: dict[str, int] | None = None,
        device_scale_factor: float = 1,
        user_agent: str | None = None,
        locale: str = 'es-ES',
    ):
        """Configure the session; nothing is launched until open().

        Args:
            headless: Run browser in headless mode
            navigation_timeout: Navigation timeout in milliseconds
            selector_timeout: Selector wait timeout in milliseconds
            viewport: Viewport size, defaults to 1920x1080
            device_scale_factor: Device pixel ratio
            user_agent: User agent string, defaults to a current Chrome
            locale: Browser locale

        """
        self.headless = headless
        self.navigation_timeout = navigation_timeout
        self.selector_timeout = selector_timeout
        self.viewport = viewport or {'width': 1920, 'height': 1080}
        self.device_scale_factor = device_scale_factor
        self.user_agent = user_agent or UserAgentRotator.get_chrome()
        self.locale = locale

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self.page: Page | None = None
        self.logger = logging.getLogger(__name__)

    def open(self) -> 'BrowserSession':
        """Launch the browser and open a page."""
        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(headless=self.headless, args=self.LAUNCH_ARGS)
            self._context = self._browser.new_context(
                user_agent=self.user_agent,
                viewport=self.viewport,
                device_scale_factor=self.device_scale_factor,
                locale=self.locale,
            )
            self.page = self._context.new_page()
            self.page.set_default_timeout(self.selector_timeout)
        except Exception:
            self.close()
            raise
        self.logger.debug('Browser session opened')
        return self

    def close(self) -> None:
        """Close page, context, browser and driver; safe to call twice."""
        for name in ('page', '_context', '_browser'):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                resource.close()
            except PlaywrightError as e:
                self.logger.warning(f'Error closing browser {name.strip("_")}: {e}')
            setattr(self, name, None)

        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None

    def __enter__(self) -> 'BrowserSession':
        """Context manager entry."""
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def _require_page(self) -> Page:
        if self.page is None:
            raise RuntimeError('Browser session is not open')
        return self.page

    def goto(self, url: str, wait_until: str = 'networkidle', timeout: int | None = None) -> int | None:
        """Navigate to ``url``.

        Args:
            url: URL to open
            wait_until: Playwright load state to wait for
            timeout: Override of the navigation timeout in milliseconds

        Returns:
            HTTP status of the main response, if any.

        Raises:
            ExtractionTimeoutError: If navigation exceeds the timeout
            NetworkError: If navigation fails or returns an error status

        """
        page = self._require_page()
        timeout = timeout or self.navigation_timeout
        with logfire.span('browser_goto', url=url):
            try:
                response = page.goto(url, wait_until=wait_until, timeout=timeout)
            except PlaywrightTimeoutError as e:
                raise ExtractionTimeoutError('navigation', timeout / 1000) from e
            except PlaywrightError as e:
                raise NetworkError(url, None, str(e)) from e

        status = response.status if response else None
        if status is not None and status >= 400:
            raise NetworkError(url, status, 'browser navigation returned an error status')
        return status

    def wait_for(self, selector: str, timeout: int | None = None) -> bool:
        """Wait for ``selector`` to appear; False when it never does."""
        page = self._require_page()
        try:
            page.wait_for_selector(selector, timeout=timeout or self.selector_timeout)
        except PlaywrightTimeoutError:
            self.logger.debug(f'Selector {selector!r} did not appear')
            return False
        return True

    def content(self) -> str:
        """Current page markup."""
        return self._require_page().content()

    def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run ``script`` in the page with a single JSON-serializable argument."""
        return self._require_page().evaluate(script, arg)

    def scroll_height(self) -> int:
        return int(self.evaluate('() => document.body ? document.body.scrollHeight : 0') or 0)

    def scroll_to_load(
        self,
        max_scrolls: int = 25,
        stable_cycles: int = 4,
        wait_ms: int = 3000,
        deadline: Deadline | None = None,
    ) -> int:
        """Scroll to the bottom repeatedly so lazy content renders.

        Stops after ``max_scrolls`` cycles, after ``stable_cycles``
        consecutive cycles without page growth or once ``deadline`` has
        passed, then returns to the top. Each wait is shortened to the time
        the deadline leaves.

        Returns:
            Final scroll height in pixels.

        """
        page = self._require_page()
        height = self.scroll_height()
        unchanged = 0

        for cycle in range(max_scrolls):
            if deadline is not None and deadline.expired:
                self.logger.debug(f'Deadline reached after {cycle} scrolls')
                break
            self.evaluate('() => window.scrollTo(0, document.body.scrollHeight)')
            page.wait_for_timeout(wait_ms if deadline is None else int(deadline.budget(wait_ms / 1000) * 1000))
            new_height = self.scroll_height()
            if new_height <= height:
                unchanged += 1
                if unchanged >= stable_cycles:
                    self.logger.debug(f'Page height stable after {cycle + 1} scrolls')
                    break
            else:
                unchanged = 0
                height = new_height

        self.evaluate('() => window.scrollTo(0, 0)')
        page.wait_for_timeout(2000)
        return height

    def screenshot_at(self, fraction: float, wait_ms: int = 1500) -> bytes:
        """PNG screenshot of the viewport scrolled to ``fraction`` of the page height."""
        page = self._require_page()
        offset = int(self.scroll_height() * max(0.0, min(fraction, 1.0)))
        self.evaluate('(y) => window.scrollTo(0, y)', offset)
        page.wait_for_timeout(wait_ms)
        return page.screenshot(type='png', full_page=False)
