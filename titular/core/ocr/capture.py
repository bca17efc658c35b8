"""Full-page screenshot capture for image-rendered pages."""

import logging
from collections.abc import Callable

import logfire

from titular.core.browser.session import BrowserSession
from titular.utils.resilience import Deadline

SCREENSHOT_POSITIONS = (0.0, 0.2, 0.4, 0.6, 0.8, 1.0)


def _hi_dpi_session() -> BrowserSession:
    return BrowserSession(viewport={'width': 2560, 'height': 1440}, device_scale_factor=2)


class ScreenshotCapturer:
    """Scrolls a page until it stops growing, then screenshots it in slices.

    Attributes:
        positions: Scroll offsets, as fractions of the page height, to capture
        max_scrolls: Upper bound on scroll-to-bottom cycles
        stable_cycles: Consecutive cycles without growth that end scrolling
        scroll_wait_ms: Wait after each scroll for lazy content

    """

    def __init__(
        self,
        session_factory: Callable[[], BrowserSession] | None = None,
        positions: tuple[float, ...] = SCREENSHOT_POSITIONS,
        max_scrolls: int = 25,
        stable_cycles: int = 4,
        scroll_wait_ms: int = 3000,
    ):
        """Initialize the capturer.

        Args:
            session_factory: Creates an unopened browser session. Defaults to a
                2560x1440 viewport at device scale factor 2
            positions: Scroll offsets to capture
            max_scrolls: Maximum scroll cycles
            stable_cycles: Cycles without growth that end scrolling
            scroll_wait_ms: Wait after each scroll in milliseconds

        """
        self.session_factory = session_factory or _hi_dpi_session
        self.positions = positions
        self.max_scrolls = max_scrolls
        self.stable_cycles = stable_cycles
        self.scroll_wait_ms = scroll_wait_ms
        self.logger = logging.getLogger(__name__)

    def capture(self, url: str, deadline: Deadline | None = None) -> list[bytes]:
        """Screenshot ``url`` at every configured position.

        Args:
            url: Page to capture
            deadline: Overall deadline. It caps the navigation timeout, ends
                scrolling early and is checked between screenshots

        Returns:
            PNG images, top of the page first.

        Raises:
            NetworkError: If navigation failed
            ExtractionTimeoutError: If navigation or the deadline ran out

        """
        screenshots: list[bytes] = []
        with logfire.span('ocr_capture', url=url), self.session_factory() as session:
            timeout = session.navigation_timeout
            if deadline is not None:
                deadline.check('ocr capture')
                timeout = int(deadline.budget(timeout / 1000) * 1000) or 1
            session.goto(url, timeout=timeout)
            height = session.scroll_to_load(
                self.max_scrolls, self.stable_cycles, self.scroll_wait_ms, deadline=deadline
            )
            self.logger.debug(f'{url} settled at {height}px')

            for position in self.positions:
                if deadline is not None:
                    deadline.check('ocr capture')
                screenshots.append(session.screenshot_at(position))

        self.logger.info(f'Captured {len(screenshots)} screenshots of {url}')
        return screenshots
