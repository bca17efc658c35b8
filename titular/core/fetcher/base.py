"""Abstract base class for HTML fetchers and content analyzer."""

import re
from abc import ABC, abstractmethod

from titular.models.results import ContentMetadata, FetchResult


class ContentAnalyzer:
    """Analyzes fetched content to detect client-side rendered pages."""

    FRAMEWORKS = {
        'react': ['id="root"', 'data-reactroot', 'react-root', '__react'],
        'vue': ['id="app"', 'v-if=', 'v-for=', '__vue'],
        'angular': ['ng-app', 'ng-controller', 'ng-version'],
        'next': ['__next', '_next/static'],
        'nuxt': ['__nuxt', '_nuxt/'],
        'svelte': ['__svelte', 'svelte-'],
    }

    @staticmethod
    def analyze(html: str) -> ContentMetadata:
        """Analyze HTML content and return metadata.

        Args:
            html: The HTML of the URL

        Returns:
            The metadata of the HTML from the URL

        """
        html_lower = html.lower()
        framework = ContentAnalyzer._detect_framework(html_lower)
        minimal = ContentAnalyzer._has_minimal_body(html_lower)
        noscript_warning = '<noscript>' in html_lower and (
            'enable javascript' in html_lower
            or 'requires javascript' in html_lower
            or 'habilita javascript' in html_lower
        )

        return ContentMetadata(
            requires_js=(framework is not None and minimal) or noscript_warning,
            js_framework=framework,
            content_length=len(html),
        )

    @staticmethod
    def _detect_framework(html_lower: str) -> str | None:
        for framework, indicators in ContentAnalyzer.FRAMEWORKS.items():
            if any(indicator in html_lower for indicator in indicators):
                return framework
        return None

    @staticmethod
    def _has_minimal_body(html_lower: str) -> bool:
        """True when the body has under 100 characters once scripts and styles are removed."""
        body_match = re.search(r'<body[^>]*>(.*?)</body>', html_lower, re.DOTALL)
        if not body_match:
            return False
        body = re.sub(r'<script[^>]*>.*?</script>', '', body_match.group(1), flags=re.DOTALL)
        body = re.sub(r'<style[^>]*>.*?</style>', '', body, flags=re.DOTALL)
        return len(body.strip()) < 100


class HTMLFetcher(ABC):
    """Abstract base class for HTML fetchers.

    Implement this interface to plug a custom transport into the engine.
    """

    @abstractmethod
    def fetch(self, url: str) -> FetchResult:
        """Fetch HTML from a URL.

        Args:
            url: URL to fetch

        Returns:
            FetchResult with HTML, metadata, and status

        Raises:
            NetworkError: If the page could not be fetched
            BotDetectionError: If bot detection is triggered

        """
        pass

    def close(self) -> None:
        """Release transport resources."""
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def _check_for_bot_detection(self, html: str, status_code: int) -> tuple[bool, list[str]]:
        """Check if a successful response is really a block page.

        Args:
            html: The HTML of the URL
            status_code: The status code of the URL returned

        Returns:
            Tuple of (is_blocked, indicators). Returns (False, []) if no
            blocking detected.

        """
        if not html or len(html) < 100:
            return True, ['HTML too short']

        if status_code != 200:
            return False, []

        # Block messages appear near the top
        html_check = html[:2000].lower()
        strict_indicators = {
            'challenge-form': 'Cloudflare challenge',
            'cf-captcha': 'Cloudflare CAPTCHA',
            'access denied</title>': 'Access denied page',
            'rate limit exceeded': 'Rate limit',
            'please verify you are human': 'Human verification',
            'enable javascript to continue': 'JavaScript block',
            'verifica que eres humano': 'Human verification',
        }
        found = [message for indicator, message in strict_indicators.items() if indicator in html_check]
        return bool(found), found

    @staticmethod
    def _describe_block(html: str) -> list[str]:
        """Block indicators found in an error response body."""
        html_check = (html or '')[:2000].lower()
        block_indicators = {
            'captcha': 'CAPTCHA required',
            'access denied': 'Access denied',
            'cloudflare': 'Cloudflare protection',
            'too many requests': 'Too many requests',
            'forbidden': 'Forbidden',
        }
        return [message for indicator, message in block_indicators.items() if indicator in html_check]
