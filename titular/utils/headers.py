"""Realistic browser headers for outbound requests."""

import random


class UserAgentRotator:
    """Pool of current desktop browser user agents.

    Attributes:
        USER_AGENTS: User agent strings to rotate through

    """

    USER_AGENTS = [
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36',
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0',
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:125.0) Gecko/20100101 Firefox/125.0',
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15',
        'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
    ]

    @classmethod
    def get_random(cls) -> str:
        """Get a random user agent."""
        return random.choice(cls.USER_AGENTS)

    @classmethod
    def get_chrome(cls) -> str:
        """Get a Chrome user agent, used for headless browser contexts."""
        return random.choice([ua for ua in cls.USER_AGENTS if 'Chrome' in ua])


class HeaderGenerator:
    """Builds request headers that look like a Spanish-locale browser."""

    LANGUAGES = [
        'es-ES,es;q=0.9,en;q=0.8',
        'es-CL,es;q=0.9,en;q=0.8',
        'es-419,es;q=0.9,en;q=0.7',
    ]

    @classmethod
    def generate_headers(cls, user_agent: str | None = None, referer: str | None = None) -> dict[str, str]:
        """Generate browser headers with light randomization.

        Args:
            user_agent: User agent to send, random when None
            referer: Referer header value, omitted when None

        Returns:
            Header mapping for requests

        """
        if user_agent is None:
            user_agent = UserAgentRotator.get_random()

        headers = {
            'User-Agent': user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
            'Accept-Language': random.choice(cls.LANGUAGES),
            'Accept-Encoding': 'gzip, deflate',
            'DNT': '1',
            'Connection': 'keep-alive',
            'Upgrade-Insecure-Requests': '1',
        }

        if 'Chrome' in user_agent:
            headers.update(
                {
                    'Sec-Fetch-Dest': 'document',
                    'Sec-Fetch-Mode': 'navigate',
                    'Sec-Fetch-Site': 'none' if referer is None else 'same-origin',
                    'Sec-Fetch-User': '?1',
                }
            )

        if referer:
            headers['Referer'] = referer

        return headers
