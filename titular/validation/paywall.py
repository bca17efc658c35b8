"""Heuristic detection of gated or truncated article content."""

import re

from bs4 import BeautifulSoup

from titular.models.results import PaywallResult
from titular.utils.urls import normalize_domain

PAYWALL_INDICATORS = (
    # Spanish
    'suscríbete',
    'suscribete',
    'suscripción',
    'suscripcion',
    'contenido exclusivo',
    'acceso premium',
    'inicia sesión para leer',
    'inicia sesion para leer',
    'regístrate gratis',
    'registrate gratis',
    'hazte socio',
    'para seguir leyendo',
    'continúa leyendo',
    'continua leyendo',
    'lee el artículo completo',
    'acceso restringido',
    'solo para suscriptores',
    'contenido para suscriptores',
    # English
    'subscribe',
    'subscription',
    'premium content',
    'login to read',
    'member only',
    'members only',
    'paywall',
    'exclusive content',
    'members-only',
    'subscriber only',
    'sign up to read',
    'register to continue',
    # Site specific
    'el mercurio premium',
    'la tercera premium',
    'the new york times subscription',
)

PAYWALL_HTML_CLASSES = (
    'paywall',
    'subscription-wall',
    'premium-content',
    'member-only',
    'locked-content',
    'subscriber-only',
    'registration-wall',
    'login-wall',
)

KNOWN_PAYWALL_DOMAINS = (
    'elmercurio.com',
    'latercera.com',
    'nytimes.com',
    'wsj.com',
    'ft.com',
    'economist.com',
)

MIN_UNGATED_LENGTH = 200
KNOWN_DOMAIN_UNGATED_LENGTH = 1000

_CLASS_PATTERNS = [
    re.compile(rf'''(?:class|id)\s*=\s*["'][^"']*\b{re.escape(name)}\b[^"']*["']''', re.IGNORECASE)
    for name in PAYWALL_HTML_CLASSES
]


def _visible_text(html: str) -> str:
    if '<' not in html:
        return html
    return BeautifulSoup(html, 'lxml').get_text(' ')


def detect_paywall(html: str | None = None, content: str | None = None, url: str | None = None) -> PaywallResult:
    """Classify whether content sits behind a paywall.

    Checks run in order and the first match wins: a multilingual keyword
    list over page text and markup (0.9), known paywall class or id names
    in the markup (0.85), content under 1000 characters from a publisher
    known to gate articles (0.75), then any content shorter than 200
    characters (0.5). No match means no paywall with 0.95 confidence.

    Args:
        html: Full page markup
        content: Extracted article text
        url: Article URL, matched against known paywalled publishers

    Returns:
        PaywallResult with the verdict, its confidence and the deciding method.

    """
    html = html or ''
    content = content or ''
    if not html and not content:
        return PaywallResult(has_paywall=False, confidence=0.0, method='no-content')

    haystack = f'{_visible_text(html)}\n{html}\n{content}'.lower()
    if any(indicator in haystack for indicator in PAYWALL_INDICATORS):
        return PaywallResult(has_paywall=True, confidence=0.9, method='keyword')

    if html and any(pattern.search(html) for pattern in _CLASS_PATTERNS):
        return PaywallResult(has_paywall=True, confidence=0.85, method='html-class')

    stripped = content.strip()
    if stripped and url and len(stripped) < KNOWN_DOMAIN_UNGATED_LENGTH and is_known_paywall_domain(url):
        return PaywallResult(has_paywall=True, confidence=0.75, method='domain')

    if stripped and len(stripped) < MIN_UNGATED_LENGTH:
        return PaywallResult(has_paywall=True, confidence=0.5, method='length')

    return PaywallResult(has_paywall=False, confidence=0.95, method='none')


def is_known_paywall_domain(url: str) -> bool:
    """True when the URL belongs to a publisher known to gate articles."""
    domain = normalize_domain(url)
    return any(domain == known or domain.endswith('.' + known) for known in KNOWN_PAYWALL_DOMAINS)
