"""URL and domain helpers."""

import re
from urllib.parse import urljoin, urlparse


def normalize_domain(url_or_domain: str) -> str:
    """Reduce a URL or bare domain to its lookup key.

    Lower-cases, strips scheme, ``www.``, port and path. Idempotent:
    normalizing an already-normalized domain returns it unchanged.

    Args:
        url_or_domain: A full URL ('https://www.site.cl/a') or a domain ('site.cl')

    Returns:
        The normalized domain, e.g. 'site.cl'. Empty string for empty input.

    """
    if not url_or_domain:
        return ''

    value = url_or_domain.strip().lower()
    if '://' in value:
        host = urlparse(value).hostname or ''
    else:
        host = re.sub(r'^[a-z][a-z0-9+.-]*:/*', '', value) if value.startswith(('http:', 'https:')) else value
        host = host.split('/', 1)[0].split('?', 1)[0].split('#', 1)[0]
        if '@' in host:
            host = host.rsplit('@', 1)[1]
        host = host.split(':', 1)[0]

    host = host.strip('.')
    while host.startswith('www.'):
        host = host[4:]
    return host


def is_valid_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def base_url(url: str) -> str:
    """Return 'scheme://host[:port]' for ``url``."""
    parsed = urlparse(url)
    return f'{parsed.scheme}://{parsed.netloc}'


def normalize_link(href: str, page_url: str) -> str:
    """Resolve a listing link against the page it was found on.

    Fragment and query string are dropped before joining.

    Args:
        href: Raw href as found in markup
        page_url: URL of the page containing the link

    Returns:
        Absolute URL, or empty string if href is empty.

    """
    if not href:
        return ''
    href = href.strip().split('#', 1)[0].split('?', 1)[0]
    if not href:
        return ''
    return urljoin(base_url(page_url) + '/', href)


def alternate_url(url: str) -> str:
    """Toggle the trailing slash of the URL path.

    Some sites only answer on one of the two forms.
    """
    parsed = urlparse(url)
    path = parsed.path or '/'
    if path.endswith('/') and path != '/':
        path = path.rstrip('/')
    elif not path.endswith('/'):
        path = path + '/'
    else:
        return url
    return parsed._replace(path=path).geturl()
