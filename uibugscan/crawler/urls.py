"""
URL canonicalization and crawl-scope rules.

Canonical URLs are the deduplication key for crawl scheduling: two links that
differ only in host case, default port, fragment, query order or a trailing
slash map to the same page.
"""

from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit, parse_qsl, urlencode, quote

from uibugscan.config import SKIP_EXTENSIONS, SKIP_PATH_PREFIXES
from uibugscan.models.finding import CrawlOptions

DEFAULT_PORTS = {'http': 80, 'https': 443}
PATH_SAFE_CHARS = "/%:@!$&'()*+,;=~"


def normalize_url(url: str, base_origin: Optional[str] = None) -> Optional[str]:
    """
    Convert a URL to its canonical form.

    Args:
        url: Absolute URL, or a relative one when base_origin is given
        base_origin: Origin (or any absolute URL) used to resolve relative input

    Returns:
        Canonical absolute URL, or None if the input cannot be parsed
    """
    if not isinstance(url, str) or not url.strip():
        return None

    try:
        absolute = urljoin(base_origin, url.strip()) if base_origin else url.strip()
        parts = urlsplit(absolute)
        scheme = parts.scheme.lower()
        if scheme not in DEFAULT_PORTS or not parts.hostname:
            return None

        host = parts.hostname.lower()
        port = parts.port
    except ValueError:
        return None

    if ':' in host:
        host = f"[{host}]"
    netloc = host
    if port is not None and port != DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    # Spaces and non-ASCII are percent-encoded; existing escapes are kept
    path = quote(parts.path, safe=PATH_SAFE_CHARS) or '/'
    if path != '/' and path.endswith('/'):
        path = path.rstrip('/') or '/'

    query = ''
    if parts.query:
        params = sorted(parse_qsl(parts.query, keep_blank_values=True))
        query = urlencode(params)

    return urlunsplit((scheme, netloc, path, query, ''))


def origin_of(url: str) -> Optional[str]:
    """Return scheme://host[:port] for an absolute URL, or None."""
    normalized = normalize_url(url)
    if not normalized:
        return None
    parts = urlsplit(normalized)
    return f"{parts.scheme}://{parts.netloc}"


def is_same_origin(url: str, base_origin: str) -> bool:
    """Strict origin (scheme + host + port) equality."""
    target = normalize_url(url, base_origin)
    if not target:
        return False
    return origin_of(target) == origin_of(base_origin)


def should_crawl(url: str, base_origin: str, options: Optional[CrawlOptions] = None) -> bool:
    """
    Decide whether a discovered URL is a page worth scanning.

    Args:
        url: Candidate URL (absolute or relative to base_origin)
        base_origin: Origin of the crawl
        options: Crawl options carrying allow/exclude path patterns

    Returns:
        True if the URL is same-origin, looks like a page, and passes the
        configured path patterns
    """
    if not is_same_origin(url, base_origin):
        return False

    target = normalize_url(url, base_origin)
    pathname = urlsplit(target).path.lower()

    if pathname.endswith(SKIP_EXTENSIONS):
        return False

    # Match "/static/" style prefixes as path segments anywhere in the path
    segment_path = pathname if pathname.endswith('/') else f"{pathname}/"
    if any(prefix in segment_path for prefix in SKIP_PATH_PREFIXES):
        return False

    if options is not None:
        if any(p.search(pathname) for p in options.excluded_path_patterns):
            return False
        if options.allowed_path_patterns:
            if not any(p.search(pathname) for p in options.allowed_path_patterns):
                return False

    return True


def display_domain(url: str) -> str:
    """Host without a leading www., for display."""
    host = urlsplit(url).hostname
    if not host:
        return url
    return host[4:] if host.startswith('www.') else host


def relative_path(url: str) -> str:
    """Path plus query string, for display."""
    parts = urlsplit(url)
    if not parts.scheme:
        return url
    path = parts.path or '/'
    return f"{path}?{parts.query}" if parts.query else path
