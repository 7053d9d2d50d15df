"""
XML sitemap discovery.

Resolves a site's declared page inventory, following sitemap indexes into
their child sitemaps. Any fetch or parse problem means "no sitemap": the
crawl falls back to link discovery.
"""

from typing import List, Optional

from bs4 import BeautifulSoup

from uibugscan.utils.http import HTTPClient
from uibugscan.utils.logger import get_logger
from uibugscan.config import MAX_NESTED_SITEMAPS, MAX_SITEMAP_DEPTH

logger = get_logger(__name__)

INDEX_MARKER = '<sitemapindex'
MEDIA_MARKERS = ('/image:', '/video:')


def _extract_locations(text: str) -> List[str]:
    """Return the text of every <loc> element in document order."""
    soup = BeautifulSoup(text, features='xml')
    locations = []
    for loc in soup.find_all('loc'):
        value = loc.get_text(strip=True)
        if value:
            locations.append(value)
    return locations


def resolve_sitemap(
    sitemap_url: str,
    http_client: Optional[HTTPClient] = None,
    _depth: int = 0,
) -> List[str]:
    """
    Fetch a sitemap and return the page URLs it lists.

    Sitemap indexes are followed recursively, at most MAX_NESTED_SITEMAPS
    children per index and MAX_SITEMAP_DEPTH levels deep.

    Args:
        sitemap_url: Absolute URL of sitemap.xml or a sitemap index
        http_client: Optional HTTP client (creates and closes one if not provided)

    Returns:
        List of page URLs; empty on any failure
    """
    owns_client = http_client is None
    client = http_client or HTTPClient()
    try:
        return _resolve(sitemap_url, client, _depth)
    finally:
        if owns_client:
            client.close()


def _resolve(sitemap_url: str, client: HTTPClient, depth: int) -> List[str]:
    response = client.get(sitemap_url)
    if response is None or response.status_code != 200:
        status = getattr(response, 'status_code', 'no response')
        logger.info(f"[Sitemap] Could not fetch {sitemap_url}: {status}")
        return []

    text = response.text or ''
    try:
        locations = _extract_locations(text)
    except Exception as e:
        logger.warning(f"[Sitemap] Failed to parse {sitemap_url}: {e}")
        return []

    urls: List[str] = []
    if INDEX_MARKER in text:
        if depth >= MAX_SITEMAP_DEPTH:
            logger.warning(f"[Sitemap] Nesting too deep at {sitemap_url}, not following")
            return []
        for nested_url in locations[:MAX_NESTED_SITEMAPS]:
            urls.extend(_resolve(nested_url, client, depth + 1))
        if len(locations) > MAX_NESTED_SITEMAPS:
            logger.debug(
                f"[Sitemap] Followed {MAX_NESTED_SITEMAPS} of {len(locations)} "
                f"nested sitemaps in {sitemap_url}"
            )
    else:
        urls = [u for u in locations if not any(m in u for m in MEDIA_MARKERS)]

    logger.info(f"[Sitemap] Found {len(urls)} URLs in {sitemap_url}")
    return urls
