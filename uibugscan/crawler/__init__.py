"""
URL handling and site discovery.

The crawl loop itself lives in uibugscan.crawler.frontier, which depends on
the scan engine; import it from there.
"""

from uibugscan.crawler.urls import normalize_url, is_same_origin, should_crawl, origin_of
from uibugscan.crawler.sitemap import resolve_sitemap

__all__ = ['normalize_url', 'is_same_origin', 'should_crawl', 'origin_of', 'resolve_sitemap']
