"""
Tests for sitemap discovery.
"""

import unittest
import warnings
from unittest import mock

from bs4 import XMLParsedAsHTMLWarning

from uibugscan.config import MAX_NESTED_SITEMAPS
from uibugscan.crawler.sitemap import resolve_sitemap

ROOT = "https://example.com/sitemap.xml"


def urlset(*urls):
    entries = "".join(f"<url><loc>{u}</loc></url>" for u in urls)
    return f'<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def sitemap_index(*urls):
    entries = "".join(f"<sitemap><loc>{u}</loc></sitemap>" for u in urls)
    return f'<?xml version="1.0"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


class FakeHTTPClient:
    """Serves canned documents and records every fetched URL."""

    def __init__(self, documents):
        self.documents = documents
        self.fetched = []

    def get(self, url):
        self.fetched.append(url)
        if url not in self.documents:
            return mock.Mock(status_code=404, text="")
        return mock.Mock(status_code=200, text=self.documents[url])


class TestResolveSitemap(unittest.TestCase):

    def test_plain_urlset(self):
        client = FakeHTTPClient({ROOT: urlset("https://example.com/", "https://example.com/about")})
        self.assertEqual(resolve_sitemap(ROOT, client), ["https://example.com/", "https://example.com/about"])

    def test_media_entries_skipped(self):
        client = FakeHTTPClient({ROOT: urlset("https://example.com/a", "https://example.com/image:hero.png")})
        self.assertEqual(resolve_sitemap(ROOT, client), ["https://example.com/a"])

    def test_index_followed(self):
        children = [f"https://example.com/sitemap-{i}.xml" for i in range(3)]
        documents = {ROOT: sitemap_index(*children)}
        for i, child in enumerate(children):
            documents[child] = urlset(*(f"https://example.com/s{i}/p{j}" for j in range(10)))

        urls = resolve_sitemap(ROOT, FakeHTTPClient(documents))
        self.assertEqual(len(urls), 30)
        self.assertEqual(urls[0], "https://example.com/s0/p0")

    def test_index_fan_out_bounded(self):
        children = [f"https://example.com/sitemap-{i}.xml" for i in range(12)]
        documents = {ROOT: sitemap_index(*children)}
        documents.update({child: urlset(f"{child}/page") for child in children})
        client = FakeHTTPClient(documents)

        urls = resolve_sitemap(ROOT, client)
        self.assertEqual(len(urls), MAX_NESTED_SITEMAPS)
        self.assertEqual(len(client.fetched), MAX_NESTED_SITEMAPS + 1)

    def test_self_referencing_index_terminates(self):
        client = FakeHTTPClient({ROOT: sitemap_index(ROOT)})
        self.assertEqual(resolve_sitemap(ROOT, client), [])
        self.assertLess(len(client.fetched), 10)

    def test_missing_sitemap(self):
        self.assertEqual(resolve_sitemap(ROOT, FakeHTTPClient({})), [])

    def test_unreachable_sitemap(self):
        client = mock.Mock()
        client.get.return_value = None
        self.assertEqual(resolve_sitemap(ROOT, client), [])

    def test_parsed_as_xml(self):
        client = FakeHTTPClient({ROOT: urlset("https://example.com/a")})
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            self.assertEqual(resolve_sitemap(ROOT, client), ["https://example.com/a"])
        self.assertEqual([w for w in caught if issubclass(w.category, XMLParsedAsHTMLWarning)], [])

    def test_garbage_body(self):
        client = FakeHTTPClient({ROOT: "<html><body>Not a sitemap</body></html>"})
        self.assertEqual(resolve_sitemap(ROOT, client), [])

    def test_owned_client_closed(self):
        with mock.patch("uibugscan.crawler.sitemap.HTTPClient") as client_cls:
            client_cls.return_value.get.return_value = None
            resolve_sitemap(ROOT)
        client_cls.return_value.close.assert_called_once()


if __name__ == '__main__':
    unittest.main()
