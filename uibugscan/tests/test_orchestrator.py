"""
Tests for the single-page scan orchestrator.
"""

import base64
import unittest
from unittest import mock

from uibugscan.checks.accessibility import AccessibilityCheck
from uibugscan.config import MAX_CONSOLE_ERRORS, MAX_SCREENSHOT_BYTES
from uibugscan.crawler.urls import normalize_url
from uibugscan.engine.orchestrator import (
    PageScanner, DOM_SIZE_SCRIPT, extract_links, group_accessibility_findings, tag_finding,
)
from uibugscan.exceptions import InvalidURLError, NavigationError
from uibugscan.models.finding import DetectorConfig, Finding, Severity, Viewport
from uibugscan.tests.fakes import FakeDriver, FakePage, StubCheck, make_finding

URL = "https://shop.example.com/products"
TWO_VIEWPORTS = [Viewport(1440, 900, "Desktop"), Viewport(390, 844, "Mobile", True)]


class ScannerTestCase(unittest.TestCase):
    """Builds a PageScanner wired to fake driver and stub checks."""

    def setUp(self):
        self.drivers = []
        self.page_kwargs = {}
        self.checks = []

    def _driver_factory(self):
        driver = FakeDriver(lambda vp: FakePage(URL, **self.page_kwargs))
        self.drivers.append(driver)
        return driver

    def scanner(self, enricher=None):
        return PageScanner(
            driver_factory=self._driver_factory,
            checks_factory=lambda config, client: self.checks,
            enricher=enricher,
        )

    def config(self, **kwargs):
        kwargs.setdefault("viewports", TWO_VIEWPORTS)
        return DetectorConfig(**kwargs)


class TestScanBasics(ScannerTestCase):

    def test_invalid_url_raises_before_driver_launch(self):
        factory = mock.Mock()
        scanner = PageScanner(driver_factory=factory, checks_factory=lambda c, h: [])
        for bad in ["ftp://example.com", "not a url", ""]:
            with self.assertRaises(InvalidURLError):
                scanner.scan(bad)
        factory.assert_not_called()

    def test_clean_page_scores_100(self):
        result = self.scanner().scan(URL, self.config())
        self.assertEqual(result.score, 100)
        self.assertEqual(result.findings, [])
        self.assertEqual(result.url, URL)
        self.assertTrue(result.timestamp.endswith("Z"))

    def test_one_context_per_viewport_all_released(self):
        self.scanner().scan(URL, self.config())
        driver = self.drivers[0]
        self.assertEqual(driver.opened, ["Desktop", "Mobile"])
        self.assertEqual(driver.released, ["Desktop", "Mobile"])
        self.assertTrue(driver.closed)

    def test_default_config_uses_three_viewports(self):
        self.scanner().scan(URL)
        self.assertEqual(self.drivers[0].opened, ["Desktop", "Tablet", "Mobile"])


class TestFindingTagging(ScannerTestCase):

    def test_findings_carry_viewport_and_page(self):
        self.checks = [StubCheck(lambda label: [
            make_finding(message=f"Overflow at {label}", selector=f".{label.lower()}"),
        ])]
        result = self.scanner().scan(URL, self.config())

        messages = sorted(f.message for f in result.findings)
        self.assertEqual(messages, ["[Desktop] Overflow at Desktop", "[Mobile] Overflow at Mobile"])
        for finding in result.findings:
            self.assertEqual(finding.page_url, URL)
            self.assertTrue(finding.location_description.startswith("Viewport: "))
            self.assertEqual(finding.friendly_name, "Horizontal Scroll")

    def test_existing_location_gets_label_suffix(self):
        finding = make_finding(location_description="Header")
        tagged = tag_finding(finding, "Tablet", URL)
        self.assertEqual(tagged.location_description, "Header (Tablet)")
        self.assertEqual(tagged.message, "[Tablet] Element overflows")
        self.assertEqual(tagged.id, finding.id)

    def test_same_defect_across_viewports_is_deduplicated(self):
        self.checks = [StubCheck([make_finding(selector="#hero")])]
        result = self.scanner().scan(URL, self.config())
        self.assertEqual(len(result.findings), 1)
        self.assertTrue(result.findings[0].message.startswith("[Desktop]"))

    def test_findings_sorted_by_priority(self):
        self.checks = [StubCheck([
            make_finding(code="TYPO", severity="minor", message="typo"),
            make_finding(code="NAV_SERVER_ERROR", severity="critical", message="500"),
        ])]
        result = self.scanner().scan(URL, self.config(viewports=TWO_VIEWPORTS[:1]))
        self.assertEqual([f.code for f in result.findings], ["NAV_SERVER_ERROR", "TYPO"])
        self.assertEqual(result.score, 88 - 2)
        for finding in result.findings:
            self.assertTrue(0 <= finding.priority_score <= 100)


class TestCheckScheduling(ScannerTestCase):

    def test_full_page_checks_run_once(self):
        per_viewport = StubCheck(name="Layout")
        full_page = StubCheck(name="Forms", full_page_only=True)
        self.checks = [per_viewport, full_page]
        self.scanner().scan(URL, self.config())
        self.assertEqual(per_viewport.calls, ["Desktop", "Mobile"])
        self.assertEqual(full_page.calls, ["Desktop"])

    def test_failing_check_is_absorbed(self):
        broken = StubCheck(name="Broken", error=RuntimeError("selector blew up"))
        healthy = StubCheck([make_finding(code="TYPO", severity="minor")], name="Typo")
        self.checks = [broken, healthy]

        with self.assertLogs("uibugscan.engine.orchestrator", level="WARNING"):
            result = self.scanner().scan(URL, self.config(viewports=TWO_VIEWPORTS[:1]))
        self.assertEqual([f.code for f in result.findings], ["TYPO"])

    def test_checks_closed_after_scan(self):
        self.checks = [StubCheck(), StubCheck(full_page_only=True)]
        self.scanner().scan(URL, self.config())
        self.assertTrue(all(c.closed for c in self.checks))

    def test_per_check_limit(self):
        self.checks = [StubCheck([make_finding(selector=f"#el{i}") for i in range(8)])]
        result = self.scanner().scan(URL, self.config(viewports=TWO_VIEWPORTS[:1], max_bugs_per_category=3))
        self.assertEqual(len(result.findings), 3)

    def test_accessibility_findings_grouped_and_limited_to_double(self):
        class StubA11y(AccessibilityCheck):
            def run(self, page, viewport_label):
                region = [make_finding("A11Y_REGION", "minor", "Content outside landmark", selector=f"#r{i}")
                          for i in range(6)]
                alt = [make_finding("A11Y_IMAGE_ALT", "major", f"Image {i} has no alt", selector=f"#img{i}")
                       for i in range(9)]
                return region + alt

        self.checks = [StubA11y()]
        result = self.scanner().scan(URL, self.config(viewports=TWO_VIEWPORTS[:1], max_bugs_per_category=4))

        codes = [f.code for f in result.findings]
        self.assertEqual(len(result.findings), 8)
        self.assertEqual(codes.count("A11Y_REGION"), 1)
        region = next(f for f in result.findings if f.code == "A11Y_REGION")
        self.assertIn("(6 occurrences)", region.message)


class TestNavigationFailure(ScannerTestCase):

    def test_navigation_error_propagates_and_releases_everything(self):
        self.page_kwargs = {"fail_navigation": True}
        self.checks = [StubCheck()]
        with self.assertRaises(NavigationError):
            self.scanner().scan(URL, self.config())

        driver = self.drivers[0]
        self.assertEqual(driver.released, ["Desktop"])
        self.assertTrue(driver.closed)
        self.assertTrue(self.checks[0].closed)


class TestPageCapture(ScannerTestCase):

    def test_console_errors_capped_per_viewport(self):
        errors = [f"TypeError: x{i} is undefined" for i in range(8)]
        self.page_kwargs = {"console_errors": errors}
        result = self.scanner().scan(URL, self.config())

        console = [f for f in result.findings if f.code == "CONSOLE_ERROR"]
        # Both viewports report the same messages, so dedup keeps one set
        self.assertEqual(len(console), MAX_CONSOLE_ERRORS)
        self.assertEqual(result.metrics.console_errors, 16)
        self.assertTrue(all(f.severity == Severity.MAJOR for f in console))

    def test_dom_size_and_screenshot_from_first_viewport(self):
        self.page_kwargs = {"responses": {DOM_SIZE_SCRIPT: 412}, "screenshot_bytes": b"jpegdata"}
        result = self.scanner().scan(URL, self.config())
        self.assertEqual(result.metrics.dom_size, 412)
        expected = "data:image/jpeg;base64," + base64.b64encode(b"jpegdata").decode()
        self.assertEqual(result.screenshot, expected)

    def test_oversized_screenshot_is_dropped(self):
        self.page_kwargs = {"screenshot_bytes": b"x" * MAX_SCREENSHOT_BYTES}
        result = self.scanner().scan(URL, self.config())
        self.assertIsNone(result.screenshot)

    def test_quality_zero_disables_screenshot(self):
        result = self.scanner().scan(URL, self.config(screenshot_quality=0))
        self.assertIsNone(result.screenshot)

    def test_links_attached_to_result(self):
        self.page_kwargs = {"html": """
            <a href="/cart">Cart</a>
            <a href="https://other.example.org/">Elsewhere</a>
            <a href="/products#reviews">Self</a>
        """}
        result = self.scanner().scan(URL, self.config())
        self.assertEqual(result.links, ["https://shop.example.com/cart"])

    def test_enricher_applied(self):
        self.checks = [StubCheck([make_finding()])]

        def enricher(finding):
            from dataclasses import replace
            return replace(finding, suggested_fix="Set max-width: 100% on the element.")

        result = self.scanner(enricher=enricher).scan(URL, self.config(viewports=TWO_VIEWPORTS[:1]))
        self.assertEqual(result.findings[0].suggested_fix, "Set max-width: 100% on the element.")


class TestLinkExtraction(unittest.TestCase):

    def test_anchor_and_onclick_links(self):
        html = """
        <nav>
          <a href="about/">About</a>
          <a href="/pricing?b=2&a=1">Pricing</a>
          <a href="mailto:hi@example.com">Mail</a>
          <a href="javascript:void(0)">Menu</a>
          <a href="#top">Top</a>
          <button onclick="window.location.href='/signup'">Sign up</button>
        </nav>
        """
        links = extract_links(html, "https://example.com/docs/")
        self.assertEqual(links, [
            "https://example.com/docs/about",
            "https://example.com/pricing?a=1&b=2",
            "https://example.com/signup",
        ])

    def test_duplicates_and_self_removed(self):
        html = '<a href="/">Home</a><a href="/a">A</a><a href="/a/">A again</a>'
        self.assertEqual(extract_links(html, "https://example.com/"), ["https://example.com/a"])

    def test_links_are_canonical(self):
        html = '<a href="/about">About</a><a href="/about /">About (typo)</a><a href="/about #team">Team</a>'
        links = extract_links(html, "https://example.com/")
        self.assertEqual(links, ["https://example.com/about", "https://example.com/about%20"])
        for link in links:
            self.assertEqual(normalize_url(link), link)


class TestAccessibilityGrouping(unittest.TestCase):

    def test_summaries_first(self):
        findings = [
            make_finding("A11Y_IMAGE_ALT", "major", "alt"),
            make_finding("A11Y_LANDMARK_ONE_MAIN", "minor", "no main"),
            make_finding("A11Y_REGION", "minor", "region", details="Wrap in <main>."),
            make_finding("A11Y_REGION", "minor", "region"),
        ]
        grouped = group_accessibility_findings(findings)
        self.assertEqual([f.code for f in grouped], ["A11Y_LANDMARK_ONE_MAIN", "A11Y_REGION", "A11Y_IMAGE_ALT"])
        self.assertEqual(grouped[1].details, "2 elements violate this rule. Wrap in <main>.")
        self.assertIsInstance(grouped[0], Finding)


if __name__ == '__main__':
    unittest.main()
