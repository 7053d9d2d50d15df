"""
Tests for the optional finding enrichment hook.
"""

import threading
import unittest
from dataclasses import replace

from uibugscan.engine.enrichment import enrich_findings
from uibugscan.tests.fakes import make_finding


class TestEnrichFindings(unittest.TestCase):

    def setUp(self):
        self.findings = [
            make_finding(page_url="https://example.com/"),
            make_finding(code="TYPO", severity="minor", message="Possible typo"),
        ]

    def test_no_enricher_passes_through(self):
        self.assertEqual(enrich_findings(self.findings, None), self.findings)

    def test_rewrites_text_but_keeps_identity(self):
        def enricher(finding):
            return replace(
                finding,
                message=f"Plain English: {finding.message}",
                code="HIJACKED",
                severity="critical",
            )

        enriched = enrich_findings(self.findings, enricher)
        self.assertEqual(enriched[0].message, "Plain English: Element overflows")
        for original, new in zip(self.findings, enriched):
            self.assertEqual(new.id, original.id)
            self.assertEqual(new.code, original.code)
            self.assertEqual(new.severity, original.severity)
            self.assertEqual(new.page_url, original.page_url)

    def test_exception_keeps_original(self):
        def enricher(finding):
            if finding.code == "TYPO":
                raise ConnectionError("model offline")
            return replace(finding, details="enriched")

        with self.assertLogs("uibugscan.engine.enrichment", level="WARNING"):
            enriched = enrich_findings(self.findings, enricher)
        self.assertEqual(enriched[0].details, "enriched")
        self.assertIs(enriched[1], self.findings[1])

    def test_malformed_response_keeps_original(self):
        enriched = enrich_findings(self.findings, lambda f: {"message": "not a finding"})
        self.assertEqual(enriched, self.findings)

    def test_timeout_keeps_originals(self):
        release = threading.Event()

        def slow_enricher(finding):
            release.wait(5)
            return replace(finding, message="too late")

        try:
            with self.assertLogs("uibugscan.engine.enrichment", level="WARNING"):
                enriched = enrich_findings(self.findings, slow_enricher, timeout=0.05)
        finally:
            release.set()
        self.assertEqual(enriched, self.findings)

    def test_stuck_enricher_does_not_block_exit(self):
        release = threading.Event()

        def stuck_enricher(finding):
            release.wait(5)
            return finding

        try:
            with self.assertLogs("uibugscan.engine.enrichment", level="WARNING"):
                enrich_findings(self.findings, stuck_enricher, timeout=0.05)
            lingering = [t for t in threading.enumerate() if t.name == "enrich" and t.is_alive()]
            self.assertTrue(lingering)
            self.assertTrue(all(t.daemon for t in lingering))
        finally:
            release.set()


if __name__ == '__main__':
    unittest.main()
