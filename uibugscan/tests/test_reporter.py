"""
Tests for report generation and CI exit codes.
"""

import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from uibugscan.models.finding import CrawlResult, PageMetrics, PageResult, Severity
from uibugscan.reporter.report import ReportGenerator, exit_code_for, group_findings
from uibugscan.tests.fakes import make_finding


def sample_page():
    findings = [
        make_finding(code="NAV_SERVER_ERROR", severity="critical", message="Link leads to a 500",
                     page_url="https://example.com/", priority_score=100, suggested_fix="Check server logs."),
        make_finding(code="FORM_MISSING_LABEL", severity="major", message="Field has no label",
                     page_url="https://example.com/", priority_score=65, element_html='<input name="q">'),
    ]
    findings += [
        make_finding(code="TYPO", severity="minor", message=f"Possible typo #{i}",
                     page_url="https://example.com/", priority_score=10)
        for i in range(5)
    ]
    return PageResult(
        url="https://example.com/", score=70, timestamp="2024-05-01T12:00:00.000Z",
        findings=findings, metrics=PageMetrics(load_time_ms=850, dom_size=300),
    )


class TestExitCode(unittest.TestCase):

    def test_pass(self):
        self.assertEqual(exit_code_for([]), 0)
        self.assertEqual(exit_code_for([make_finding(severity="minor"), make_finding(severity="optimization")]), 0)

    def test_warn(self):
        self.assertEqual(exit_code_for([make_finding(severity="major")]), 1)

    def test_fail(self):
        self.assertEqual(exit_code_for([make_finding(severity="major"), make_finding(severity="critical")]), 2)


class TestGrouping(unittest.TestCase):

    def test_sections_by_severity(self):
        sections = group_findings(sample_page().findings)
        self.assertEqual([s.severity for s in sections], [Severity.CRITICAL, Severity.MAJOR, Severity.MINOR])
        self.assertEqual([s.total for s in sections], [1, 1, 5])

    def test_codes_over_threshold_collapse(self):
        minor = group_findings(sample_page().findings)[2]
        self.assertEqual(len(minor.entries), 1)
        self.assertTrue(minor.entries[0].collapsed)
        self.assertEqual(minor.entries[0].count, 5)
        self.assertEqual(minor.entries[0].pages, ["https://example.com/"])

    def test_codes_at_threshold_listed_individually(self):
        findings = [make_finding(code="TYPO", severity="minor", message=f"t{i}") for i in range(3)]
        entries = group_findings(findings)[0].entries
        self.assertEqual(len(entries), 3)
        self.assertFalse(any(e.collapsed for e in entries))


class TestReportGenerator(unittest.TestCase):

    def setUp(self):
        self.reporter = ReportGenerator()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def crawl_result(self):
        page = sample_page()
        return CrawlResult(
            root_url="https://example.com/", pages_scanned=1, total_pages_found=4,
            aggregated_score=70, results=[page], scan_duration_ms=1200,
        )

    def test_markdown_for_page(self):
        md = self.reporter.render_markdown(sample_page())
        self.assertIn("# UI Bug Report", md)
        self.assertIn("> **Score:** 70/100", md)
        self.assertIn("## Critical Issues (1)", md)
        self.assertIn("## Minor Issues (5)", md)
        self.assertIn("(5 occurrences)", md)
        self.assertIn("- **Fix:** Check server logs.", md)
        self.assertIn('- **Element:** `<input name="q">`', md)
        self.assertNotIn("Optimization Suggestions", md)

    def test_markdown_for_crawl(self):
        md = self.reporter.render_markdown(self.crawl_result())
        self.assertIn("> **Pages Scanned:** 1 of 4 discovered", md)
        self.assertIn("| / | 70/100 | 7 |", md)

    def test_json_report(self):
        path = self.reporter.generate_json_report(sample_page(), Path(self.tmp.name) / "out.json")
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        self.assertEqual(data["scan_info"]["type"], "scan")
        self.assertEqual(data["scan_info"]["exit_code"], 2)
        self.assertEqual(data["result"]["score"], 70)
        self.assertEqual(data["result"]["findings"][0]["severity"], "critical")

    def test_generate_reports_writes_both(self):
        base = str(Path(self.tmp.name) / "site-report")
        with redirect_stdout(io.StringIO()) as out:
            files = self.reporter.generate_reports(self.crawl_result(), "both", base)

        self.assertEqual(set(files), {"json", "markdown"})
        self.assertTrue(files["json"].name.endswith("site-report.json"))
        self.assertTrue(files["markdown"].exists())
        self.assertIn("CRAWL RESULTS: https://example.com/", out.getvalue())
        self.assertIn("CI/CD: FAIL", out.getvalue())

    def test_console_report_clean(self):
        page = PageResult(url="https://example.com/", score=100, timestamp="2024-05-01T12:00:00.000Z")
        with redirect_stdout(io.StringIO()) as out:
            self.reporter.generate_console_report(page)
        self.assertIn("No issues found.", out.getvalue())
        self.assertIn("CI/CD: PASS", out.getvalue())


if __name__ == '__main__':
    unittest.main()
