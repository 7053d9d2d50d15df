"""
Report generation for UI scan results.

Supports multiple output formats:
- Console summary with ranked top findings
- Markdown report via Jinja2, grouped by severity then code
- JSON report for machine-readable / CI integration
"""

import json
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader

from uibugscan import __version__
from uibugscan.config import (
    TEMPLATE_DIR, REPORT_DIR, REPORT_COLLAPSE_THRESHOLD, CONSOLE_TOP_FINDINGS,
)
from uibugscan.crawler.urls import relative_path
from uibugscan.models.finding import CrawlResult, Finding, PageResult, Severity
from uibugscan.utils.logger import get_logger

logger = get_logger(__name__)

ScanOutput = Union[PageResult, CrawlResult]

SEVERITY_TITLES = OrderedDict([
    (Severity.CRITICAL, 'Critical Issues'),
    (Severity.MAJOR, 'Major Issues'),
    (Severity.MINOR, 'Minor Issues'),
    (Severity.OPTIMIZATION, 'Optimization Suggestions'),
])

EXIT_PASS = 0
EXIT_WARN = 1
EXIT_FAIL = 2


def exit_code_for(findings: Sequence[Finding]) -> int:
    """CI exit status: 2 if any critical finding, 1 if any major, else 0."""
    severities = {f.severity for f in findings}
    if Severity.CRITICAL in severities:
        return EXIT_FAIL
    if Severity.MAJOR in severities:
        return EXIT_WARN
    return EXIT_PASS


@dataclass
class ReportEntry:
    """One line item in a report section; collapsed entries stand for a whole code."""
    finding: Finding
    count: int = 1
    pages: List[str] = field(default_factory=list)

    @property
    def collapsed(self) -> bool:
        return self.count > 1


@dataclass
class ReportSection:
    severity: Severity
    title: str
    total: int
    entries: List[ReportEntry]


def group_findings(
    findings: Sequence[Finding],
    collapse_threshold: int = REPORT_COLLAPSE_THRESHOLD,
) -> List[ReportSection]:
    """
    Group findings by severity, then by code.

    A code with more than `collapse_threshold` findings in a section is
    reduced to a single entry carrying the affected count and pages. Empty
    severities are omitted.
    """
    sections = []
    for severity, title in SEVERITY_TITLES.items():
        by_code: Dict[str, List[Finding]] = OrderedDict()
        for finding in findings:
            if finding.severity == severity:
                by_code.setdefault(finding.code, []).append(finding)
        if not by_code:
            continue

        entries = []
        for members in by_code.values():
            if len(members) > collapse_threshold:
                pages = []
                for f in members:
                    if f.page_url and f.page_url not in pages:
                        pages.append(f.page_url)
                entries.append(ReportEntry(members[0], len(members), pages))
            else:
                entries.extend(ReportEntry(f, 1, [f.page_url] if f.page_url else []) for f in members)

        total = sum(len(m) for m in by_code.values())
        sections.append(ReportSection(severity, title, total, entries))
    return sections


def _findings_of(result: ScanOutput) -> List[Finding]:
    if isinstance(result, CrawlResult):
        return result.all_findings
    return list(result.findings)


class ReportGenerator:
    """Renders a PageResult or CrawlResult to console, Markdown or JSON."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.jinja_env.filters['path'] = relative_path

    # ------------------------------------------------------------------
    # Console
    # ------------------------------------------------------------------
    def generate_console_report(self, result: ScanOutput):
        findings = _findings_of(result)
        sep = "=" * 72
        is_crawl = isinstance(result, CrawlResult)

        print(f"\n{sep}")
        print(f"  {'CRAWL' if is_crawl else 'SCAN'} RESULTS: {result.root_url if is_crawl else result.url}")
        print(sep)

        if is_crawl:
            print(f"\n  Aggregated Score : {result.aggregated_score}/100")
            print(f"  Pages Scanned    : {result.pages_scanned} of {result.total_pages_found} discovered")
            if result.cancelled:
                print("  Status           : cancelled")
        else:
            print(f"\n  Score     : {result.score}/100")
            print(f"  Load Time : {result.metrics.load_time_ms}ms")
        print(f"  Findings  : {len(findings)}")

        counts = {s: sum(1 for f in findings if f.severity == s) for s in Severity}
        if findings:
            print("\n  By Severity:")
            for severity in Severity:
                if counts[severity]:
                    print(f"    {severity.value:13s}: {counts[severity]}")

        if is_crawl and result.results:
            print("\n  Page Breakdown:")
            for page in result.results:
                status = 'OK  ' if page.score >= 80 else 'WARN' if page.score >= 50 else 'FAIL'
                print(f"    [{status}] {relative_path(page.url)} - {page.score}/100 ({len(page.findings)} findings)")

        if findings:
            ranked = sorted(findings, key=lambda f: -(f.priority_score or 0))
            print(f"\n{'-' * 72}")
            print("  TOP FINDINGS")
            print(f"{'-' * 72}")
            for i, f in enumerate(ranked[:CONSOLE_TOP_FINDINGS], 1):
                print(f"\n  {i}. [{f.severity.value.upper()}] {f.friendly_name or f.code}  (priority {f.priority_score or 0})")
                print(f"     {f.message}")
                print(f"     Location : {f.location_description or 'Unknown location'}")
                print(f"     Fix      : {f.suggested_fix or 'Review and fix manually'}")
            if len(findings) > CONSOLE_TOP_FINDINGS:
                print(f"\n  ... and {len(findings) - CONSOLE_TOP_FINDINGS} more")
        else:
            print("\n  No issues found.")

        verdict = {EXIT_FAIL: 'FAIL (critical issues found)', EXIT_WARN: 'WARN (major issues found)',
                   EXIT_PASS: 'PASS'}[exit_code_for(findings)]
        print(f"\n  CI/CD: {verdict}")
        print(f"\n{sep}")

    # ------------------------------------------------------------------
    # Markdown
    # ------------------------------------------------------------------
    def render_markdown(self, result: ScanOutput) -> str:
        findings = _findings_of(result)
        is_crawl = isinstance(result, CrawlResult)
        context = {
            'is_crawl': is_crawl,
            'result': result,
            'url': result.root_url if is_crawl else result.url,
            'generated': result.timestamp if not is_crawl else
            datetime.now(timezone.utc).isoformat(timespec='seconds'),
            'counts': {s.value: sum(1 for f in findings if f.severity == s) for s in Severity},
            'sections': group_findings(findings),
            'scanner_version': __version__,
        }
        template = self.jinja_env.get_template('report.md.j2')
        return template.render(**context)

    def generate_markdown_report(self, result: ScanOutput, output_file: Optional[Path] = None) -> Path:
        logger.info("Generating Markdown report...")
        content = self.render_markdown(result)

        output_file = self._output_path(output_file, '.md')
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as fh:
            fh.write(content)

        logger.info(f"Markdown report saved to: {output_file}")
        return output_file

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------
    def generate_json_report(self, result: ScanOutput, output_file: Optional[Path] = None) -> Path:
        logger.info("Generating JSON report...")
        report = {
            'scan_info': {
                'type': 'crawl' if isinstance(result, CrawlResult) else 'scan',
                'scan_date': datetime.now(timezone.utc).isoformat(),
                'scanner_version': __version__,
                'exit_code': exit_code_for(_findings_of(result)),
            },
            'result': result.to_dict(),
        }

        output_file = self._output_path(output_file, '.json')
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as fh:
            json.dump(report, fh, indent=2, default=str)

        logger.info(f"JSON report saved to: {output_file}")
        return output_file

    # ------------------------------------------------------------------
    # Multi-format dispatcher
    # ------------------------------------------------------------------
    def generate_reports(
        self,
        result: ScanOutput,
        report_format: str = 'both',
        output: Optional[str] = None,
    ) -> Dict[str, Path]:
        """
        Print the console summary and write the requested report files.

        Args:
            result: Page or crawl result
            report_format: 'json', 'markdown' or 'both'
            output: Base file name; the extension is added per format

        Returns:
            Mapping of format name to written file
        """
        self.generate_console_report(result)

        base = Path(output) if output else None
        output_files = {}
        if report_format in ('json', 'both'):
            target = base.with_suffix('.json') if base else None
            output_files['json'] = self.generate_json_report(result, target)
        if report_format in ('markdown', 'both'):
            target = base.with_suffix('.md') if base else None
            output_files['markdown'] = self.generate_markdown_report(result, target)
        return output_files

    @staticmethod
    def _output_path(output_file: Optional[Path], suffix: str) -> Path:
        if output_file is not None:
            return Path(output_file)
        ts = datetime.now().strftime('%Y%m%d_%H%M%S')
        return REPORT_DIR / f"bug_report_{ts}{suffix}"
