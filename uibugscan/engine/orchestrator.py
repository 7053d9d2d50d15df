"""
Single-page scan orchestration.

Renders one URL at every configured viewport, runs the enabled check plugins
against each rendering, and turns the merged findings into a PageResult with
a score and per-finding priorities.
"""

import base64
import re
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, List, Optional

from bs4 import BeautifulSoup

from uibugscan.checks import build_checks
from uibugscan.checks.accessibility import AccessibilityCheck
from uibugscan.checks.base import BaseCheck
from uibugscan.config import (
    NAVIGATION_TIMEOUT_MS, NETWORK_IDLE_TIMEOUT_MS, MAX_SCREENSHOT_BYTES,
    MAX_CONSOLE_ERRORS, GROUPED_A11Y_CODES,
)
from uibugscan.crawler.urls import normalize_url, is_same_origin
from uibugscan.engine.enrichment import FindingEnricher, enrich_findings
from uibugscan.engine.scoring import (
    deduplicate, calculate_score, add_priority_scores, sort_by_priority,
    friendly_name,
)
from uibugscan.exceptions import InvalidURLError
from uibugscan.models.finding import (
    DetectorConfig, Finding, PageMetrics, PageResult, Severity, Viewport,
)
from uibugscan.utils.browser import PageSession, PlaywrightDriver, RenderingDriver
from uibugscan.utils.http import HTTPClient
from uibugscan.utils.logger import get_logger

logger = get_logger(__name__)

DriverFactory = Callable[[], RenderingDriver]
ChecksFactory = Callable[[DetectorConfig, Optional[HTTPClient]], List[BaseCheck]]

DOM_SIZE_SCRIPT = "() => document.querySelectorAll('*').length"
ONCLICK_NAV_RE = re.compile(r"location\.href\s*=\s*['\"]([^'\"]+)['\"]")
NON_PAGE_SCHEMES = ('javascript:', 'mailto:', 'tel:', 'data:')


@dataclass
class _ScanState:
    """Accumulates per-viewport output for one scan."""
    findings: List[Finding] = field(default_factory=list)
    load_times: List[float] = field(default_factory=list)
    dom_size: int = 0
    console_errors: int = 0
    screenshot: Optional[str] = None
    links: List[str] = field(default_factory=list)


# ----------------------------------------------------------------------
# Finding helpers
# ----------------------------------------------------------------------
def tag_finding(finding: Finding, viewport_label: str, page_url: str) -> Finding:
    """Prefix the viewport into message and location and set the owning page."""
    if finding.location_description:
        location = f"{finding.location_description} ({viewport_label})"
    else:
        location = f"Viewport: {viewport_label}"
    return replace(
        finding,
        message=f"[{viewport_label}] {finding.message}",
        location_description=location,
        page_url=page_url,
        friendly_name=finding.friendly_name or friendly_name(finding.code),
    )


def group_accessibility_findings(findings: List[Finding]) -> List[Finding]:
    """
    Collapse repetitive landmark violations into one summary finding per code.

    Summaries come first, followed by the remaining findings in order.
    """
    grouped = {}
    standalone = []
    for finding in findings:
        if finding.code in GROUPED_A11Y_CODES:
            grouped.setdefault(finding.code, []).append(finding)
        else:
            standalone.append(finding)

    summaries = []
    for code, members in grouped.items():
        first = members[0]
        summaries.append(replace(
            first,
            message=f"{first.message} ({len(members)} occurrences)",
            details=f"{len(members)} elements violate this rule. {first.details or ''}".strip(),
            friendly_name=friendly_name(code),
        ))
    return summaries + standalone


def console_error_finding(error: str) -> Finding:
    suffix = "..." if len(error) > 80 else ""
    return Finding(
        code='CONSOLE_ERROR',
        severity=Severity.MAJOR,
        message=f"Console Error: {error[:80]}{suffix}",
        details=error,
        expected_behavior='The console should be free of errors.',
        location_description='Console Log',
        suggested_fix='Debug the JavaScript error in the browser console and fix the underlying issue.',
    )


def extract_links(html: str, page_url: str) -> List[str]:
    """
    Collect same-origin links from rendered HTML.

    Covers anchor hrefs and `location.href = '...'` onclick handlers. The
    page itself is excluded; results are canonical and in document order.
    """
    soup = BeautifulSoup(html, 'html.parser')
    candidates = [a.get('href', '') for a in soup.find_all('a', href=True)]
    for element in soup.find_all(attrs={'onclick': True}):
        match = ONCLICK_NAV_RE.search(element.get('onclick', ''))
        if match:
            candidates.append(match.group(1))

    current = normalize_url(page_url)
    links = []
    for href in candidates:
        href = href.strip()
        if not href or href.startswith('#') or href.lower().startswith(NON_PAGE_SCHEMES):
            continue
        normalized = normalize_url(href, page_url)
        if not normalized or normalized == current or normalized in links:
            continue
        if is_same_origin(normalized, page_url):
            links.append(normalized)
    return links


# ----------------------------------------------------------------------
# Orchestrator
# ----------------------------------------------------------------------
class PageScanner:
    """
    Scans one URL at a time across all configured viewports.

    Each call to scan() launches its own driver, and each viewport gets its
    own isolated browser context, so one PageScanner can serve several
    threads at once.

    Args:
        driver_factory: Callable returning a RenderingDriver (PlaywrightDriver by default)
        http_client: Shared client for link status checks made by the navigation check
        enricher: Optional finding text rewriter
        checks_factory: Builds the enabled checks for a config
    """

    def __init__(
        self,
        driver_factory: Optional[DriverFactory] = None,
        http_client: Optional[HTTPClient] = None,
        enricher: Optional[FindingEnricher] = None,
        checks_factory: ChecksFactory = build_checks,
        navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        idle_timeout_ms: int = NETWORK_IDLE_TIMEOUT_MS,
    ):
        self.driver_factory = driver_factory or PlaywrightDriver
        self.http_client = http_client
        self.enricher = enricher
        self.checks_factory = checks_factory
        self.navigation_timeout_ms = navigation_timeout_ms
        self.idle_timeout_ms = idle_timeout_ms

    def scan(self, url: str, config: Optional[DetectorConfig] = None) -> PageResult:
        """
        Render and check one page.

        Args:
            url: Absolute http(s) URL
            config: Check and viewport configuration (defaults if omitted)

        Returns:
            PageResult with findings sorted by descending priority

        Raises:
            InvalidURLError: url is not an absolute http(s) URL
            NavigationError: the page could not be loaded
            DriverLaunchError: the browser could not be started
        """
        if normalize_url(url) is None:
            raise InvalidURLError(url)
        url = url.strip()
        config = config or DetectorConfig()
        viewports = config.resolved_viewports()

        state = _ScanState()
        checks = self.checks_factory(config, self.http_client)
        try:
            with self.driver_factory() as driver:
                for index, viewport in enumerate(viewports):
                    self._scan_viewport(driver, url, viewport, index == 0, config, checks, state)
        finally:
            for check in checks:
                check.close()

        findings = [f if f.page_url else replace(f, page_url=url) for f in state.findings]
        findings = deduplicate(findings, [vp.label for vp in viewports])
        findings = enrich_findings(findings, self.enricher)
        score = calculate_score(findings)
        findings = sort_by_priority(add_priority_scores(findings))

        load_time = round(sum(state.load_times) / len(state.load_times)) if state.load_times else 0
        logger.info(f"[Scanner] {url}: score {score}, {len(findings)} findings")

        return PageResult(
            url=url,
            score=score,
            timestamp=datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            findings=findings,
            metrics=PageMetrics(
                load_time_ms=load_time,
                dom_size=state.dom_size,
                console_errors=state.console_errors,
            ),
            links=state.links,
            screenshot=state.screenshot,
        )

    def _scan_viewport(
        self,
        driver: RenderingDriver,
        url: str,
        viewport: Viewport,
        is_first: bool,
        config: DetectorConfig,
        checks: List[BaseCheck],
        state: _ScanState,
    ):
        logger.info(f"[Scanner] Scanning viewport: {viewport.label} ({viewport.width}x{viewport.height})")

        with driver.open_page(viewport) as page:
            started = time.monotonic()
            page.goto(url, self.navigation_timeout_ms)
            page.wait_for_network_idle(self.idle_timeout_ms)
            state.load_times.append((time.monotonic() - started) * 1000)
            current_url = page.url or url

            if is_first:
                state.dom_size = self._dom_size(page)
                state.screenshot = self._capture_screenshot(page, config.screenshot_quality)
                state.links = self._extract_links(page, current_url)

            limit = config.max_bugs_per_category
            for check in checks:
                if check.full_page_only and not is_first:
                    continue
                found = self._run_check(check, page, viewport.label)
                if isinstance(check, AccessibilityCheck):
                    found = group_accessibility_findings(found)[:limit * 2]
                else:
                    found = found[:limit]
                state.findings.extend(tag_finding(f, viewport.label, current_url) for f in found)

            errors = page.console_errors
            state.console_errors += len(errors)
            for error in errors[:MAX_CONSOLE_ERRORS]:
                state.findings.append(tag_finding(console_error_finding(error), viewport.label, current_url))

    def _run_check(self, check: BaseCheck, page: PageSession, viewport_label: str) -> List[Finding]:
        """Run one check; a failing check contributes no findings."""
        try:
            findings = list(check.run(page, viewport_label) or [])
        except Exception as e:
            logger.warning(f"[Scanner] {check.check_name} check failed ({viewport_label}): {e}")
            return []
        if findings:
            logger.debug(f"[Scanner] {check.check_name} ({viewport_label}): {len(findings)} findings")
        return findings

    def _dom_size(self, page: PageSession) -> int:
        try:
            return int(page.evaluate(DOM_SIZE_SCRIPT) or 0)
        except Exception as e:
            logger.warning(f"[Scanner] Could not measure DOM size: {e}")
            return 0

    def _capture_screenshot(self, page: PageSession, quality: int) -> Optional[str]:
        if quality <= 0:
            return None
        try:
            image = page.screenshot(quality)
        except Exception as e:
            logger.warning(f"[Scanner] Screenshot failed: {e}")
            return None
        if len(image) >= MAX_SCREENSHOT_BYTES:
            logger.info(f"[Scanner] Screenshot too large ({len(image) // 1024}KB), skipping")
            return None
        return "data:image/jpeg;base64," + base64.b64encode(image).decode('ascii')

    def _extract_links(self, page: PageSession, page_url: str) -> List[str]:
        try:
            return extract_links(page.content(), page_url)
        except Exception as e:
            logger.warning(f"[Scanner] Link extraction failed on {page_url}: {e}")
            return []
