"""
Navigation check.

Verifies in-page anchors resolve, flags navigation menus where one label
points at several destinations, and checks internal links with HEAD requests
to catch 404s and server errors behind them.
"""

from collections import OrderedDict
from typing import List, Optional

from uibugscan.checks.base import BaseCheck
from uibugscan.config import MAX_LINK_CHECKS
from uibugscan.models.finding import Finding, Severity
from uibugscan.utils.browser import PageSession
from uibugscan.utils.http import HTTPClient
from uibugscan.utils.logger import get_logger

logger = get_logger(__name__)

NAVIGATION_SCRIPT = """
(maxOther) => {
  const origin = window.location.origin;
  const links = [];
  const seen = new Set();
  document.querySelectorAll('nav a, [role="navigation"] a, header a').forEach(a => {
    if (a.href && a.href.startsWith(origin)) {
      links.push({ href: a.href, text: (a.textContent || '').trim().slice(0, 50), isNav: true, rawHref: a.getAttribute('href') });
      seen.add(a.href);
    }
  });
  let count = 0;
  document.querySelectorAll('a[href]').forEach(a => {
    if (count >= maxOther) return;
    if (a.href && a.href.startsWith(origin) && !seen.has(a.href)) {
      links.push({ href: a.href, text: (a.textContent || '').trim().slice(0, 50), isNav: false, rawHref: a.getAttribute('href') });
      seen.add(a.href);
      count++;
    }
  });
  const missingAnchors = [];
  document.querySelectorAll('a[href^="#"]').forEach(a => {
    const id = a.getAttribute('href').slice(1);
    if (id && !document.getElementById(id) && !document.getElementsByName(id).length) {
      missingAnchors.push({ id: id, text: (a.textContent || '').trim().slice(0, 50) });
    }
  });
  return { links: links, missingAnchors: missingAnchors };
}
"""


class NavigationCheck(BaseCheck):
    config_flag = "check_accessibility"
    full_page_only = True

    def __init__(self, http_client: Optional[HTTPClient] = None, max_link_checks: int = MAX_LINK_CHECKS):
        self._owns_client = http_client is None
        self.http_client = http_client
        self.max_link_checks = max_link_checks

    @property
    def check_name(self) -> str:
        return "Navigation"

    def _client(self) -> HTTPClient:
        if self.http_client is None:
            self.http_client = HTTPClient(max_retries=0)
        return self.http_client

    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        data = page.evaluate(NAVIGATION_SCRIPT, self.max_link_checks) or {}
        links = data.get('links') or []
        findings: List[Finding] = []

        for anchor in data.get('missingAnchors') or []:
            findings.append(Finding(
                code='NAV_MISSING_ANCHOR',
                severity=Severity.MINOR,
                message=f'Link "{anchor.get("text") or "#" + anchor["id"]}" points to missing anchor #{anchor["id"]}.',
                details=f'No element with id or name "{anchor["id"]}" exists on the page.',
                expected_behavior='In-page links should scroll to an existing section.',
                selector=f'a[href="#{anchor["id"]}"]',
                suggested_fix=f'Add id="{anchor["id"]}" to the target section or fix the link.',
            ))

        findings.extend(self._duplicate_text_findings(links))
        findings.extend(self._check_links(links))
        return findings

    def _duplicate_text_findings(self, links: List[dict]) -> List[Finding]:
        targets = OrderedDict()
        for link in links:
            if link.get('isNav') and link.get('text'):
                targets.setdefault(link['text'].lower(), set()).add(link['href'])

        findings = []
        for text, urls in targets.items():
            if len(urls) > 1:
                findings.append(Finding(
                    code='NAV_DUPLICATE_TEXT',
                    severity=Severity.MINOR,
                    message=f'Multiple navigation links labelled "{text}" point to different URLs.',
                    details=f'Found {len(urls)} different URLs for links labelled "{text}".',
                    expected_behavior='Navigation links with the same text should point to the same destination.',
                    location_description='Navigation menu',
                    suggested_fix='Give each navigation link unique, descriptive text.',
                ))
        return findings

    def _check_links(self, links: List[dict]) -> List[Finding]:
        findings = []
        client = self._client()
        for link in links[:self.max_link_checks]:
            response = client.head(link['href'])
            if response is None:
                continue
            status = response.status_code
            selector = f'a[href="{link.get("rawHref") or link["href"]}"]'
            label = link.get('text') or link['href']
            if status in (404, 410):
                findings.append(Finding(
                    code='NAV_BROKEN_LINK',
                    severity=Severity.MAJOR,
                    message=f'Link "{label}" leads to a missing page ({status}).',
                    details=f'HEAD {link["href"]} returned {status}.',
                    expected_behavior='Internal links should lead to existing pages.',
                    selector=selector,
                    location_description='Navigation menu' if link.get('isNav') else 'Page content',
                    suggested_fix='Update the link target or restore the missing page.',
                ))
            elif status >= 500:
                findings.append(Finding(
                    code='NAV_SERVER_ERROR',
                    severity=Severity.CRITICAL,
                    message=f'Link "{label}" leads to a server error ({status}).',
                    details=f'HEAD {link["href"]} returned {status}.',
                    expected_behavior='Linked pages should respond without server errors.',
                    selector=selector,
                    location_description='Navigation menu' if link.get('isNav') else 'Page content',
                    suggested_fix='Check the server logs for the linked route.',
                ))
        logger.debug(f"Checked {min(len(links), self.max_link_checks)} links, {len(findings)} failing")
        return findings

    def close(self) -> None:
        if self._owns_client and self.http_client is not None:
            self.http_client.close()
            self.http_client = None
