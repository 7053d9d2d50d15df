"""
Interaction check: undersized touch targets and links that go nowhere.
"""

from typing import List

from uibugscan.checks.base import BaseCheck
from uibugscan.config import MIN_TOUCH_TARGET
from uibugscan.models.finding import Finding
from uibugscan.utils.browser import PageSession

INTERACTION_SCRIPT = """
(minTarget) => {
  const results = [];
  const nameOf = (el) => (el.getAttribute('aria-label') || el.textContent || el.getAttribute('title') || el.tagName).trim().slice(0, 40);

  document.querySelectorAll('a, button, [role="button"], input[type="submit"]').forEach(el => {
    const rect = el.getBoundingClientRect();
    if (rect.width === 0 || rect.height === 0) return;
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden' || el.getAttribute('aria-hidden') === 'true') return;
    // Inline text links flow with their paragraph
    if (style.display === 'inline' && el.tagName === 'A') return;
    if (rect.width < minTarget || rect.height < minTarget) {
      const w = Math.round(rect.width), h = Math.round(rect.height);
      results.push({
        code: 'SMALL_TARGET',
        severity: 'minor',
        message: `Clickable "${nameOf(el)}" is too small (${w}x${h}px).`,
        details: `The interactive element is ${w}x${h}px. Touch targets should be at least 44x44px.`,
        expectedBehavior: 'Increase padding or dimensions to meet minimum touch target guidelines.',
        selector: el.id ? `#${el.id}` : el.tagName.toLowerCase(),
        elementHtml: el.outerHTML.slice(0, 100),
        boundingBox: { x: rect.left, y: rect.top, width: rect.width, height: rect.height },
        wcagCriteria: '2.5.8 Target Size (Minimum) (Level AA)'
      });
    }
  });

  document.querySelectorAll('a').forEach(el => {
    const href = el.getAttribute('href');
    if (href === null || href.trim() === '' || href === '#') {
      results.push({
        code: 'EMPTY_LINK',
        severity: 'minor',
        message: `"${nameOf(el)}" has a broken or empty link.`,
        details: 'The <a> tag has no valid "href" attribute, which confuses screen readers and users expecting navigation.',
        expectedBehavior: 'Links should point to a valid URL or be converted to a <button> for scripted actions.',
        elementHtml: el.outerHTML.slice(0, 100),
        suggestedFix: 'Give the link a real destination or replace it with a <button>.'
      });
    }
  });
  return results;
}
"""


class InteractionCheck(BaseCheck):
    config_flag = "check_interaction"

    def __init__(self, min_target: int = MIN_TOUCH_TARGET):
        self.min_target = min_target

    @property
    def check_name(self) -> str:
        return "Interaction"

    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        return self._to_findings(page.evaluate(INTERACTION_SCRIPT, self.min_target))
