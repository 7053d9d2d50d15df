"""
Dynamic interaction check: scrolls the page end to end, then verifies that a
sample of visible controls can actually receive a click.

A control is unclickable when the element found at the centre of its box is
neither the control nor one of its descendants (an overlay, sticky header or
cookie banner sits on top of it). Nothing is clicked for real, so the check
never navigates away from the page.
"""

from typing import List

from uibugscan.checks.base import BaseCheck
from uibugscan.config import CLICK_SAMPLE_SIZE, MAX_SCROLL_STEPS
from uibugscan.models.finding import Finding, Severity
from uibugscan.utils.browser import PageSession
from uibugscan.utils.logger import get_logger

logger = get_logger(__name__)

SCROLL_SCRIPT = """
async (maxSteps) => {
  const distance = 100;
  let travelled = 0;
  for (let step = 0; step < maxSteps; step++) {
    window.scrollBy(0, distance);
    travelled += distance;
    await new Promise(resolve => setTimeout(resolve, 50));
    if (travelled >= document.body.scrollHeight) break;
  }
  await new Promise(resolve => setTimeout(resolve, 500));
  window.scrollTo(0, 0);
  await new Promise(resolve => setTimeout(resolve, 200));
  return travelled;
}
"""

CLICKABILITY_SCRIPT = """
(sampleSize) => {
  const results = [];
  const controls = Array.from(document.querySelectorAll(
    'button, a[href^="#"], a[href^="/"], input[type="submit"]'
  ));
  let checked = 0;
  for (const el of controls) {
    if (checked >= sampleSize) break;
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden') continue;
    if (el.disabled || el.getAttribute('aria-disabled') === 'true') continue;
    let rect = el.getBoundingClientRect();
    if (rect.width === 0 || rect.height === 0) continue;
    checked++;

    el.scrollIntoView({ block: 'center', inline: 'center' });
    rect = el.getBoundingClientRect();
    const x = rect.left + rect.width / 2;
    const y = rect.top + rect.height / 2;
    const hit = document.elementFromPoint(x, y);
    if (hit && (hit === el || el.contains(hit))) continue;

    const blocker = hit ? hit.tagName.toLowerCase() + (hit.id ? `#${hit.id}` : '') : 'nothing (off-screen)';
    const html = el.outerHTML.slice(0, 100);
    results.push({
      code: 'UNCLICKABLE_ELEMENT',
      severity: 'major',
      message: `Interactive element (${el.tagName}) appears unclickable.`,
      details: `A click at the centre of this element would land on ${blocker} instead. It might be covered by another element or positioned outside the page.`,
      expectedBehavior: 'Interactive elements like buttons and links should be clickable by the user.',
      locationDescription: `Element: ${html}`,
      selector: el.id ? `#${el.id}` : el.tagName.toLowerCase(),
      elementHtml: html,
      boundingBox: { x: rect.left, y: rect.top, width: rect.width, height: rect.height },
      suggestedFix: 'Check z-index and positioning of overlays, sticky headers and banners covering this control.'
    });
  }
  window.scrollTo(0, 0);
  return results;
}
"""


class DynamicInteractionCheck(BaseCheck):
    config_flag = "check_interaction"

    def __init__(self, sample_size: int = CLICK_SAMPLE_SIZE, max_scroll_steps: int = MAX_SCROLL_STEPS):
        self.sample_size = sample_size
        self.max_scroll_steps = max_scroll_steps

    @property
    def check_name(self) -> str:
        return "Dynamic Interaction"

    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        findings = []
        try:
            page.evaluate(SCROLL_SCRIPT, self.max_scroll_steps)
        except Exception as e:
            logger.debug(f"[{self.check_name}] Scroll failed ({viewport_label}): {e}")
            findings.append(Finding(
                code='SCROLL_ERROR',
                severity=Severity.MINOR,
                message='Error occurred during page scrolling.',
                details='The automated scroller encountered an exception. This might indicate '
                        'broken scroll listeners or heavy main thread blocking.',
                expected_behavior='The page should scroll smoothly from top to bottom without errors.',
                location_description='Global Page Interaction',
            ))

        findings.extend(self._to_findings(page.evaluate(CLICKABILITY_SCRIPT, self.sample_size)))
        return findings
