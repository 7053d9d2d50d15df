"""
Layout check: horizontal overflow, clipped text and overlapping text blocks.
"""

from typing import List

from uibugscan.checks.base import BaseCheck
from uibugscan.config import MAX_OVERLAP_CANDIDATES
from uibugscan.models.finding import Finding
from uibugscan.utils.browser import PageSession

LAYOUT_SCRIPT = """
(maxCandidates) => {
  const issues = [];
  const isVisible = (el) => {
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') return false;
    const rect = el.getBoundingClientRect();
    return rect.width > 0 && rect.height > 0;
  };

  const docWidth = document.documentElement.scrollWidth;
  if (docWidth > window.innerWidth) {
    issues.push({
      code: 'LAYOUT_OVERFLOW',
      severity: 'major',
      message: `Page content overflows horizontally (${docWidth}px > ${window.innerWidth}px).`,
      details: `The page content width (${docWidth}px) exceeds the viewport width (${window.innerWidth}px), causing horizontal scrolling.`,
      expectedBehavior: 'Content should fit within the viewport width without horizontal scrolling.',
      locationDescription: 'Global Page Layout',
      suggestedFix: 'Find elements with fixed widths wider than the viewport, or children that extend beyond an overflow: visible container.'
    });
  }

  const candidates = document.querySelectorAll('p, h1, h2, h3, h4, h5, h6, button, a, span, li, label');
  for (const el of candidates) {
    if (!isVisible(el)) continue;
    const style = window.getComputedStyle(el);
    if (style.overflow !== 'hidden' && style.textOverflow !== 'ellipsis') continue;
    if (el.scrollWidth <= el.clientWidth + 1 && el.scrollHeight <= el.clientHeight + 1) continue;
    const text = (el.textContent || '').trim();
    if (text.length < 3) continue;
    const rect = el.getBoundingClientRect();
    issues.push({
      code: 'LAYOUT_CLIPPED',
      severity: 'minor',
      message: `Text "${text.slice(0, 30)}" is clipped by its container.`,
      details: `Content needs ${el.scrollWidth}x${el.scrollHeight}px but only ${el.clientWidth}x${el.clientHeight}px is visible.`,
      expectedBehavior: 'Text should be fully visible or truncated intentionally with an accessible full version.',
      selector: el.id ? `#${el.id}` : el.tagName.toLowerCase(),
      elementHtml: el.outerHTML.slice(0, 100),
      boundingBox: { x: rect.left, y: rect.top, width: rect.width, height: rect.height },
      suggestedFix: 'Allow the container to grow, wrap the text, or provide a tooltip with the full content.'
    });
    if (issues.length >= 50) break;
  }

  const textEls = [];
  for (const el of document.querySelectorAll('p, h1, h2, h3, h4, h5, h6, span, a, button, li, label')) {
    if (textEls.length >= maxCandidates) break;
    if (!isVisible(el)) continue;
    if (el.getAttribute('aria-hidden') === 'true') continue;
    const rect = el.getBoundingClientRect();
    if (rect.width < 20 || rect.height < 12) continue;
    const text = (el.textContent || '').trim();
    if (text.length < 3) continue;
    textEls.push({ node: el, rect, text: text.slice(0, 30) });
  }

  let overlaps = 0;
  for (let i = 0; i < textEls.length && overlaps < 10; i++) {
    for (let j = i + 1; j < textEls.length && overlaps < 10; j++) {
      const a = textEls[i], b = textEls[j];
      if (a.node.contains(b.node) || b.node.contains(a.node)) continue;
      const xOverlap = Math.max(0, Math.min(a.rect.right, b.rect.right) - Math.max(a.rect.left, b.rect.left));
      const yOverlap = Math.max(0, Math.min(a.rect.bottom, b.rect.bottom) - Math.max(a.rect.top, b.rect.top));
      if (xOverlap <= 15 || yOverlap <= 15 || a.text === b.text) continue;
      overlaps++;
      issues.push({
        code: 'VISUAL_OVERLAP',
        severity: 'major',
        message: `Overlapping text elements detected: "${a.text}..." and "${b.text}..."`,
        details: `Two text elements occupy the same space (overlap area: ${Math.round(xOverlap * yOverlap)}px²). This makes text unreadable.`,
        expectedBehavior: 'Text elements should have sufficient spacing and not overlap each other.',
        locationDescription: `Between <${a.node.tagName}> and <${b.node.tagName}>`,
        selector: a.node.id ? `#${a.node.id}` : a.node.tagName.toLowerCase(),
        elementHtml: a.node.outerHTML.slice(0, 100),
        boundingBox: { x: a.rect.left, y: a.rect.top, width: a.rect.width, height: a.rect.height },
        suggestedFix: 'Adjust element positions or z-index so text elements have proper spacing and do not overlap.'
      });
    }
  }
  return issues;
}
"""


class LayoutCheck(BaseCheck):
    config_flag = "check_layout"

    def __init__(self, max_overlap_candidates: int = MAX_OVERLAP_CANDIDATES):
        self.max_overlap_candidates = max_overlap_candidates

    @property
    def check_name(self) -> str:
        return "Layout"

    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        return self._to_findings(page.evaluate(LAYOUT_SCRIPT, self.max_overlap_candidates))
