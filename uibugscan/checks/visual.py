"""
Visual check: broken media and text lines too long to read comfortably.
"""

from typing import List

from uibugscan.checks.base import BaseCheck
from uibugscan.config import MAX_LINE_CHARACTERS
from uibugscan.models.finding import Finding
from uibugscan.utils.browser import PageSession

VISUAL_SCRIPT = """
(maxChars) => {
  const issues = [];

  document.querySelectorAll('img').forEach(img => {
    const rect = img.getBoundingClientRect();
    if (img.complete && img.naturalWidth === 0 && img.getAttribute('src')) {
      issues.push({
        code: 'MEDIA_BROKEN',
        severity: 'major',
        message: `Image failed to load: ${img.getAttribute('src').slice(-60)}`,
        details: 'The browser finished loading this image but it has no intrinsic size, so it rendered as a broken placeholder.',
        expectedBehavior: 'All images should load and display correctly.',
        selector: img.id ? `#${img.id}` : `img[src="${img.getAttribute('src')}"]`,
        elementHtml: img.outerHTML.slice(0, 100),
        boundingBox: { x: rect.left, y: rect.top, width: rect.width, height: rect.height },
        suggestedFix: 'Check the image URL, file permissions and server response for this asset.'
      });
    }
  });

  document.querySelectorAll('p').forEach(p => {
    const text = (p.textContent || '').trim();
    if (text.length < maxChars * 2) return;
    const style = window.getComputedStyle(p);
    const fontSize = parseFloat(style.fontSize) || 16;
    // Average glyph is roughly half the font size wide
    const charsPerLine = Math.round(p.getBoundingClientRect().width / (fontSize * 0.5));
    if (charsPerLine > maxChars) {
      issues.push({
        code: 'VISUAL_LONG_LINES',
        severity: 'optimization',
        message: `Paragraph lines are about ${charsPerLine} characters wide.`,
        details: `Lines longer than ${maxChars} characters are hard to track from one line to the next.`,
        expectedBehavior: 'Body text should stay around 50-75 characters per line.',
        selector: p.id ? `#${p.id}` : 'p',
        elementHtml: p.outerHTML.slice(0, 100),
        suggestedFix: 'Constrain text containers with max-width (e.g. 65ch).'
      });
    }
  });
  return issues;
}
"""


class VisualCheck(BaseCheck):
    config_flag = "check_visual"

    def __init__(self, max_line_characters: int = MAX_LINE_CHARACTERS):
        self.max_line_characters = max_line_characters

    @property
    def check_name(self) -> str:
        return "Visual"

    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        return self._to_findings(page.evaluate(VISUAL_SCRIPT, self.max_line_characters))
