"""
Accessibility check.

A focused subset of WCAG rules evaluated directly in the page. Findings are
page-level, so the check runs once per page on the first viewport.
"""

from typing import List

from uibugscan.checks.base import BaseCheck
from uibugscan.models.finding import Finding
from uibugscan.utils.browser import PageSession

# WCAG criterion per rule
WCAG_MAPPING = {
    'image-alt': '1.1.1 Non-text Content (Level A)',
    'button-name': '4.1.2 Name, Role, Value (Level A)',
    'html-lang': '3.1.1 Language of Page (Level A)',
    'landmark-one-main': '1.3.1 Info and Relationships (Level A)',
    'region': '1.3.1 Info and Relationships (Level A)',
    'duplicate-id': '4.1.1 Parsing (Level A)',
}

FIX_SUGGESTIONS = {
    'image-alt': 'Add descriptive alt text to the image. Use alt="" for purely decorative images.',
    'button-name': 'Add text content, aria-label, or aria-labelledby so the button has an accessible name.',
    'html-lang': 'Declare the page language, e.g. <html lang="en">.',
    'landmark-one-main': 'Add exactly one <main> element (or role="main") around the primary content.',
    'region': 'Wrap page content in semantic landmarks: <header>, <nav>, <main>, <footer>.',
    'duplicate-id': 'Ensure all id attributes on the page are unique.',
}

SEVERITIES = {
    'image-alt': 'major',
    'button-name': 'major',
    'html-lang': 'minor',
    'landmark-one-main': 'minor',
    'region': 'minor',
    'duplicate-id': 'minor',
}

ACCESSIBILITY_SCRIPT = """
() => {
  const violations = [];
  const describe = (el) => el.id ? `#${el.id}` : el.tagName.toLowerCase() + (el.className && typeof el.className === 'string' ? '.' + el.className.trim().split(/\\s+/)[0] : '');

  document.querySelectorAll('img').forEach(img => {
    if (!img.hasAttribute('alt') && img.getAttribute('role') !== 'presentation' && img.getAttribute('aria-hidden') !== 'true') {
      violations.push({ rule: 'image-alt', message: `Image "${(img.getAttribute('src') || '').slice(-40)}" has no alt text.`, selector: describe(img), html: img.outerHTML.slice(0, 100) });
    }
  });

  document.querySelectorAll('button, [role="button"]').forEach(btn => {
    const name = (btn.textContent || '').trim() || btn.getAttribute('aria-label') || btn.getAttribute('aria-labelledby') || btn.getAttribute('title');
    if (!name) {
      violations.push({ rule: 'button-name', message: 'Button has no accessible name.', selector: describe(btn), html: btn.outerHTML.slice(0, 100) });
    }
  });

  if (!document.documentElement.getAttribute('lang')) {
    violations.push({ rule: 'html-lang', message: 'The <html> element has no lang attribute.', selector: 'html' });
  }

  const mains = document.querySelectorAll('main, [role="main"]');
  if (mains.length !== 1) {
    violations.push({ rule: 'landmark-one-main', message: `Page has ${mains.length} main landmarks (expected exactly one).`, selector: 'main' });
  }

  const landmarks = 'header, nav, main, footer, aside, [role="banner"], [role="navigation"], [role="main"], [role="contentinfo"], [role="complementary"], [role="region"]';
  Array.from(document.body ? document.body.children : []).forEach(el => {
    if (el.matches(landmarks) || el.closest(landmarks) || el.querySelector(landmarks)) return;
    if (['SCRIPT', 'STYLE', 'NOSCRIPT', 'TEMPLATE'].includes(el.tagName)) return;
    if (!(el.textContent || '').trim()) return;
    violations.push({ rule: 'region', message: 'Page content is not contained by a landmark.', selector: describe(el), html: el.outerHTML.slice(0, 100) });
  });

  const ids = {};
  document.querySelectorAll('[id]').forEach(el => { ids[el.id] = (ids[el.id] || 0) + 1; });
  Object.keys(ids).filter(id => id && ids[id] > 1).forEach(id => {
    violations.push({ rule: 'duplicate-id', message: `id "${id}" is used ${ids[id]} times.`, selector: `#${id}` });
  });
  return violations;
}
"""


def rule_code(rule_id: str) -> str:
    """Finding code for a rule id, e.g. image-alt -> A11Y_IMAGE_ALT."""
    return 'A11Y_' + rule_id.upper().replace('-', '_')


class AccessibilityCheck(BaseCheck):
    config_flag = "check_accessibility"
    full_page_only = True

    @property
    def check_name(self) -> str:
        return "Accessibility"

    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        records = []
        for violation in page.evaluate(ACCESSIBILITY_SCRIPT) or []:
            rule = violation.get('rule')
            if rule not in SEVERITIES:
                continue
            records.append({
                'code': rule_code(rule),
                'severity': SEVERITIES[rule],
                'message': violation.get('message', rule),
                'selector': violation.get('selector'),
                'element_html': violation.get('html'),
                'wcag_criteria': WCAG_MAPPING.get(rule),
                'suggested_fix': FIX_SUGGESTIONS.get(rule),
                'expected_behavior': f"Page satisfies WCAG {WCAG_MAPPING.get(rule, rule)}.",
            })
        return self._to_findings(records)
