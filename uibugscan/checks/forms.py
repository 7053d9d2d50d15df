"""
Form check: unlabelled fields, forms without a submit control and password
fields missing autocomplete hints.
"""

from typing import List

from uibugscan.checks.base import BaseCheck
from uibugscan.models.finding import Finding
from uibugscan.utils.browser import PageSession

FORMS_SCRIPT = """
() => {
  const issues = [];
  document.querySelectorAll('form').forEach((form, index) => {
    const formName = form.getAttribute('name') || form.id || `#${index + 1}`;
    const fields = form.querySelectorAll('input:not([type="hidden"]):not([type="submit"]):not([type="button"]), select, textarea');
    if (!fields.length) return;

    const hasSubmit = form.querySelector('button:not([type="button"]):not([type="reset"]), input[type="submit"], input[type="image"]');
    if (!hasSubmit) {
      issues.push({
        code: 'FORM_NO_SUBMIT',
        severity: 'minor',
        message: `Form ${formName} has no submit button.`,
        details: 'Without a submit control the form cannot be submitted from the keyboard in a predictable way.',
        expectedBehavior: 'Every form should have a visible submit button.',
        selector: form.id ? `#${form.id}` : 'form',
        suggestedFix: 'Add a <button type="submit"> to the form.'
      });
    }

    fields.forEach(field => {
      const id = field.id;
      const labelled = (id && document.querySelector(`label[for="${CSS.escape(id)}"]`)) ||
        field.closest('label') || field.getAttribute('aria-label') || field.getAttribute('aria-labelledby') || field.getAttribute('title');
      if (!labelled) {
        const name = field.getAttribute('name') || field.getAttribute('placeholder') || field.tagName.toLowerCase();
        issues.push({
          code: 'FORM_MISSING_LABEL',
          severity: 'major',
          message: `Form field "${name}" has no label.`,
          details: 'Screen reader users cannot tell what this field is for; placeholder text is not a label.',
          expectedBehavior: 'Every form field should have an associated <label>.',
          selector: id ? `#${id}` : `[name="${field.getAttribute('name') || ''}"]`,
          elementHtml: field.outerHTML.slice(0, 100),
          wcagCriteria: '1.3.1 Info and Relationships (Level A)',
          suggestedFix: 'Associate a <label for="..."> with the field or add aria-label.'
        });
      }
      if (field.getAttribute('type') === 'password' && !field.getAttribute('autocomplete')) {
        issues.push({
          code: 'FORM_PASSWORD_NO_AUTOCOMPLETE',
          severity: 'optimization',
          message: 'Password field has no autocomplete attribute.',
          details: 'Password managers rely on autocomplete="current-password" or "new-password".',
          expectedBehavior: 'Password fields declare their autocomplete purpose.',
          selector: id ? `#${id}` : 'input[type="password"]',
          suggestedFix: 'Add autocomplete="current-password" (login) or "new-password" (sign-up).'
        });
      }
    });
  });
  return issues;
}
"""


class FormsCheck(BaseCheck):
    config_flag = "check_interaction"
    full_page_only = True

    @property
    def check_name(self) -> str:
        return "Forms"

    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        return self._to_findings(page.evaluate(FORMS_SCRIPT))
