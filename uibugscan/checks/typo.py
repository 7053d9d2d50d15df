"""
Typo check.

Looks for accidentally repeated words and a table of frequent English
misspellings in the page's visible text. This is not a dictionary spell
checker; it only flags patterns that are almost always mistakes.
"""

import re
from typing import Iterable, List, Optional, Set

from uibugscan.checks.base import BaseCheck
from uibugscan.models.finding import Finding, Severity
from uibugscan.utils.browser import PageSession

VISIBLE_TEXT_SCRIPT = "() => document.body ? document.body.innerText : ''"

COMMON_MISSPELLINGS = {
    'accomodate': 'accommodate',
    'adress': 'address',
    'begining': 'beginning',
    'beleive': 'believe',
    'calender': 'calendar',
    'definately': 'definitely',
    'enviroment': 'environment',
    'existance': 'existence',
    'goverment': 'government',
    'independant': 'independent',
    'neccessary': 'necessary',
    'occured': 'occurred',
    'occurence': 'occurrence',
    'publically': 'publicly',
    'recieve': 'receive',
    'seperate': 'separate',
    'succesful': 'successful',
    'teh': 'the',
    'tommorow': 'tomorrow',
    'untill': 'until',
    'wich': 'which',
}

# Grammatical doubles ("had had", "that that")
ALLOWED_REPEATS = {'had', 'that', 'is', 'do', 'bye', 'no', 'ha', 'very', 'so'}

WORD_RE = re.compile(r"[A-Za-z][A-Za-z']+")
REPEAT_RE = re.compile(r"\b([A-Za-z]+)\s+\1\b", re.IGNORECASE)


def find_typos(text: str, whitelist: Optional[Iterable[str]] = None) -> List[dict]:
    """
    Scan text for repeated words and known misspellings.

    Returns:
        One record per distinct problem: {'word', 'suggestion', 'context'}
    """
    allowed: Set[str] = {w.lower() for w in (whitelist or [])}
    seen: Set[str] = set()
    problems = []

    for match in REPEAT_RE.finditer(text):
        word = match.group(1).lower()
        key = f"{word} {word}"
        if word in ALLOWED_REPEATS or word in allowed or key in seen:
            continue
        seen.add(key)
        problems.append({
            'word': match.group(0),
            'suggestion': match.group(1),
            'context': _context(text, match.start(), match.end()),
        })

    for match in WORD_RE.finditer(text):
        word = match.group(0).lower()
        if word in allowed or word in seen or word not in COMMON_MISSPELLINGS:
            continue
        seen.add(word)
        problems.append({
            'word': match.group(0),
            'suggestion': COMMON_MISSPELLINGS[word],
            'context': _context(text, match.start(), match.end()),
        })

    return problems


def _context(text: str, start: int, end: int, width: int = 30) -> str:
    snippet = text[max(0, start - width):end + width]
    return ' '.join(snippet.split())


class TypoCheck(BaseCheck):
    config_flag = "check_typo"

    def __init__(self, custom_whitelist: Optional[Iterable[str]] = None):
        self.whitelist = list(custom_whitelist or [])

    @property
    def check_name(self) -> str:
        return "Typo"

    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        text = page.evaluate(VISIBLE_TEXT_SCRIPT) or ''
        findings = []
        for problem in find_typos(text, self.whitelist):
            findings.append(Finding(
                code='TYPO',
                severity=Severity.MINOR,
                message=f'Possible typo "{problem["word"]}" (did you mean "{problem["suggestion"]}"?)',
                details=f'Found in: "...{problem["context"]}..."',
                expected_behavior='Visible text should be free of spelling mistakes.',
                location_description='Page text',
                suggested_fix=f'Replace "{problem["word"]}" with "{problem["suggestion"]}".',
            ))
        return findings
