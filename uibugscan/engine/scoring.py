"""
Deduplication, quality score and priority ranking.

The page score starts at 100 and loses a severity-based penalty per finding.
Repeated findings of the same code are discounted and capped so that one noisy
check cannot sink a page on its own, and the grand total is capped so minor
noise alone never drives a page below 30.
"""

import math
import re
from collections import Counter, OrderedDict, defaultdict
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence

from uibugscan.config import (
    DEDUP_MESSAGE_PREFIX, SEVERITY_PENALTY, MAX_PENALTY_PER_CODE,
    DIMINISHING_FACTOR, GLOBAL_MAX_PENALTY, PRIORITY_WEIGHT,
    IMPACT_MULTIPLIERS, FRIENDLY_NAMES, DEFAULT_VIEWPORTS,
)
from uibugscan.models.finding import (
    Finding, PageResult, PageScore, BugCluster, Severity,
)

DEFAULT_VIEWPORT_LABELS = [label for _, _, label, _ in DEFAULT_VIEWPORTS]


def round_half_up(value: float) -> int:
    """Round .5 upwards, matching the JavaScript Math.round the scores were tuned with."""
    return int(math.floor(value + 0.5))


def friendly_name(code: str) -> str:
    """Human-readable name for a finding code."""
    if code in FRIENDLY_NAMES:
        return FRIENDLY_NAMES[code]
    name = code.replace('_', ' ')
    return re.sub(r'^A11Y ', '', name, flags=re.IGNORECASE)


# ----------------------------------------------------------------------
# Deduplication
# ----------------------------------------------------------------------
def _dedup_key(finding: Finding, tag_pattern: re.Pattern) -> tuple:
    message = tag_pattern.sub('', finding.message).strip()[:DEDUP_MESSAGE_PREFIX]
    return finding.code, message, finding.selector or ''


def deduplicate(
    findings: Iterable[Finding],
    viewport_labels: Optional[Sequence[str]] = None,
) -> List[Finding]:
    """
    Collapse findings reported more than once across viewports or checks.

    Two findings are duplicates when they share code, selector and the first
    characters of their message once viewport tags like "[Mobile]" are removed.
    The first occurrence wins.
    """
    labels = list(viewport_labels) if viewport_labels else DEFAULT_VIEWPORT_LABELS
    tag_pattern = re.compile(
        r'\[(?:' + '|'.join(re.escape(label) for label in labels) + r')\]'
    )

    seen: Dict[tuple, Finding] = OrderedDict()
    for finding in findings:
        key = _dedup_key(finding, tag_pattern)
        if key not in seen:
            seen[key] = finding
    return list(seen.values())


# ----------------------------------------------------------------------
# Score
# ----------------------------------------------------------------------
def calculate_score(findings: Iterable[Finding]) -> int:
    """
    Compute the 0-100 quality score of a page (100 = no issues).

    Findings are processed most severe first. Within one code, the n-th
    finding's base penalty is divided by (1 + 0.3 * n), and the code's total
    is capped by the severity-dependent ceiling of the finding being added.
    """
    ordered = sorted(findings, key=lambda f: f.severity.rank)
    if not ordered:
        return 100

    penalty_by_code: Dict[str, float] = {}
    seen_by_code: Dict[str, int] = defaultdict(int)
    total_penalty = 0.0

    for finding in ordered:
        severity = finding.severity.value
        code_penalty = penalty_by_code.get(finding.code, 0.0)
        ceiling = MAX_PENALTY_PER_CODE[severity]
        prior = seen_by_code[finding.code]
        seen_by_code[finding.code] += 1

        if code_penalty >= ceiling:
            continue

        penalty = SEVERITY_PENALTY[severity] / (1 + prior * DIMINISHING_FACTOR)
        penalty = min(penalty, ceiling - code_penalty)
        penalty_by_code[finding.code] = code_penalty + penalty
        total_penalty += penalty

    capped = min(total_penalty, GLOBAL_MAX_PENALTY)
    return max(0, round_half_up(100 - capped))


# ----------------------------------------------------------------------
# Priority
# ----------------------------------------------------------------------
def priority_for(
    finding: Finding,
    code_frequency: int,
    impact_multipliers: Optional[Dict[str, float]] = None,
) -> int:
    multipliers = IMPACT_MULTIPLIERS if impact_multipliers is None else impact_multipliers
    base = PRIORITY_WEIGHT[finding.severity.value]
    impact = multipliers.get(finding.code, 1.0)
    frequency_adjustment = 1 / math.sqrt(max(1, code_frequency))
    return min(100, max(0, round_half_up(base * impact * frequency_adjustment * 2)))


def add_priority_scores(
    findings: Sequence[Finding],
    impact_multipliers: Optional[Dict[str, float]] = None,
) -> List[Finding]:
    """
    Return copies of the findings with priority_score set.

    Codes seen many times share their urgency: each occurrence is divided by
    the square root of the code's frequency.
    """
    frequency = Counter(f.code for f in findings)
    return [
        replace(f, priority_score=priority_for(f, frequency[f.code], impact_multipliers))
        for f in findings
    ]


def sort_by_priority(findings: Iterable[Finding]) -> List[Finding]:
    """Highest priority first; ties keep their current order."""
    return sorted(findings, key=lambda f: -(f.priority_score or 0))


# ----------------------------------------------------------------------
# Site aggregation
# ----------------------------------------------------------------------
def aggregate_score(results: Sequence[PageResult]) -> int:
    """Mean of page scores; a site with no scanned pages is vacuously clean."""
    if not results:
        return 100
    return round_half_up(sum(r.score for r in results) / len(results))


def build_page_scores(results: Sequence[PageResult]) -> List[PageScore]:
    return [
        PageScore(
            url=r.url,
            score=r.score,
            bug_count={s.value: r.count(s) for s in Severity},
        )
        for r in results
    ]


def build_bug_clusters(results: Sequence[PageResult]) -> List[BugCluster]:
    """Group findings by code across pages, most severe and most frequent first."""
    clusters: Dict[str, BugCluster] = OrderedDict()
    for result in results:
        for finding in result.findings:
            cluster = clusters.get(finding.code)
            if cluster is None:
                cluster = BugCluster(
                    code=finding.code,
                    friendly_name=finding.friendly_name or friendly_name(finding.code),
                    severity=finding.severity,
                    count=0,
                    description=finding.details or finding.message,
                )
                clusters[finding.code] = cluster
            cluster.count += 1
            if finding.severity.rank < cluster.severity.rank:
                cluster.severity = finding.severity
            page = finding.page_url or result.url
            if page not in cluster.pages:
                cluster.pages.append(page)

    return sorted(clusters.values(), key=lambda c: (c.severity.rank, -c.count))
