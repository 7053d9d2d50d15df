"""
Optional post-processing that rewrites finding text into friendlier prose.

The enricher is any callable taking a Finding and returning a Finding, for
example a wrapper around a local language model. Enrichment is best effort:
when no enricher is configured, or it times out, raises, or returns something
that is not a Finding, the original finding passes through unchanged.
"""

import threading
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple

from uibugscan.models.finding import Finding
from uibugscan.utils.logger import get_logger

logger = get_logger(__name__)

FindingEnricher = Callable[[Finding], Finding]

DEFAULT_ENRICH_TIMEOUT = 5.0


def _call_in_thread(enricher: FindingEnricher, finding: Finding, timeout: float) -> Tuple[bool, object]:
    """
    Run the enricher on a daemon thread and wait up to `timeout` seconds.

    Returns (finished, outcome) where outcome is the result or the raised
    exception. A thread that is still running is abandoned and never blocks
    interpreter exit.
    """
    outcome = {}

    def target():
        try:
            outcome['result'] = enricher(finding)
        except Exception as e:
            outcome['error'] = e

    worker = threading.Thread(target=target, name="enrich", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        return False, None
    return True, outcome.get('error', outcome.get('result'))


def enrich_findings(
    findings: Sequence[Finding],
    enricher: Optional[FindingEnricher] = None,
    timeout: float = DEFAULT_ENRICH_TIMEOUT,
) -> List[Finding]:
    """
    Run the enricher over each finding with a per-finding timeout.

    The enriched copy keeps the original id, code, severity and page so
    deduplication and scoring are unaffected.
    """
    if enricher is None or not findings:
        return list(findings)

    enriched: List[Finding] = []
    for finding in findings:
        finished, result = _call_in_thread(enricher, finding, timeout)
        if not finished:
            # The enricher is still busy; leave the remaining findings as they are
            logger.warning(f"Enrichment timed out for {finding.code}, skipping enrichment")
            enriched.extend(findings[len(enriched):])
            break

        if isinstance(result, Exception):
            logger.warning(f"Enrichment failed for {finding.code}: {result}")
            enriched.append(finding)
            continue

        if not isinstance(result, Finding):
            logger.debug(f"Enricher returned {type(result).__name__}, keeping original")
            enriched.append(finding)
            continue

        enriched.append(replace(
            result,
            id=finding.id,
            code=finding.code,
            severity=finding.severity,
            page_url=finding.page_url,
        ))
    return enriched
