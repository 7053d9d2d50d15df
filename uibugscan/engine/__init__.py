"""
Scan engine: page orchestration, deduplication and scoring, enrichment.
"""

from uibugscan.engine.orchestrator import PageScanner
from uibugscan.engine.scoring import (
    deduplicate, calculate_score, add_priority_scores, sort_by_priority,
    aggregate_score,
)
from uibugscan.engine.enrichment import FindingEnricher, enrich_findings

__all__ = [
    'PageScanner', 'deduplicate', 'calculate_score', 'add_priority_scores',
    'sort_by_priority', 'aggregate_score', 'FindingEnricher', 'enrich_findings',
]
