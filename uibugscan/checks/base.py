"""
Abstract base class for all check plugins.

A check inspects one rendered page at one viewport and returns findings.
Checks must not mutate shared crawl state; any exception they raise is caught
by the orchestrator and counted as "no findings" for that page and viewport.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

from uibugscan.models.finding import Finding
from uibugscan.utils.browser import PageSession
from uibugscan.utils.logger import get_logger

logger = get_logger(__name__)


class BaseCheck(ABC):
    """
    Interface every defect detector implements.

    Subclasses must implement:
    - check_name (property)
    - run(page, viewport_label) -> List[Finding]

    Subclasses set `config_flag` to the DetectorConfig attribute that enables
    them, and `full_page_only` when their findings do not depend on the
    viewport (they then run once per page, on the first viewport).
    """

    config_flag: str = ""
    full_page_only: bool = False

    @property
    @abstractmethod
    def check_name(self) -> str:
        """Return the human-readable name of this check."""
        ...

    @abstractmethod
    def run(self, page: PageSession, viewport_label: str) -> List[Finding]:
        """
        Inspect the page and report defects.

        Args:
            page: Live page rendered at the current viewport
            viewport_label: Label of that viewport (e.g. "Mobile")

        Returns:
            List of Finding objects; empty when the page is clean
        """
        ...

    def close(self) -> None:
        """Release resources held by the check (HTTP sessions etc.)."""

    def _to_findings(self, records: Iterable[Dict[str, Any]]) -> List[Finding]:
        """
        Convert records returned by in-page inspection into Findings.

        Malformed records are skipped rather than failing the whole check.
        """
        findings = []
        for record in records or []:
            try:
                findings.append(Finding.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"[{self.check_name}] Dropping malformed record {record!r}: {e}")
        return findings

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.check_name}>"
