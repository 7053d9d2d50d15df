"""
Finding, page and crawl result models.

Central data structures shared by the check plugins, the scan orchestrator,
the crawler and the reporter.
"""

import re
import uuid
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Optional, Dict, Any, Pattern, Union

from uibugscan.config import (
    DEFAULT_VIEWPORTS, MAX_BUGS_PER_CATEGORY, DEFAULT_SCREENSHOT_QUALITY,
    DEFAULT_CRAWL_DEPTH, DEFAULT_MAX_PAGES, DEFAULT_REQUEST_DELAY,
    DEFAULT_CONCURRENCY, SEVERITY_ORDER,
)


class Severity(str, Enum):
    """Finding severity, most to least urgent."""
    CRITICAL = 'critical'
    MAJOR = 'major'
    MINOR = 'minor'
    OPTIMIZATION = 'optimization'

    @property
    def rank(self) -> int:
        """0 for critical up to 3 for optimization."""
        return SEVERITY_ORDER.index(self.value)


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Finding:
    """
    One detected UI defect.

    Findings are immutable; the orchestrator and scoring engine derive
    tagged or prioritised copies with dataclasses.replace().
    """
    code: str                   # Taxonomy code, e.g. LAYOUT_OVERFLOW
    severity: Severity
    message: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    selector: Optional[str] = None
    element_html: Optional[str] = None      # Truncated outerHTML
    bounding_box: Optional[BoundingBox] = None
    details: Optional[str] = None
    expected_behavior: Optional[str] = None
    location_description: Optional[str] = None
    page_url: Optional[str] = None
    friendly_name: Optional[str] = None
    wcag_criteria: Optional[str] = None     # Standards reference
    suggested_fix: Optional[str] = None
    priority_score: Optional[int] = None    # 0-100, set after scoring

    def __post_init__(self):
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, 'severity', Severity(self.severity))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Finding':
        """Build a Finding from a plain record (as returned by in-page inspection)."""
        box = data.get('bounding_box') or data.get('boundingBox')
        return cls(
            code=data['code'],
            severity=Severity(data['severity']),
            message=data.get('message', ''),
            selector=data.get('selector'),
            element_html=data.get('element_html') or data.get('elementHtml'),
            bounding_box=BoundingBox(**box) if box else None,
            details=data.get('details'),
            expected_behavior=data.get('expected_behavior') or data.get('expectedBehavior'),
            location_description=data.get('location_description') or data.get('locationDescription'),
            page_url=data.get('page_url'),
            wcag_criteria=data.get('wcag_criteria') or data.get('wcagCriteria'),
            suggested_fix=data.get('suggested_fix') or data.get('suggestedFix'),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['severity'] = self.severity.value
        return data


@dataclass
class PageMetrics:
    load_time_ms: int = 0
    dom_size: int = 0
    console_errors: int = 0


@dataclass
class PageResult:
    """
    Outcome of scanning one URL.

    Findings are ordered by descending priority.
    """
    url: str
    score: int
    timestamp: str
    findings: List[Finding] = field(default_factory=list)
    metrics: PageMetrics = field(default_factory=PageMetrics)
    links: List[str] = field(default_factory=list)
    screenshot: Optional[str] = None    # data:image/jpeg;base64,...

    def count(self, severity: Severity) -> int:
        return sum(1 for f in self.findings if f.severity == severity)

    @property
    def critical_count(self) -> int:
        return self.count(Severity.CRITICAL)

    @property
    def major_count(self) -> int:
        return self.count(Severity.MAJOR)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'score': self.score,
            'timestamp': self.timestamp,
            'screenshot': self.screenshot,
            'findings': [f.to_dict() for f in self.findings],
            'metrics': asdict(self.metrics),
            'links': list(self.links),
        }


@dataclass
class PageScore:
    url: str
    score: int
    bug_count: Dict[str, int] = field(default_factory=dict)


@dataclass
class BugCluster:
    """All findings of one code across a crawl."""
    code: str
    friendly_name: str
    severity: Severity
    count: int
    pages: List[str] = field(default_factory=list)
    description: str = ""


@dataclass
class CrawlResult:
    """
    Aggregated result of crawling a site.

    `results` holds pages in scan completion order, not discovery order.
    """
    root_url: str
    pages_scanned: int = 0
    total_pages_found: int = 0
    aggregated_score: int = 100
    results: List[PageResult] = field(default_factory=list)
    scan_duration_ms: Optional[int] = None
    page_scores: List[PageScore] = field(default_factory=list)
    bug_clusters: List[BugCluster] = field(default_factory=list)
    cancelled: bool = False

    @property
    def all_findings(self) -> List[Finding]:
        return [f for page in self.results for f in page.findings]

    def to_dict(self) -> Dict[str, Any]:
        clusters = []
        for cluster in self.bug_clusters:
            data = asdict(cluster)
            data['severity'] = cluster.severity.value
            clusters.append(data)
        return {
            'root_url': self.root_url,
            'pages_scanned': self.pages_scanned,
            'total_pages_found': self.total_pages_found,
            'aggregated_score': self.aggregated_score,
            'scan_duration_ms': self.scan_duration_ms,
            'cancelled': self.cancelled,
            'page_scores': [asdict(p) for p in self.page_scores],
            'bug_clusters': clusters,
            'results': [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int
    label: str
    is_mobile: bool = False
    device_scale_factor: Optional[float] = None


def default_viewports() -> List[Viewport]:
    return [Viewport(w, h, label, mobile) for w, h, label, mobile in DEFAULT_VIEWPORTS]


@dataclass
class DetectorConfig:
    """Which checks run and how each page is rendered."""
    check_layout: bool = True
    check_interaction: bool = True
    check_accessibility: bool = True
    check_typo: bool = True
    check_visual: bool = True
    viewports: List[Viewport] = field(default_factory=list)
    max_bugs_per_category: int = MAX_BUGS_PER_CATEGORY
    screenshot_quality: int = DEFAULT_SCREENSHOT_QUALITY
    custom_whitelist: List[str] = field(default_factory=list)

    def resolved_viewports(self) -> List[Viewport]:
        """Configured viewports, or the desktop/tablet/mobile defaults when unset."""
        return list(self.viewports) if self.viewports else default_viewports()


PathPattern = Union[str, Pattern]


@dataclass
class CrawlOptions:
    max_depth: int = DEFAULT_CRAWL_DEPTH
    max_pages: int = DEFAULT_MAX_PAGES
    include_sitemap: bool = True
    allowed_path_patterns: List[PathPattern] = field(default_factory=list)
    excluded_path_patterns: List[PathPattern] = field(default_factory=list)
    request_delay: float = DEFAULT_REQUEST_DELAY    # seconds between batches
    concurrency: int = DEFAULT_CONCURRENCY

    def __post_init__(self):
        self.allowed_path_patterns = [_compile(p) for p in self.allowed_path_patterns]
        self.excluded_path_patterns = [_compile(p) for p in self.excluded_path_patterns]


def _compile(pattern: PathPattern) -> Pattern:
    return re.compile(pattern) if isinstance(pattern, str) else pattern
