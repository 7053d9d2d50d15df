"""
Data models for the UI bug scanner.
"""

from uibugscan.models.finding import (
    Severity, BoundingBox, Finding, PageMetrics, PageResult, PageScore,
    BugCluster, CrawlResult, Viewport, DetectorConfig, CrawlOptions,
    default_viewports,
)

__all__ = [
    'Severity', 'BoundingBox', 'Finding', 'PageMetrics', 'PageResult',
    'PageScore', 'BugCluster', 'CrawlResult', 'Viewport', 'DetectorConfig',
    'CrawlOptions', 'default_viewports',
]
