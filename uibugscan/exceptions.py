"""
Exception hierarchy for the UI bug scanner.

Only InvalidURLError and DriverLaunchError reach the caller of a crawl.
NavigationError is scoped to a single page and absorbed by the crawler.
"""


class ScannerError(Exception):
    """Base class for all scanner errors."""


class InvalidURLError(ScannerError, ValueError):
    """The start URL could not be parsed or is not http(s)."""

    def __init__(self, url: str):
        super().__init__(f"Invalid URL: {url!r}")
        self.url = url


class NavigationError(ScannerError):
    """Navigating to a page failed (DNS, connection, hard timeout)."""

    def __init__(self, url: str, reason: str = ""):
        message = f"Navigation to {url} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url
        self.reason = reason


class DriverLaunchError(ScannerError):
    """The rendering driver (browser) could not be started."""
