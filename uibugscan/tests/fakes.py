"""
In-memory stand-ins for the browser and the page scanner.
"""

import threading
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional

from uibugscan.checks.base import BaseCheck
from uibugscan.exceptions import NavigationError
from uibugscan.models.finding import Finding, PageMetrics, PageResult
from uibugscan.utils.browser import PageSession, RenderingDriver


class FakePage(PageSession):
    """
    Page whose inspection results are looked up by script text.

    `responses` maps a script to a value or to a callable taking the
    evaluate() argument.
    """

    def __init__(
        self,
        url: str,
        responses: Optional[Dict[str, object]] = None,
        html: str = "<html><body></body></html>",
        console_errors: Optional[List[str]] = None,
        screenshot_bytes: bytes = b"\xff\xd8jpeg",
        fail_navigation: bool = False,
    ):
        self._url = url
        self.responses = responses or {}
        self.html = html
        self._console_errors = list(console_errors or [])
        self.screenshot_bytes = screenshot_bytes
        self.fail_navigation = fail_navigation
        self.visited: List[str] = []

    @property
    def url(self) -> str:
        return self._url

    @property
    def console_errors(self) -> List[str]:
        return list(self._console_errors)

    def goto(self, url: str, timeout_ms: int) -> None:
        if self.fail_navigation:
            raise NavigationError(url, "net::ERR_NAME_NOT_RESOLVED")
        self.visited.append(url)

    def wait_for_network_idle(self, timeout_ms: int) -> bool:
        return True

    def evaluate(self, script: str, arg=None):
        value = self.responses.get(script)
        return value(arg) if callable(value) else value

    def screenshot(self, quality: int) -> bytes:
        return self.screenshot_bytes

    def content(self) -> str:
        return self.html


class FakeDriver(RenderingDriver):
    """Hands out one FakePage per viewport and records the context lifecycle."""

    def __init__(self, page_factory: Callable[[object], FakePage]):
        self.page_factory = page_factory
        self.opened = []
        self.released = []
        self.closed = False

    @contextmanager
    def open_page(self, viewport):
        page = self.page_factory(viewport)
        self.opened.append(viewport.label)
        try:
            yield page
        finally:
            self.released.append(viewport.label)

    def close(self) -> None:
        self.closed = True


class StubCheck(BaseCheck):
    """Check returning canned findings, optionally per viewport label."""

    def __init__(self, findings=None, name="Stub", full_page_only=False, error=None):
        self.findings = findings or []
        self.name = name
        self.full_page_only = full_page_only
        self.error = error
        self.calls: List[str] = []
        self.closed = False

    @property
    def check_name(self) -> str:
        return self.name

    def run(self, page, viewport_label):
        self.calls.append(viewport_label)
        if self.error is not None:
            raise self.error
        if callable(self.findings):
            return self.findings(viewport_label)
        return list(self.findings)

    def close(self) -> None:
        self.closed = True


class FakeScanner:
    """
    PageScanner replacement backed by a dict of url -> outgoing links.

    URLs listed in `failing` raise NavigationError; `scores` overrides the
    default score of 100 per URL.
    """

    def __init__(self, site: Dict[str, List[str]], failing=(), scores=None, error=None):
        self.site = site
        self.failing = set(failing)
        self.scores = scores or {}
        self.error = error
        self.scanned: List[str] = []
        self._lock = threading.Lock()

    def scan(self, url, config=None):
        with self._lock:
            self.scanned.append(url)
        if self.error is not None:
            raise self.error
        if url in self.failing:
            raise NavigationError(url, "timeout")
        return PageResult(
            url=url,
            score=self.scores.get(url, 100),
            timestamp="2024-01-01T00:00:00.000Z",
            findings=[],
            metrics=PageMetrics(),
            links=list(self.site.get(url, [])),
        )



class BarrierScanner(FakeScanner):
    """
    FakeScanner whose `rendezvous` URLs each block until all of them are
    being scanned at the same time.
    """

    def __init__(self, site, rendezvous, timeout=5.0, **kwargs):
        super().__init__(site, **kwargs)
        self.rendezvous = set(rendezvous)
        self.barrier = threading.Barrier(len(self.rendezvous), timeout=timeout)

    def scan(self, url, config=None):
        if url in self.rendezvous:
            self.barrier.wait()
        return super().scan(url, config)

def make_finding(code="LAYOUT_OVERFLOW", severity="major", message="Element overflows", **kwargs) -> Finding:
    return Finding(code=code, severity=severity, message=message, **kwargs)
