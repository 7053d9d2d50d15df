"""
Rendering driver used by the scan orchestrator.

The orchestrator and the check plugins only talk to the abstract
RenderingDriver / PageSession interfaces. PlaywrightDriver is the default
implementation: one headless Chromium per driver, and one isolated browser
context (own cookies and cache) per opened page.

Playwright's sync API is bound to the thread that started it, so every scan
creates its own driver inside its worker thread.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, List

from playwright.sync_api import sync_playwright, Error as PlaywrightError

from uibugscan.config import (
    CONSOLE_NOISE_PATTERNS, DESKTOP_USER_AGENT, MOBILE_USER_AGENT,
)
from uibugscan.exceptions import DriverLaunchError, NavigationError
from uibugscan.models.finding import Viewport
from uibugscan.utils.logger import get_logger

logger = get_logger(__name__)


def is_console_noise(message: str) -> bool:
    """True for console errors that are not actionable (failed resource loads etc.)."""
    return any(pattern in message for pattern in CONSOLE_NOISE_PATTERNS)


class PageSession(ABC):
    """
    A live page rendered at one viewport.

    Check plugins receive this handle and may only inspect the page through it.
    """

    @property
    @abstractmethod
    def url(self) -> str:
        """Current page URL (after redirects)."""
        ...

    @property
    @abstractmethod
    def console_errors(self) -> List[str]:
        """Page-level script and console errors observed so far."""
        ...

    @abstractmethod
    def goto(self, url: str, timeout_ms: int) -> None:
        """
        Navigate to url.

        Raises:
            NavigationError: DNS, connection or hard timeout failure
        """
        ...

    @abstractmethod
    def wait_for_network_idle(self, timeout_ms: int) -> bool:
        """Wait for network activity to settle. Returns False on timeout, never raises."""
        ...

    @abstractmethod
    def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run read-only inspection logic in the page and return its JSON result."""
        ...

    @abstractmethod
    def screenshot(self, quality: int) -> bytes:
        """Full-page JPEG screenshot."""
        ...

    @abstractmethod
    def content(self) -> str:
        """Serialized HTML of the rendered DOM."""
        ...


class RenderingDriver(ABC):
    """
    Owns a browser for the duration of one page scan.

    Use as a context manager so the browser is released on every exit path.
    """

    @abstractmethod
    def open_page(self, viewport: Viewport):
        """Context manager yielding a PageSession in a fresh isolated context."""
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class PlaywrightPage(PageSession):
    """PageSession backed by a playwright.sync_api.Page."""

    def __init__(self, page):
        self._page = page
        self._errors: List[str] = []
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)

    def _on_console(self, message):
        if message.type == "error" and not is_console_noise(message.text):
            self._errors.append(message.text)

    def _on_page_error(self, error):
        self._errors.append(getattr(error, "message", str(error)))

    @property
    def url(self) -> str:
        return self._page.url

    @property
    def console_errors(self) -> List[str]:
        return list(self._errors)

    def goto(self, url: str, timeout_ms: int) -> None:
        try:
            self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightError as e:
            raise NavigationError(url, str(e).splitlines()[0]) from e

    def wait_for_network_idle(self, timeout_ms: int) -> bool:
        try:
            self._page.wait_for_load_state("networkidle", timeout=timeout_ms)
            return True
        except PlaywrightError:
            logger.debug(f"Network still active on {self.url}, proceeding with scan")
            return False

    def evaluate(self, script: str, arg: Any = None) -> Any:
        if arg is None:
            return self._page.evaluate(script)
        return self._page.evaluate(script, arg)

    def screenshot(self, quality: int) -> bytes:
        return self._page.screenshot(full_page=True, type="jpeg", quality=quality)

    def content(self) -> str:
        return self._page.content()


class PlaywrightDriver(RenderingDriver):
    """
    Headless Chromium driver.

    Args:
        headless: Run without a visible window
        browser_name: chromium, firefox or webkit
    """

    def __init__(self, headless: bool = True, browser_name: str = "chromium"):
        try:
            self._playwright = sync_playwright().start()
        except Exception as e:
            raise DriverLaunchError(f"Could not start Playwright: {e}") from e

        try:
            browser_type = getattr(self._playwright, browser_name)
            self._browser = browser_type.launch(headless=headless)
        except Exception as e:
            self._playwright.stop()
            raise DriverLaunchError(
                f"Could not launch {browser_name}: {e}. "
                f"Install browsers with: python -m playwright install {browser_name}"
            ) from e

    @staticmethod
    def context_options(viewport: Viewport) -> dict:
        """Browser context options emulating the viewport's device."""
        scale = viewport.device_scale_factor or (3 if viewport.is_mobile else 1)
        return {
            "viewport": {"width": viewport.width, "height": viewport.height},
            "device_scale_factor": scale,
            "is_mobile": viewport.is_mobile,
            "has_touch": viewport.is_mobile,
            "user_agent": MOBILE_USER_AGENT if viewport.is_mobile else DESKTOP_USER_AGENT,
        }

    @contextmanager
    def open_page(self, viewport: Viewport) -> Iterator[PageSession]:
        context = self._browser.new_context(**self.context_options(viewport))
        try:
            yield PlaywrightPage(context.new_page())
        finally:
            context.close()

    def close(self) -> None:
        try:
            self._browser.close()
        finally:
            self._playwright.stop()
