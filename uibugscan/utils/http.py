"""
HTTP client used for sitemap discovery and link status checks.

Page rendering goes through the browser driver; this client only covers the
plain requests the crawler and navigation check make on the side.
"""

import time
import threading
from collections import defaultdict
from urllib.parse import urlparse
from typing import Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from uibugscan.utils.logger import get_logger
from uibugscan.config import (
    REQUEST_TIMEOUT,
    MAX_RETRIES,
    USER_AGENT,
    HTTP_REQUEST_DELAY,
    VERIFY_SSL,
    FOLLOW_REDIRECTS,
    CIRCUIT_BREAKER_THRESHOLD,
)

logger = get_logger(__name__)


class HTTPClient:
    """
    Wrapper around requests.Session with retry logic, rate limiting and a
    per-endpoint circuit breaker.

    Failed requests return None instead of raising, so callers can treat a
    missing sitemap or an unreachable link as "no data".
    """

    def __init__(
        self,
        timeout: int = None,
        max_retries: int = None,
        user_agent: Optional[str] = None,
        request_delay: float = None,
        verify_ssl: bool = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize HTTP client with session and retry configuration.

        Args:
            timeout: Request timeout in seconds (default from config)
            max_retries: Maximum number of retries on failure (default from config)
            user_agent: Custom User-Agent header (default from config)
            request_delay: Delay between requests in seconds (default from config)
            verify_ssl: Whether to verify SSL certificates (default from config)
            headers: Optional additional headers
        """
        self.timeout = timeout if timeout is not None else REQUEST_TIMEOUT
        self.request_delay = request_delay if request_delay is not None else HTTP_REQUEST_DELAY
        self.request_count = 0
        self._last_request_time = 0.0
        self._rate_lock = threading.Lock()

        # Circuit breaker: consecutive failures per host + path
        self._failure_counts: Dict[str, int] = defaultdict(int)
        self._failure_lock = threading.Lock()

        self.session = requests.Session()
        self.session.verify = verify_ssl if verify_ssl is not None else VERIFY_SSL

        retries = max_retries if max_retries is not None else MAX_RETRIES
        retry_strategy = Retry(
            total=retries,
            backoff_factor=0.5,
            status_forcelist=[429, 502, 503, 504],
            allowed_methods=["HEAD", "GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            'User-Agent': user_agent or USER_AGENT,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        })
        if headers:
            self.session.headers.update(headers)

    def _circuit_key(self, url: str) -> str:
        parsed = urlparse(url)
        return f"{parsed.netloc}{parsed.path}" if parsed.netloc else url

    def _is_circuit_open(self, url: str) -> bool:
        with self._failure_lock:
            return self._failure_counts[self._circuit_key(url)] >= CIRCUIT_BREAKER_THRESHOLD

    def _record_failure(self, url: str):
        key = self._circuit_key(url)
        with self._failure_lock:
            self._failure_counts[key] += 1
            count = self._failure_counts[key]
        if count == CIRCUIT_BREAKER_THRESHOLD:
            logger.warning(f"Circuit breaker tripped for {key}; skipping further requests")

    def _record_success(self, url: str):
        with self._failure_lock:
            self._failure_counts.pop(self._circuit_key(url), None)

    def _rate_limit(self):
        """Enforce rate limiting between requests."""
        with self._rate_lock:
            if self.request_delay > 0:
                elapsed = time.monotonic() - self._last_request_time
                if elapsed < self.request_delay:
                    time.sleep(self.request_delay - elapsed)
            self._last_request_time = time.monotonic()

    def _request(self, method: str, url: str, **kwargs) -> Optional[requests.Response]:
        if self._is_circuit_open(url):
            logger.debug(f"Circuit open, skipping {method} {url}")
            return None

        self._rate_limit()
        try:
            self.request_count += 1
            response = self.session.request(
                method,
                url,
                timeout=self.timeout,
                allow_redirects=FOLLOW_REDIRECTS,
                **kwargs
            )
            self._record_success(url)
            return response
        except requests.exceptions.RequestException as e:
            self._record_failure(url)
            logger.warning(f"{method} request failed for {url}: {e}")
            return None

    def get(self, url: str, **kwargs) -> Optional[requests.Response]:
        """
        Perform GET request with error handling and rate limiting.

        Returns:
            Response object or None if request failed
        """
        return self._request("GET", url, **kwargs)

    def head(self, url: str, **kwargs) -> Optional[requests.Response]:
        """
        Perform HEAD request with error handling and rate limiting.

        Returns:
            Response object or None if request failed
        """
        return self._request("HEAD", url, **kwargs)

    def close(self):
        """Close the session and release resources."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
