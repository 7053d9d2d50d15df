"""
Site crawler.

Breadth-first crawl of a single origin: the frontier is seeded with the
start URL (and sitemap entries), drained in batches of `concurrency` pages
scanned in parallel, and grown with the same-origin links each scanned page
reports. Frontier state is only touched by the crawling thread, between
batches.
"""

import threading
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Callable, Deque, List, Optional, Set

from uibugscan.config import SITEMAP_PATH, MAX_CONCURRENCY
from uibugscan.crawler.sitemap import resolve_sitemap
from uibugscan.crawler.urls import normalize_url, origin_of, should_crawl, relative_path
from uibugscan.engine.orchestrator import PageScanner
from uibugscan.engine.scoring import aggregate_score, build_page_scores, build_bug_clusters
from uibugscan.exceptions import DriverLaunchError, InvalidURLError
from uibugscan.models.finding import CrawlOptions, CrawlResult, DetectorConfig
from uibugscan.utils.http import HTTPClient
from uibugscan.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FrontierEntry:
    url: str
    depth: int


@dataclass
class CrawlProgress:
    """Snapshot passed to progress callbacks."""
    current_page: str
    pages_scanned: int
    total_pages_queued: int
    current_depth: int
    status: str         # crawling, scanning, complete or error


ProgressCallback = Callable[[CrawlProgress], None]


class CrawlFrontier:
    """
    Queue of pages still to scan plus the visited and discovered sets.

    `visited` holds every URL ever scheduled and never shrinks, so each
    canonical URL is scanned at most once. `discovered` additionally holds
    links that were seen but not scheduled (policy or depth), and is only
    used to report how many pages the site exposes.
    """

    def __init__(self, base_origin: str, max_depth: int, options: Optional[CrawlOptions] = None):
        self.base_origin = base_origin
        self.max_depth = max_depth
        self.options = options or CrawlOptions()
        self.queue: Deque[FrontierEntry] = deque()
        self.visited: Set[str] = set()
        self.discovered: Set[str] = set()

    def __len__(self) -> int:
        return len(self.queue)

    def add(self, url: str, depth: int, apply_policy: bool = True) -> bool:
        """
        Schedule a URL if it is new, crawlable and within the depth limit.

        Args:
            url: Absolute or origin-relative URL
            depth: Link distance from the start page
            apply_policy: Set False for the start URL, which is always scanned

        Returns:
            True if the URL was queued
        """
        normalized = normalize_url(url, self.base_origin)
        if not normalized:
            return False
        self.discovered.add(normalized)

        if normalized in self.visited or depth > self.max_depth:
            return False
        if apply_policy and not should_crawl(normalized, self.base_origin, self.options):
            return False

        self.visited.add(normalized)
        self.queue.append(FrontierEntry(normalized, depth))
        return True

    def next_batch(self, size: int, budget: int) -> List[FrontierEntry]:
        """Pop up to min(size, budget) entries in FIFO order."""
        batch = []
        while self.queue and len(batch) < min(size, budget):
            entry = self.queue.popleft()
            if entry.depth <= self.max_depth:
                batch.append(entry)
        return batch


class SiteCrawler:
    """
    Crawls a site and scans every reachable page within the page budget.

    Args:
        scanner: PageScanner used for each page (a default one if omitted)
        on_progress: Optional callback receiving CrawlProgress snapshots
        http_client: Client used to fetch the sitemap
    """

    def __init__(
        self,
        scanner: Optional[PageScanner] = None,
        on_progress: Optional[ProgressCallback] = None,
        http_client: Optional[HTTPClient] = None,
    ):
        self.scanner = scanner or PageScanner()
        self.on_progress = on_progress
        self.http_client = http_client
        self._cancel_event = threading.Event()

    def cancel(self):
        """Stop after the batch currently being scanned."""
        logger.info("[Crawler] Cancellation requested")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _report(self, progress: CrawlProgress):
        if self.on_progress is None:
            return
        try:
            self.on_progress(progress)
        except Exception as e:
            logger.error(f"[Crawler] Progress callback error: {e}")

    def _seed_from_sitemap(self, frontier: CrawlFrontier) -> int:
        sitemap_url = f"{frontier.base_origin}{SITEMAP_PATH}"
        logger.info(f"[Crawler] Attempting to fetch sitemap from {sitemap_url}")
        urls = resolve_sitemap(sitemap_url, self.http_client)
        added = sum(1 for url in urls if frontier.add(url, 1))
        logger.info(f"[Crawler] Added {added} of {len(urls)} URLs from sitemap")
        return added

    def crawl(
        self,
        start_url: str,
        config: Optional[DetectorConfig] = None,
        max_pages: Optional[int] = None,
        max_depth: Optional[int] = None,
        options: Optional[CrawlOptions] = None,
    ) -> CrawlResult:
        """
        Crawl a site breadth-first, scanning pages in parallel batches.

        Args:
            start_url: Absolute http(s) URL to start from
            config: Detector configuration applied to every page
            max_pages: Page budget (overrides options.max_pages)
            max_depth: Link depth limit (overrides options.max_depth)
            options: Concurrency, delay, sitemap and path-pattern settings

        Returns:
            CrawlResult with pages in scan completion order

        Raises:
            InvalidURLError: start_url is not an absolute http(s) URL
            DriverLaunchError: the browser could not be started
        """
        options = options or CrawlOptions()
        if max_pages is not None or max_depth is not None:
            options = replace(
                options,
                max_pages=options.max_pages if max_pages is None else max_pages,
                max_depth=options.max_depth if max_depth is None else max_depth,
            )
        config = config or DetectorConfig()

        root_url = normalize_url(start_url)
        if not root_url:
            raise InvalidURLError(start_url)

        self._cancel_event.clear()
        started = time.monotonic()
        frontier = CrawlFrontier(origin_of(root_url), options.max_depth, options)
        frontier.add(root_url, 0, apply_policy=False)

        self._report(CrawlProgress(relative_path(root_url), 0, 1, 0, 'crawling'))
        if options.include_sitemap:
            self._seed_from_sitemap(frontier)

        concurrency = max(1, min(options.concurrency, MAX_CONCURRENCY))
        result = CrawlResult(root_url=root_url)

        with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="scan") as pool:
            while frontier and len(result.results) < options.max_pages:
                if self.cancelled:
                    logger.info("[Crawler] Crawl cancelled by user")
                    break

                batch = frontier.next_batch(concurrency, options.max_pages - len(result.results))
                if not batch:
                    break

                self._report(CrawlProgress(
                    current_page=', '.join(relative_path(e.url) for e in batch),
                    pages_scanned=len(result.results),
                    total_pages_queued=len(frontier) + len(result.results) + len(batch),
                    current_depth=batch[0].depth,
                    status='scanning',
                ))
                logger.info(f"[Crawler] Scanning batch of {len(batch)} pages in parallel")

                self._scan_batch(pool, batch, config, frontier, result)

                if options.request_delay > 0 and frontier and len(result.results) < options.max_pages:
                    self._cancel_event.wait(options.request_delay)

        result.pages_scanned = len(result.results)
        result.total_pages_found = len(frontier.discovered)
        result.aggregated_score = aggregate_score(result.results)
        result.scan_duration_ms = int((time.monotonic() - started) * 1000)
        result.page_scores = build_page_scores(result.results)
        result.bug_clusters = build_bug_clusters(result.results)
        result.cancelled = self.cancelled

        self._report(CrawlProgress('', result.pages_scanned, result.pages_scanned, 0, 'complete'))
        logger.info(
            f"[Crawler] Crawl complete: {result.pages_scanned} pages scanned, "
            f"{result.total_pages_found} found, score {result.aggregated_score}"
        )
        return result

    def _scan_batch(
        self,
        pool: ThreadPoolExecutor,
        batch: List[FrontierEntry],
        config: DetectorConfig,
        frontier: CrawlFrontier,
        result: CrawlResult,
    ):
        future_map = {pool.submit(self.scanner.scan, entry.url, config): entry for entry in batch}

        for future in as_completed(future_map):
            entry = future_map[future]
            try:
                page = future.result()
            except DriverLaunchError:
                raise
            except Exception as e:
                logger.error(f"[Crawler] Failed to scan {entry.url}: {e}")
                continue

            result.results.append(page)
            if entry.depth < frontier.max_depth:
                queued = sum(1 for link in page.links if frontier.add(link, entry.depth + 1))
                if queued:
                    logger.debug(f"[Crawler] {entry.url}: queued {queued} new links")
