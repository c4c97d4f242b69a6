"""Breadth-first site crawl that captures one screenshot per page."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Iterable, List, Optional, Set

from flowcap.constants import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    DEFAULT_NAVIGATION_TIMEOUT,
    DEFAULT_WAIT_UNTIL,
)
from flowcap.exceptions import InvalidSeedURL, PageLoadFailure
from flowcap.models import Step
from flowcap.recorder import StepRecorder
from flowcap.urls import is_admissible, normalize_url, origin_of
from flowcap.utils.text import step_name_from_url

logger = logging.getLogger(__name__)


@dataclass
class QueueItem:
    """A frontier entry waiting to be visited."""

    url: str
    depth: int
    parent_url: Optional[str] = None


@dataclass
class CrawlNode:
    """Edge map entry for a captured page."""

    parent_url: Optional[str]
    depth: int
    step: Step
    children: List[str] = field(default_factory=list)


@dataclass
class CrawlResult:
    """Outcome of one crawl run."""

    seed_url: str
    edge_map: Dict[str, CrawlNode]
    captured_count: int
    failures: Dict[str, PageLoadFailure] = field(default_factory=dict)

    @property
    def seed_failed(self) -> bool:
        return self.seed_url in self.failures


class CrawlScheduler:
    """Crawls a site using breadth-first search (BFS).

    Processes pages level by level:
    - depth 0: the seed page
    - depth 1: all admissible pages linked from the seed
    - depth 2: all admissible pages linked from depth 1
    - etc.

    Each visited page is captured through the StepRecorder and recorded in an
    edge map keyed by normalized URL, from which the flow tree is built once
    the walk ends. A page is never visited twice, at most ``max_pages`` pages
    are captured and no page deeper than ``max_depth`` is visited.
    """

    def __init__(
        self,
        driver,
        recorder: StepRecorder,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_pages: int = DEFAULT_MAX_PAGES,
        exclude_patterns: Iterable[str] = (),
        navigation_timeout: int = DEFAULT_NAVIGATION_TIMEOUT,
        wait_until: str = DEFAULT_WAIT_UNTIL,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
    ):
        """Initialize the crawl scheduler.

        Args:
            driver: BrowserDriver used for navigation, capture and link discovery
            recorder: StepRecorder shared with the rest of the run
            max_depth: Maximum link depth from the seed page
            max_pages: Maximum number of pages to capture
            exclude_patterns: URL substrings that exclude a link from the crawl
            navigation_timeout: Page load timeout in milliseconds
            wait_until: Navigation wait condition passed to the driver
            on_progress: Optional callback (pages_captured, max_pages, url)
        """
        self.driver = driver
        self.recorder = recorder
        self.max_depth = max_depth
        self.max_pages = max_pages
        self.exclude_patterns = [p for p in exclude_patterns if p]
        self.navigation_timeout = navigation_timeout
        self.wait_until = wait_until
        self.on_progress = on_progress

        self.queue: Deque[QueueItem] = deque()
        self.visited_urls: Set[str] = set()
        self.edge_map: Dict[str, CrawlNode] = {}
        self.failures: Dict[str, PageLoadFailure] = {}
        self.captured_count = 0

    async def crawl(self, seed_url: str) -> CrawlResult:
        """Crawl the site reachable from ``seed_url``.

        Args:
            seed_url: The starting URL

        Returns:
            CrawlResult holding the edge map and the captured page count

        Raises:
            InvalidSeedURL: If the seed cannot be normalized
            CaptureFailure: If a screenshot cannot be written
        """
        seed = normalize_url(seed_url)
        base_origin = origin_of(seed) if seed else None
        if seed is None or base_origin is None:
            raise InvalidSeedURL(seed_url)

        logger.info(
            f"Starting crawl from {seed} (max depth {self.max_depth}, max pages {self.max_pages})"
        )
        if self.exclude_patterns:
            logger.info(f"Exclude patterns: {', '.join(self.exclude_patterns)}")

        self.queue.append(QueueItem(seed, 0, None))
        self.visited_urls.add(seed)

        while self.queue and self.captured_count < self.max_pages:
            item = self.queue.popleft()
            logger.info(
                f"[{self.captured_count + 1}/{self.max_pages}] Depth {item.depth}: {item.url}"
            )

            if not await self._load(item.url):
                continue

            step = await self.recorder.capture(self.driver, step_name_from_url(item.url))
            self.captured_count += 1
            self._record_edge(item, step)

            if self.on_progress:
                self.on_progress(self.captured_count, self.max_pages, item.url)

            if item.depth < self.max_depth and self.captured_count < self.max_pages:
                links = await self._discover_links(base_origin)
                self._enqueue(links, item)

        logger.info(f"Crawl complete: captured {self.captured_count} page(s)")

        return CrawlResult(
            seed_url=seed,
            edge_map=self.edge_map,
            captured_count=self.captured_count,
            failures=dict(self.failures),
        )

    async def _load(self, url: str) -> bool:
        """Navigate to ``url``; log and report False on failure."""
        try:
            await self.driver.navigate(url, wait_until=self.wait_until, timeout=self.navigation_timeout)
        except PageLoadFailure as e:
            failure = e
        except Exception as e:
            failure = PageLoadFailure(url, e)
        else:
            return True

        logger.warning(f"Skipping {url}: {failure.reason}")
        self.failures[url] = failure
        return False

    def _record_edge(self, item: QueueItem, step: Step) -> None:
        self.edge_map[item.url] = CrawlNode(
            parent_url=item.parent_url,
            depth=item.depth,
            step=step,
        )
        if item.parent_url and item.parent_url in self.edge_map:
            self.edge_map[item.parent_url].children.append(item.url)

    async def _discover_links(self, base_origin: str) -> List[str]:
        """Admissible, normalized links on the current page in discovery order.

        A page whose links cannot be read counts as having none.
        """
        try:
            raw_links = await self.driver.enumerate_links()
        except Exception as e:
            logger.warning(f"Error discovering links: {e}")
            return []

        links: List[str] = []
        seen: Set[str] = set()
        for raw in raw_links:
            normalized = normalize_url(raw)
            if normalized is None or normalized in seen:
                continue
            if is_admissible(normalized, base_origin, self.exclude_patterns):
                seen.add(normalized)
                links.append(normalized)
        return links

    def _enqueue(self, links: List[str], parent: QueueItem) -> int:
        """Queue unvisited links one level below ``parent``.

        The queue is never allowed to grow past the remaining page budget.

        Returns:
            Number of links queued
        """
        queued = 0
        for link in links:
            if self.captured_count + len(self.queue) >= self.max_pages:
                break
            if link in self.visited_urls:
                continue
            self.visited_urls.add(link)
            self.queue.append(QueueItem(link, parent.depth + 1, parent.url))
            queued += 1

        if queued:
            logger.debug(f"Queued {queued} new link(s) at depth {parent.depth + 1}")
        return queued
