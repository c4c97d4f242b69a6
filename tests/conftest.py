"""Shared fixtures: an in-memory site driven through the BrowserDriver protocol."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional
from urllib.parse import urljoin

import pytest

from flowcap.exceptions import LinkDiscoveryFailure, PageLoadFailure
from flowcap.manifest import ManifestStore
from flowcap.recorder import StepRecorder


class FakeSite:
    """Stand-in for a browser session over a fixed link graph.

    ``pages`` maps a URL to the raw hrefs found on it. URLs listed in
    ``failing`` fail to load; pages in ``broken_links`` fail link discovery.
    Unknown URLs load as pages without links.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, List[str]]] = None,
        failing: Iterable[str] = (),
        broken_links: Iterable[str] = (),
        fail_screenshots: bool = False,
    ):
        self.pages = pages or {}
        self.failing = set(failing)
        self.broken_links = set(broken_links)
        self.fail_screenshots = fail_screenshots
        self.url = "about:blank"
        self.visits: List[str] = []
        self.screenshots: List[tuple] = []
        self.clicks: List[str] = []
        self.scrolls: List[int] = []
        self.waits: List[int] = []
        self.entered = 0
        self.exited = 0

    async def __aenter__(self) -> "FakeSite":
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited += 1

    async def navigate(self, url, wait_until=None, timeout=None):
        self.visits.append(url)
        if url in self.failing:
            raise PageLoadFailure(url, "net::ERR_CONNECTION_REFUSED")
        self.url = url

    def current_url(self) -> str:
        return self.url

    async def screenshot(self, path, full_page=False):
        if self.fail_screenshots:
            raise OSError("No space left on device")
        Path(path).write_bytes(b"\x89PNG\r\n\x1a\n")
        self.screenshots.append((Path(path), full_page))

    async def enumerate_links(self) -> List[str]:
        if self.url in self.broken_links:
            raise LinkDiscoveryFailure("Execution context was destroyed")
        return [urljoin(self.url, href) for href in self.pages.get(self.url, [])]

    async def scroll_by(self, pixels):
        self.scrolls.append(pixels)

    async def wait_ms(self, ms):
        self.waits.append(ms)

    async def click(self, selector):
        self.clicks.append(selector)


@pytest.fixture
def site():
    """A small site: home links to two sections, each with one sub page."""
    return FakeSite({
        "https://example.com/": ["/about", "/blog", "https://other.com/", "mailto:hi@example.com"],
        "https://example.com/about": ["/about/team", "/"],
        "https://example.com/blog": ["/blog/first-post", "/about"],
    })


@pytest.fixture
def store(tmp_path):
    return ManifestStore(tmp_path / "captures")


@pytest.fixture
def recorder(tmp_path):
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    return StepRecorder(project_dir)
