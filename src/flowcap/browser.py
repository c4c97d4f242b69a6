"""
Browser session for flow capture, backed by Playwright.

The capture core only talks to the BrowserDriver protocol below, so any
object providing these coroutines can drive a run (tests use an in-memory
fake site). BrowserSession is the Playwright implementation:

    async with BrowserSession(config) as session:
        await session.navigate("https://example.com")
        await session.screenshot(Path("001-home.png"))
"""
import logging
from pathlib import Path
from typing import List, Optional, Protocol

from bs4 import BeautifulSoup

from flowcap.browser_config import BrowserConfig
from flowcap.exceptions import LinkDiscoveryFailure, PageLoadFailure
from flowcap.urls import resolve_link

logger = logging.getLogger(__name__)


class BrowserDriver(Protocol):
    """Operations a capture run needs from a browser."""

    async def navigate(self, url: str, wait_until: Optional[str] = None,
                       timeout: Optional[int] = None) -> None: ...

    def current_url(self) -> str: ...

    async def screenshot(self, path: Path, full_page: bool = False) -> None: ...

    async def enumerate_links(self) -> List[str]: ...

    async def scroll_by(self, pixels: int) -> None: ...

    async def wait_ms(self, ms: int) -> None: ...

    async def click(self, selector: str) -> None: ...


def extract_links(html: str, base_url: str) -> List[str]:
    """Find anchor hrefs in rendered HTML, resolved against ``base_url``.

    Links are returned once each, in document order.

    Args:
        html: The HTML content to parse
        base_url: URL of the page the HTML came from

    Returns:
        List of absolute URLs
    """
    soup = BeautifulSoup(html, 'html.parser')
    links: List[str] = []
    seen = set()

    for a in soup.find_all('a', href=True):
        absolute_url = resolve_link(base_url, a['href'])
        if absolute_url and absolute_url not in seen:
            seen.add(absolute_url)
            links.append(absolute_url)

    return links


class BrowserSession:
    """
    Playwright-backed BrowserDriver driving a single page.

    Used as an async context manager that owns the browser lifecycle. With
    ``connect_chrome`` set it attaches to an already running Chrome over CDP
    and only disconnects on exit instead of closing the user's browser.
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        """
        Initialize the browser session.

        Args:
            config: BrowserConfig instance with session settings
        """
        self._config = config or BrowserConfig()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

        logger.debug(f"BrowserSession initialized with config: {self._config}")

    async def __aenter__(self) -> "BrowserSession":
        """Enter async context manager, launching or attaching to a browser."""
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise ImportError(
                "Playwright is required for flow capture. "
                "Install with: pip install playwright && playwright install chromium"
            )

        self._playwright = await async_playwright().start()

        try:
            if self._config.connect_chrome:
                await self._connect_over_cdp()
            else:
                await self._launch()
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise

        return self

    async def _launch(self) -> None:
        logger.info(f"Launching {self._config.browser_type} browser (headless={self._config.headless})")
        browser_launcher = getattr(self._playwright, self._config.browser_type)

        launch_options = {"headless": self._config.headless}
        if self._config.launch_args:
            launch_options["args"] = self._config.launch_args

        self._browser = await browser_launcher.launch(**launch_options)
        self._context = await self._browser.new_context(
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            }
        )
        self._page = await self._context.new_page()
        logger.info("Browser launched successfully")

    async def _connect_over_cdp(self) -> None:
        logger.info(f"Connecting to Chrome via CDP at {self._config.cdp_url}")
        try:
            self._browser = await self._playwright.chromium.connect_over_cdp(self._config.cdp_url)
        except Exception as e:
            logger.error(
                "Failed to connect to Chrome. Start it with --remote-debugging-port=9222"
            )
            raise RuntimeError(f"Could not connect to Chrome at {self._config.cdp_url}: {e}") from e

        contexts = self._browser.contexts
        if contexts:
            logger.info(f"Found {len(contexts)} existing context(s), using first one")
            self._context = contexts[0]
        else:
            self._context = await self._browser.new_context()
        self._page = await self._context.new_page()
        logger.info("Connected to Chrome")

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager, closing the page and browser."""
        if self._page and not self._config.connect_chrome:
            try:
                await self._page.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing page: {e}")
        self._page = None

        if self._browser:
            # For a CDP connection this disconnects without killing Chrome
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing browser: {e}")
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.info("Browser session closed")

    @property
    def page(self):
        if not self._page:
            raise RuntimeError(
                "Browser is not running. Use BrowserSession as an async context manager: "
                "async with BrowserSession(config) as session:"
            )
        return self._page

    async def navigate(self, url: str, wait_until: Optional[str] = None,
                       timeout: Optional[int] = None) -> None:
        """
        Navigate the page to ``url``.

        Raises:
            PageLoadFailure: If navigation errors or exceeds the timeout
        """
        try:
            await self.page.goto(
                url,
                wait_until=wait_until or self._config.wait_until,
                timeout=timeout or self._config.timeout,
            )
        except RuntimeError:
            raise
        except Exception as e:
            raise PageLoadFailure(url, e) from e

    def current_url(self) -> str:
        return self.page.url

    async def screenshot(self, path: Path, full_page: bool = False) -> None:
        await self.page.screenshot(path=str(path), full_page=full_page)

    async def enumerate_links(self) -> List[str]:
        """
        List the resolved hrefs of all anchors on the current page.

        Raises:
            LinkDiscoveryFailure: If the rendered DOM could not be read
        """
        try:
            html = await self.page.content()
        except Exception as e:
            raise LinkDiscoveryFailure(f"Could not read page content: {e}") from e
        return extract_links(html, self.page.url)

    async def scroll_by(self, pixels: int) -> None:
        await self.page.evaluate("(p) => window.scrollBy(0, p)", pixels)

    async def wait_ms(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)

    async def click(self, selector: str) -> None:
        await self.page.click(selector)
