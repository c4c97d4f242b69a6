"""One capture run: open a browser, record steps, merge them into the manifest."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from flowcap.actions import ActionExecutor, parse_steps, with_scheme
from flowcap.browser import BrowserSession
from flowcap.browser_config import BrowserConfig
from flowcap.config import RunConfig
from flowcap.crawler import CrawlScheduler
from flowcap.exceptions import InvalidSeedURL
from flowcap.flow_tree import build_flow_tree
from flowcap.manifest import ManifestStore
from flowcap.recorder import StepRecorder
from flowcap.urls import normalize_url, origin_of

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """What a finished run reports back to its caller."""

    captured_count: int
    manifest_path: Optional[Path]
    project_dir: Path


class CaptureRun:
    """Executes a RunConfig against a browser session.

    The manifest is written once, after the browser work finishes, and only
    if at least one step was captured.
    """

    def __init__(
        self,
        config: RunConfig,
        store: Optional[ManifestStore] = None,
        browser_config: Optional[BrowserConfig] = None,
        driver_factory: Optional[Callable] = None,
        prompt: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
    ):
        """Initialize the run.

        Args:
            config: Run options
            store: Manifest store (default: captures dir from settings)
            browser_config: Browser options for the default session
            driver_factory: Callable returning an async context manager that
                yields a BrowserDriver; defaults to a Playwright BrowserSession
            prompt: Line reader for interactive mode
            output: Message sink for interactive mode
            on_progress: Crawl progress callback (pages_captured, max_pages, url)
        """
        self.config = config
        self.store = store or ManifestStore()
        self.browser_config = browser_config or BrowserConfig.from_settings()
        self.driver_factory = driver_factory or (lambda: BrowserSession(self.browser_config))
        self.prompt = prompt
        self.output = output
        self.on_progress = on_progress

    async def run(self) -> RunResult:
        """Run the configured capture mode.

        Returns:
            RunResult with the number of captured steps and the manifest path

        Raises:
            InvalidSeedURL: In crawl mode, before the browser is opened
            PageLoadFailure: If the initial page (or crawl seed) cannot be loaded
            CaptureFailure: If a screenshot cannot be written
            ManifestIOFailure: If the manifest cannot be read or written
        """
        config = self.config
        if config.mode == "crawl":
            seed = normalize_url(config.seed_url)
            if seed is None or origin_of(seed) is None:
                raise InvalidSeedURL(config.seed_url)

        project_dir = self.store.ensure_project_dir(config.project_name)
        recorder = StepRecorder(project_dir, full_page=config.full_page)

        async with self.driver_factory() as driver:
            if config.mode == "crawl":
                manifest_path = await self._run_crawl(driver, recorder)
            else:
                manifest_path = await self._run_flat(driver, recorder)

        if recorder.steps:
            logger.info(f"Captured {len(recorder.steps)} screenshot(s) to {project_dir}")

        return RunResult(
            captured_count=len(recorder.steps),
            manifest_path=manifest_path,
            project_dir=project_dir,
        )

    async def _run_crawl(self, driver, recorder: StepRecorder) -> Optional[Path]:
        config = self.config
        scheduler = CrawlScheduler(
            driver,
            recorder,
            max_depth=config.max_depth,
            max_pages=config.max_pages,
            exclude_patterns=config.exclude_patterns,
            navigation_timeout=self.browser_config.timeout,
            wait_until=self.browser_config.wait_until,
            on_progress=self.on_progress,
        )
        result = await scheduler.crawl(config.seed_url)

        if result.captured_count == 0:
            if result.seed_failed:
                raise result.failures[result.seed_url]
            return None

        crawl_flows = build_flow_tree(result.edge_map)
        return self.store.save_crawl_flows(config.project_name, crawl_flows, config.flow_name)

    async def _run_flat(self, driver, recorder: StepRecorder) -> Optional[Path]:
        config = self.config
        executor = ActionExecutor(
            driver,
            recorder,
            wait_until=self.browser_config.wait_until,
            navigation_timeout=self.browser_config.timeout,
        )

        if config.seed_url:
            url = with_scheme(config.seed_url)
            logger.info(f"Navigating to {url}")
            await driver.navigate(url, wait_until=self.browser_config.wait_until,
                                  timeout=self.browser_config.timeout)

        if config.mode == "scripted":
            await executor.run_script(parse_steps(config.steps, config.flow_name))
        elif config.mode == "interactive":
            await executor.run_interactive(prompt=self.prompt, output=self.output)
        else:
            await executor.run_script(parse_steps(None, config.flow_name))

        if not recorder.steps:
            return None

        return self.store.save_flat_flow(
            config.project_name,
            recorder.steps,
            flow_name=config.flow_name,
            parent_id=config.parent_id,
        )
