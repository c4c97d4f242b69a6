"""Step bookkeeping for a capture run.

Every screenshot taken during a run, whatever the mode, goes through one
StepRecorder so that order numbers and filenames stay unique within the run.
"""

import logging
from pathlib import Path
from typing import List, Optional

from flowcap.constants import FILENAME_ORDER_WIDTH, SCREENSHOT_EXTENSION
from flowcap.exceptions import CaptureFailure
from flowcap.models import Step, now_iso
from flowcap.utils.text import slugify

logger = logging.getLogger(__name__)


def step_filename(counter: int, name: str) -> str:
    """Build the screenshot filename for the ``counter``-th capture.

    >>> step_filename(7, "About Us")
    '007-about-us.png'
    """
    return f"{counter:0{FILENAME_ORDER_WIDTH}d}-{slugify(name)}{SCREENSHOT_EXTENSION}"


def build_step(
    name: str,
    captured_url: str,
    counter: int,
    description: str = "",
    timestamp: Optional[str] = None,
) -> Step:
    """Create the Step for one capture event."""
    return Step(
        order=counter,
        name=name,
        description=description,
        filename=step_filename(counter, name),
        url=captured_url,
        timestamp=timestamp or now_iso(),
    )


class StepRecorder:
    """Assigns order numbers and filenames to the captures of one run.

    The counter starts at 1 and increases on every capture. The recorder only
    keeps the bookkeeping; pixels are written by the browser driver.
    """

    def __init__(self, project_dir: Path, full_page: bool = False):
        """Initialize the recorder.

        Args:
            project_dir: Directory screenshots are written to
            full_page: Capture the full scrollable page instead of the viewport
        """
        self.project_dir = Path(project_dir)
        self.full_page = full_page
        self.counter = 0
        self.steps: List[Step] = []

    def next_filename(self, name: str) -> str:
        """Filename the next recorded step named ``name`` will get."""
        return step_filename(self.counter + 1, name)

    def record(self, name: str, captured_url: str, description: str = "") -> Step:
        """Record a capture event and return its Step."""
        self.counter += 1
        step = build_step(name, captured_url, self.counter, description)
        self.steps.append(step)
        return step

    async def capture(self, driver, name: str, description: str = "") -> Step:
        """Take a screenshot through ``driver`` and record it.

        Args:
            driver: BrowserDriver positioned on the page to capture
            name: Display name of the step
            description: Optional free-text description

        Returns:
            The recorded Step

        Raises:
            CaptureFailure: If the screenshot could not be written
        """
        filename = self.next_filename(name)
        path = self.project_dir / filename

        try:
            await driver.screenshot(path, full_page=self.full_page)
        except Exception as e:
            raise CaptureFailure(path, e) from e

        step = self.record(name, driver.current_url(), description)
        logger.info(f"Captured: {step.filename}")
        return step

    def __len__(self) -> int:
        return len(self.steps)
