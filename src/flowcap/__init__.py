"""Flow capture: crawl a site and record hierarchical screenshot manifests."""

__version__ = "0.1.0"

from flowcap.config import RunConfig, settings
from flowcap.browser_config import BrowserConfig
from flowcap.browser import BrowserDriver, BrowserSession
from flowcap.crawler import CrawlNode, CrawlResult, CrawlScheduler
from flowcap.flow_tree import build_flow_tree
from flowcap.manifest import ManifestStore
from flowcap.models import (
    Step,
    Flow,
    Manifest,
    count_steps,
    find_flow,
)
from flowcap.recorder import StepRecorder
from flowcap.runner import CaptureRun, RunResult
from flowcap.urls import is_admissible, normalize_url
from flowcap.exceptions import (
    FlowCaptureError,
    InvalidSeedURL,
    PageLoadFailure,
    LinkDiscoveryFailure,
    CaptureFailure,
    ManifestParentNotFound,
    ManifestIOFailure,
    ProjectNotFound,
)

__all__ = [
    # Core
    "CaptureRun",
    "RunResult",
    "CrawlScheduler",
    "CrawlResult",
    "CrawlNode",
    "StepRecorder",
    "ManifestStore",
    "build_flow_tree",
    "normalize_url",
    "is_admissible",
    # Browser
    "BrowserDriver",
    "BrowserSession",
    "BrowserConfig",
    # Models
    "Step",
    "Flow",
    "Manifest",
    "count_steps",
    "find_flow",
    # Configuration
    "RunConfig",
    "settings",
    # Errors
    "FlowCaptureError",
    "InvalidSeedURL",
    "PageLoadFailure",
    "LinkDiscoveryFailure",
    "CaptureFailure",
    "ManifestParentNotFound",
    "ManifestIOFailure",
    "ProjectNotFound",
]
