# src/flowcap/constants.py
"""Centralized constants for flow capture.

Values shared by the crawler, the recorder and the manifest store. For
user-configurable options, see config.py and RunConfig.
"""

# =============================================================================
# Crawl Admissibility
# =============================================================================

# URL schemes that never point at a crawlable page
SKIP_SCHEMES = frozenset({"javascript", "mailto", "tel", "data"})

# Path extensions for downloads and media; these are never visited
SKIP_EXTENSIONS = (
    ".pdf", ".zip", ".tar", ".gz", ".rar",
    ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".jpg", ".jpeg", ".png", ".gif", ".svg",
    ".mp3", ".mp4", ".avi", ".mov",
)

# =============================================================================
# Crawl Budget
# =============================================================================

DEFAULT_MAX_DEPTH = 2
DEFAULT_MAX_PAGES = 50

# Page load timeout in milliseconds
DEFAULT_NAVIGATION_TIMEOUT = 30000

DEFAULT_WAIT_UNTIL = "networkidle"

# =============================================================================
# Naming
# =============================================================================

# Slugs are truncated to this many characters
SLUG_MAX_LENGTH = 50

# Zero-padding width of the order prefix in screenshot filenames
FILENAME_ORDER_WIDTH = 3

SCREENSHOT_EXTENSION = ".png"

HOME_STEP_NAME = "Home"

DEFAULT_PROJECT_NAME = "default"
DEFAULT_FLOW_NAME = "Unnamed Flow"
DEFAULT_CRAWL_FLOW_NAME = "Site Crawl"
DEFAULT_SCREENSHOT_NAME = "screenshot"

# =============================================================================
# Persistence
# =============================================================================

MANIFEST_FILENAME = "manifest.json"

# Project names allowed for destructive operations
PROJECT_NAME_PATTERN = r"^[A-Za-z0-9_-]+$"

# =============================================================================
# Scripted Actions
# =============================================================================

DEFAULT_WAIT_MS = 1000
DEFAULT_SCROLL_PIXELS = 500
