"""Exception hierarchy for flow capture runs."""


class FlowCaptureError(Exception):
    """Base class for all flow capture errors."""


class InvalidSeedURL(FlowCaptureError):
    """The crawl seed URL could not be normalized. Raised before any navigation."""

    def __init__(self, url):
        self.url = url
        super().__init__(f"Invalid seed URL: {url!r}")


class PageLoadFailure(FlowCaptureError):
    """Navigation to a page failed or timed out."""

    def __init__(self, url, reason):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class LinkDiscoveryFailure(FlowCaptureError):
    """Anchors on the current page could not be enumerated."""


class CaptureFailure(FlowCaptureError):
    """A screenshot could not be written to disk."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to capture screenshot to {path}: {reason}")


class ManifestParentNotFound(FlowCaptureError):
    """No flow with the requested parent id exists in the manifest."""

    def __init__(self, parent_id):
        self.parent_id = parent_id
        super().__init__(f"Parent flow '{parent_id}' not found")


class ManifestIOFailure(FlowCaptureError):
    """The manifest document could not be read, parsed or written."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Manifest error at {path}: {reason}")


class ProjectNotFound(FlowCaptureError):
    """The requested project directory does not exist."""

    def __init__(self, project_name):
        self.project_name = project_name
        super().__init__(f"Project not found: {project_name}")
