"""Persistent per-project manifest of captured flows.

Layout on disk:

    captures/
    └── my-project/
        ├── manifest.json
        ├── 001-home.png
        ├── 002-about.png
        └── ...

The manifest is the only record of what a project holds. Each write replaces
the whole document.
"""

import json
import logging
import os
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from flowcap.config import settings
from flowcap.constants import (
    DEFAULT_CRAWL_FLOW_NAME,
    DEFAULT_FLOW_NAME,
    MANIFEST_FILENAME,
    PROJECT_NAME_PATTERN,
)
from flowcap.exceptions import (
    ManifestIOFailure,
    ManifestParentNotFound,
    ProjectNotFound,
)
from flowcap.models import Flow, Manifest, Step, find_flow, now_iso
from flowcap.utils.text import slugify

logger = logging.getLogger(__name__)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _default_file_mode() -> int:
    """Mode a plainly created file would get under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def insert_child(flows: List[Flow], parent_id: str, flow: Flow) -> Flow:
    """Append ``flow`` to the children of the first flow with ``parent_id``.

    The tree is searched depth-first; if the same id occurs at several levels,
    the first match in that order wins.

    Returns:
        The parent flow

    Raises:
        ManifestParentNotFound: If no flow has ``parent_id``
    """
    parent = find_flow(flows, parent_id)
    if parent is None:
        raise ManifestParentNotFound(parent_id)
    if parent.children is None:
        parent.children = []
    parent.children.append(flow)
    return parent


def upsert_top_level(manifest: Manifest, flow: Flow, merge: bool = True) -> Flow:
    """Insert ``flow`` among the top-level flows, keyed by id.

    Args:
        manifest: Manifest to modify in place
        flow: New flow
        merge: Shallow-merge into an existing flow with the same id; when
            False the existing flow is replaced outright

    Returns:
        The flow now stored in the manifest
    """
    for index, existing in enumerate(manifest.flows):
        if existing.id == flow.id:
            stored = existing.merged_with(flow) if merge else flow
            manifest.flows[index] = stored
            return stored
    manifest.flows.append(flow)
    return flow


def upsert_flow(manifest: Manifest, flow: Flow, parent_id: Optional[str] = None) -> Optional[Flow]:
    """Add a flat-capture flow to the manifest.

    With ``parent_id`` the flow is nested under that parent; a missing parent
    is logged and the flow lands at the top level instead. Without it the
    flow is merged into the top level by id.

    Returns:
        The parent the flow was nested under, or None for a top-level insert
    """
    if parent_id:
        try:
            return insert_child(manifest.flows, parent_id, flow)
        except ManifestParentNotFound as e:
            logger.warning(f"{e}. Adding as top-level flow.")
            manifest.flows.append(flow)
            return None

    upsert_top_level(manifest, flow, merge=True)
    return None


class ManifestStore:
    """Reads and writes project manifests under a captures directory."""

    def __init__(self, captures_dir: Optional[Path] = None):
        """Initialize the manifest store.

        Args:
            captures_dir: Root directory holding one sub-directory per project
                (default: FLOWCAP_CAPTURES_DIR or ./captures)
        """
        self.captures_dir = Path(captures_dir or settings.CAPTURES_DIR)

    # =========================================================================
    # Paths
    # =========================================================================

    def project_dir(self, project_name: str) -> Path:
        """Directory of a project, guaranteed to lie inside the captures dir.

        Raises:
            ValueError: If the name would escape the captures directory
        """
        root = self.captures_dir.resolve()
        project_dir = (self.captures_dir / project_name).resolve()
        if not project_name or project_dir.parent != root:
            raise ValueError(f"Invalid project name: {project_name!r}")
        return self.captures_dir / project_name

    def ensure_project_dir(self, project_name: str) -> Path:
        project_dir = self.project_dir(project_name)
        project_dir.mkdir(parents=True, exist_ok=True)
        return project_dir

    def manifest_path(self, project_name: str) -> Path:
        return self.project_dir(project_name) / MANIFEST_FILENAME

    def screenshot_path(self, project_name: str, filename: str) -> Path:
        """Locate a stored screenshot of a project.

        Raises:
            ValueError: If ``filename`` points outside the project directory
            FileNotFoundError: If the file does not exist
        """
        project_dir = self.project_dir(project_name)
        path = (project_dir / filename).resolve()
        if path.parent != project_dir.resolve():
            raise ValueError(f"Invalid screenshot path: {filename!r}")
        if not path.is_file():
            raise FileNotFoundError(f"Screenshot not found: {filename}")
        return path

    # =========================================================================
    # Load / save
    # =========================================================================

    def load(self, project_name: str) -> Manifest:
        """Load a project's manifest.

        A project without a manifest yet yields an empty one.

        Raises:
            ManifestIOFailure: If the file exists but cannot be read or parsed
        """
        path = self.manifest_path(project_name)
        if not path.exists():
            return Manifest(project_name=project_name, flows=[])

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return Manifest.from_dict(data, project_name=project_name)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ManifestIOFailure(path, e) from e

    def save(self, project_name: str, manifest: Manifest) -> Path:
        """Write the whole manifest document, replacing the previous one.

        The document is written to a temporary file next to the manifest and
        moved into place, so readers never see a half-written file.

        Returns:
            Path of the manifest file

        Raises:
            ManifestIOFailure: If the document cannot be written
        """
        path = self.manifest_path(project_name)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                'w', encoding='utf-8', dir=path.parent,
                prefix='.manifest-', suffix='.tmp', delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(manifest.to_dict(), f, indent=2)
            os.chmod(tmp_name, _default_file_mode())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ManifestIOFailure(path, e) from e

        logger.info(f"Manifest saved to {path}")
        return path

    # =========================================================================
    # Upserts
    # =========================================================================

    def save_flat_flow(
        self,
        project_name: str,
        steps: Sequence[Step],
        flow_name: Optional[str] = None,
        parent_id: Optional[str] = None,
    ) -> Path:
        """Store the steps of a non-crawl run as one flow.

        Args:
            project_name: Target project
            steps: Steps recorded during the run
            flow_name: Flow display name; its slug is the flow id
            parent_id: Optional id of an existing flow to nest under

        Returns:
            Path of the manifest file
        """
        flow = Flow(
            id=slugify(flow_name or f"flow-{_epoch_ms()}"),
            name=flow_name or DEFAULT_FLOW_NAME,
            captured_at=now_iso(),
            steps=list(steps),
        )

        manifest = self.load(project_name)
        upsert_flow(manifest, flow, parent_id)
        return self.save(project_name, manifest)

    def save_crawl_flows(
        self,
        project_name: str,
        crawl_flows: List[Flow],
        flow_name: Optional[str] = None,
    ) -> Path:
        """Store a crawl's flow tree under one synthetic top-level flow.

        An existing top-level flow with the same id is replaced.

        Returns:
            Path of the manifest file
        """
        crawl_flow = Flow(
            id=slugify(flow_name or f"crawl-{_epoch_ms()}"),
            name=flow_name or DEFAULT_CRAWL_FLOW_NAME,
            captured_at=now_iso(),
            steps=[],
            children=list(crawl_flows),
        )

        manifest = self.load(project_name)
        upsert_top_level(manifest, crawl_flow, merge=False)
        return self.save(project_name, manifest)

    # =========================================================================
    # Project catalogue
    # =========================================================================

    def list_projects(self) -> Dict[str, Manifest]:
        """Return every project that has a readable manifest, keyed by directory name."""
        projects: Dict[str, Manifest] = {}
        if not self.captures_dir.is_dir():
            return projects

        for entry in sorted(self.captures_dir.iterdir()):
            if not entry.is_dir() or not (entry / MANIFEST_FILENAME).exists():
                continue
            try:
                projects[entry.name] = self.load(entry.name)
            except ManifestIOFailure as e:
                logger.warning(f"Skipping project {entry.name}: {e}")
        return projects

    def get_project(self, project_name: str) -> Manifest:
        """Load an existing project's manifest.

        Raises:
            ProjectNotFound: If the project has no manifest
        """
        if not self.manifest_path(project_name).exists():
            raise ProjectNotFound(project_name)
        return self.load(project_name)

    def delete_project(self, project_name: str) -> Path:
        """Delete a project directory with its manifest and screenshots.

        Raises:
            ValueError: If the name is not alphanumeric/hyphen/underscore
            ProjectNotFound: If the project does not exist
        """
        if not re.match(PROJECT_NAME_PATTERN, project_name or ""):
            raise ValueError(f"Invalid project name: {project_name!r}")

        project_dir = self.project_dir(project_name)
        if not project_dir.is_dir():
            raise ProjectNotFound(project_name)

        shutil.rmtree(project_dir)
        logger.info(f"Deleted project {project_name}")
        return project_dir
