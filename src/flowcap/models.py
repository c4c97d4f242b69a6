"""Data models for captured flows and project manifests."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def now_iso() -> str:
    """Current UTC instant as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Step:
    """One screenshot capture event."""

    order: int
    name: str
    filename: str
    url: str
    timestamp: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order": self.order,
            "name": self.name,
            "description": self.description,
            "filename": self.filename,
            "url": self.url,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        return cls(
            order=int(data["order"]),
            name=data.get("name", ""),
            description=data.get("description") or "",
            filename=data["filename"],
            url=data.get("url", ""),
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class Flow:
    """A named capture unit: a list of steps plus optional nested child flows.

    ``children`` is ``None`` for a leaf. Keys found in a stored flow that this
    model does not know about are kept in ``extra`` so they survive a
    read-modify-write of the manifest.
    """

    id: str
    name: str
    captured_at: Optional[str] = None
    steps: List[Step] = field(default_factory=list)
    children: Optional[List["Flow"]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = ("id", "name", "capturedAt", "steps", "children")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data["id"] = self.id
        data["name"] = self.name
        if self.captured_at is not None:
            data["capturedAt"] = self.captured_at
        data["steps"] = [step.to_dict() for step in self.steps]
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Flow":
        children = data.get("children")
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            captured_at=data.get("capturedAt"),
            steps=[Step.from_dict(s) for s in data.get("steps") or []],
            children=[cls.from_dict(c) for c in children] if children else None,
            extra={k: v for k, v in data.items() if k not in cls._KNOWN_KEYS},
        )

    def merged_with(self, newer: "Flow") -> "Flow":
        """Shallow-overwrite this flow's fields with those of ``newer``.

        Fields ``newer`` leaves unset (no children, no extra keys) keep this
        flow's values. Steps are always replaced, never appended.
        """
        return Flow(
            id=newer.id,
            name=newer.name,
            captured_at=newer.captured_at if newer.captured_at is not None else self.captured_at,
            steps=list(newer.steps),
            children=newer.children if newer.children is not None else self.children,
            extra={**self.extra, **newer.extra},
        )


@dataclass
class Manifest:
    """Root persisted document of a project."""

    project_name: str
    flows: List[Flow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectName": self.project_name,
            "flows": [flow.to_dict() for flow in self.flows],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], project_name: Optional[str] = None) -> "Manifest":
        if not isinstance(data, dict):
            raise ValueError("manifest root must be an object")
        flows = data.get("flows", [])
        if not isinstance(flows, list):
            raise ValueError("manifest 'flows' must be a list")
        return cls(
            project_name=data.get("projectName") or project_name or "",
            flows=[Flow.from_dict(f) for f in flows],
        )


# =============================================================================
# Tree helpers
# =============================================================================

def count_steps(flow: Flow) -> int:
    """Count the steps of a flow and all its descendants."""
    count = len(flow.steps)
    for child in flow.children or []:
        count += count_steps(child)
    return count


def count_flows(flows: List[Flow]) -> int:
    """Count every flow node in a forest."""
    return sum(1 + count_flows(flow.children or []) for flow in flows)


def find_flow(flows: List[Flow], flow_id: str) -> Optional[Flow]:
    """Depth-first search for the first flow with ``flow_id``."""
    for flow in flows:
        if flow.id == flow_id:
            return flow
        if flow.children:
            found = find_flow(flow.children, flow_id)
            if found:
                return found
    return None
