"""Turn a crawl's edge map into nested flows."""

from typing import Dict, List, Optional

from flowcap.crawler import CrawlNode
from flowcap.models import Flow, Step
from flowcap.utils.text import slugify


def flow_id_for_step(step: Step) -> str:
    """Flow id of a crawled page: the slug of its step name, or ``page-<order>``."""
    return slugify(step.name) or f"page-{step.order}"


def make_sibling_ids_unique(flows: List[Flow]) -> List[Flow]:
    """Suffix repeated ids among siblings with ``-2``, ``-3``, ...

    Pages that differ only by query string or path case slug to the same id;
    the first keeps it, later ones get the lowest free suffix.
    """
    taken = set()
    for flow in flows:
        base = flow.id
        candidate = base
        n = 2
        while candidate in taken:
            candidate = f"{base}-{n}"
            n += 1
        flow.id = candidate
        taken.add(candidate)
    return flows


def build_flow_tree(edge_map: Dict[str, CrawlNode]) -> List[Flow]:
    """Build one flow per captured page, nested by discovery.

    Pages without a parent become roots, in the order they were captured.
    Children keep the order in which their links were discovered. Leaves have
    ``children`` set to None. Ids are unique among siblings.

    Args:
        edge_map: Normalized URL -> CrawlNode, in capture order

    Returns:
        List of root flows
    """

    def build(url: str) -> Optional[Flow]:
        node = edge_map.get(url)
        if node is None or node.step is None:
            return None

        step = node.step
        children = [child for child in map(build, node.children) if child is not None]
        return Flow(
            id=flow_id_for_step(step),
            name=step.name,
            captured_at=step.timestamp,
            steps=[step],
            children=make_sibling_ids_unique(children) or None,
        )

    roots = [url for url, node in edge_map.items() if node.parent_url is None]
    return make_sibling_ids_unique([flow for flow in map(build, roots) if flow is not None])
