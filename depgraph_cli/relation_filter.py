"""Select the visible node subset for a view mode and search term."""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import List, Optional

from .models import AnalysisResult, ArtifactType, LinkKind, Node
from .relations import RelationIndex, is_cross_repository_link

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    ALL = "all"
    DEPENDENCIES = "dependencies"
    DEPENDENTS = "dependents"
    CROSS_REPO = "cross-repo"

    @classmethod
    def parse(cls, value: "ViewMode | str") -> "ViewMode":
        if isinstance(value, ViewMode):
            return value
        key = str(value).strip().lower().replace("_", "-")
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown view mode '{value}'. Choose one of: {choices}")


def same_repository(a: str, b: str) -> bool:
    """Compare repository names, treating ``owner/name`` and ``name`` as equal."""
    if a == b:
        return True
    return a.rsplit("/", 1)[-1] == b.rsplit("/", 1)[-1] and ("/" in a) != ("/" in b)


def reference_repository(
    result: AnalysisResult,
    focus_id: Optional[str],
    primary_repository: Optional[str] = None,
) -> str:
    if primary_repository:
        return primary_repository
    if result.metadata.repositories:
        return result.metadata.repositories[0]
    focus = result.get_node(focus_id)
    return focus.repository_id if focus else ""


def matches_search(node: Node, search_term: str) -> bool:
    term = search_term.lower()
    return (
        term in node.name.lower()
        or term in node.path.lower()
        or term in node.repository_id.lower()
    )


def filter_nodes(
    result: AnalysisResult,
    index: RelationIndex,
    focus_id: Optional[str],
    mode: "ViewMode | str" = ViewMode.ALL,
    search_term: Optional[str] = None,
    primary_repository: Optional[str] = None,
) -> List[Node]:
    """Nodes visible in ``mode``, narrowed by ``search_term``, in input order.

    ``dependencies`` are the targets of the focus node's outgoing links and
    ``dependents`` the sources of its incoming links; both are empty when the
    focus is unresolved.  ``cross-repo`` keeps nodes outside the reference
    repository (see :func:`reference_repository`).
    """
    mode = ViewMode.parse(mode)
    nodes = list(result.nodes)

    if mode is ViewMode.DEPENDENCIES or mode is ViewMode.DEPENDENTS:
        if not focus_id or focus_id not in index.nodes:
            logger.debug("No focus node for '%s' view; returning no nodes", mode.value)
            return []
        if mode is ViewMode.DEPENDENCIES:
            wanted = set(index.outgoing_ids(focus_id))
        else:
            wanted = set(index.incoming_ids(focus_id))
        nodes = [n for n in nodes if n.node_id in wanted]
    elif mode is ViewMode.CROSS_REPO:
        reference = reference_repository(result, focus_id, primary_repository)
        if reference:
            nodes = [n for n in nodes if not same_repository(n.repository_id, reference)]

    if search_term:
        before = len(nodes)
        nodes = [n for n in nodes if matches_search(n, search_term)]
        logger.debug("Search %r reduced %d node(s) to %d", search_term, before, len(nodes))
    return nodes


def subgraph(
    result: AnalysisResult,
    artifact_type: "ArtifactType | str | None" = None,
    link_kind: "LinkKind | str | None" = None,
    min_strength: float = 0.0,
) -> AnalysisResult:
    """Restrict an analysis by node type, link kind and link strength.

    Only links whose two endpoints survive the node filter are kept, and the
    metadata counts are updated to the filtered graph.
    """
    nodes = list(result.nodes)
    if artifact_type and artifact_type != "all":
        wanted_type = ArtifactType.parse(artifact_type)
        nodes = [n for n in nodes if n.artifact_type is wanted_type]
    node_ids = {n.node_id for n in nodes}

    links = list(result.links)
    if link_kind and link_kind != "all":
        wanted_kind = LinkKind.parse(link_kind)
        links = [l for l in links if l.kind is wanted_kind]
    links = [
        l for l in links
        if l.strength >= min_strength and l.source in node_ids and l.target in node_ids
    ]

    metadata = replace(
        result.metadata,
        node_count=len(nodes),
        link_count=len(links),
        cross_repo_link_count=sum(1 for l in links if is_cross_repository_link(l)),
    )
    return AnalysisResult.build(nodes, links, metadata)
