"""Adjacency index over an analysis graph.

The index maps every node to the links arriving at it (``incoming``) and
leaving it (``outgoing``).  Links whose source or target is missing from the
node set are *dangling*: they never enter the adjacency maps but are kept
aside so raw statistics can still report them.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .models import Link, Node, repository_of

logger = logging.getLogger(__name__)


def is_cross_repository_link(link: Link) -> bool:
    """True when both endpoints carry a repository prefix and the prefixes differ."""
    source_repo = repository_of(link.source)
    target_repo = repository_of(link.target)
    return bool(source_repo) and bool(target_repo) and source_repo != target_repo


@dataclass
class GraphStatistics:
    node_count: int
    link_count: int
    raw_link_count: int
    dangling_link_count: int
    cross_repo_link_count: int
    links_by_kind: Dict[str, int] = field(default_factory=dict)
    nodes_by_type: Dict[str, int] = field(default_factory=dict)
    repositories: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "nodeCount": self.node_count,
            "linkCount": self.link_count,
            "rawLinkCount": self.raw_link_count,
            "danglingLinkCount": self.dangling_link_count,
            "crossRepoLinkCount": self.cross_repo_link_count,
            "linksByKind": dict(self.links_by_kind),
            "nodesByType": dict(self.nodes_by_type),
            "repositories": list(self.repositories),
        }


@dataclass
class RelationIndex:
    nodes: Dict[str, Node]
    incoming: Dict[str, List[Link]]
    outgoing: Dict[str, List[Link]]
    cross_repo_links: List[Link]
    dangling_links: List[Link]
    raw_link_count: int

    @classmethod
    def build(cls, nodes: Iterable[Node], links: Iterable[Link]) -> "RelationIndex":
        node_map = {n.node_id: n for n in nodes}
        incoming: Dict[str, List[Link]] = {node_id: [] for node_id in node_map}
        outgoing: Dict[str, List[Link]] = {node_id: [] for node_id in node_map}
        cross_repo: List[Link] = []
        dangling: List[Link] = []
        raw = 0

        for link in links:
            raw += 1
            if link.source not in node_map or link.target not in node_map:
                dangling.append(link)
                continue
            outgoing[link.source].append(link)
            incoming[link.target].append(link)
            if is_cross_repository_link(link):
                cross_repo.append(link)

        if dangling:
            logger.debug("Excluded %d dangling link(s) out of %d", len(dangling), raw)
        return cls(
            nodes=node_map,
            incoming=incoming,
            outgoing=outgoing,
            cross_repo_links=cross_repo,
            dangling_links=dangling,
            raw_link_count=raw,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def links(self) -> List[Link]:
        """Non-dangling links, grouped by source node in node order."""
        return [link for links in self.outgoing.values() for link in links]

    def incoming_ids(self, node_id: Optional[str]) -> List[str]:
        """Distinct sources of links arriving at ``node_id``, in link order."""
        if not node_id:
            return []
        return list(dict.fromkeys(link.source for link in self.incoming.get(node_id, [])))

    def outgoing_ids(self, node_id: Optional[str]) -> List[str]:
        """Distinct targets of links leaving ``node_id``, in link order."""
        if not node_id:
            return []
        return list(dict.fromkeys(link.target for link in self.outgoing.get(node_id, [])))

    def node_links(self, node_id: Optional[str]) -> Dict[str, List[Link]]:
        if not node_id:
            return {"incoming": [], "outgoing": []}
        return {
            "incoming": list(self.incoming.get(node_id, [])),
            "outgoing": list(self.outgoing.get(node_id, [])),
        }

    def is_cross_repo_link(self, link: Link) -> bool:
        return is_cross_repository_link(link)

    def is_cross_repo_node(self, node_id: str) -> bool:
        """True when the node is linked, either way, to a node of another repository."""
        node = self.nodes.get(node_id)
        if node is None:
            return False
        for link in self.outgoing.get(node_id, []):
            if self.nodes[link.target].repository_id != node.repository_id:
                return True
        for link in self.incoming.get(node_id, []):
            if self.nodes[link.source].repository_id != node.repository_id:
                return True
        return False

    def statistics(self) -> GraphStatistics:
        links = self.links
        kinds = Counter(link.kind.value for link in links)
        types = Counter(node.artifact_type.value for node in self.nodes.values())
        repos = list(dict.fromkeys(n.repository_id for n in self.nodes.values() if n.repository_id))
        return GraphStatistics(
            node_count=len(self.nodes),
            link_count=len(links),
            raw_link_count=self.raw_link_count,
            dangling_link_count=len(self.dangling_links),
            cross_repo_link_count=len(self.cross_repo_links),
            links_by_kind=dict(kinds.most_common()),
            nodes_by_type=dict(types.most_common()),
            repositories=repos,
        )
