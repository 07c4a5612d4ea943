"""Layout strategies that turn an analysis graph into 2-D node positions.

Four interchangeable strategies are provided:

- **hierarchical** – rows of dependencies above the focus node and
  dependents below it,
- **grid** – one square-ish block per artifact category,
- **circular** – concentric rings of at most ``ring_capacity`` nodes around
  the focus node,
- **radial** – direct dependencies and dependents on two opposing arcs,
  everything else on an outer ring.  This approximates a force-directed
  picture in a single O(n) pass.
- **layered** – the whole graph ranked along its links, top-to-bottom or
  left-to-right, independent of the focus node.

Every strategy is a pure function of its inputs.  The only randomness is the
visual jitter drawn from an injected :class:`random.Random`; pass ``None`` to
get exact, reproducible coordinates.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import networkx as nx

from .models import AnalysisResult, Link, Node, Position
from .relations import RelationIndex
from .target_resolver import resolve_target

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_ORDER = ("apex", "trigger", "lwc", "test", "flow", "other")

LAYERED_DIRECTIONS = ("TB", "LR")

# Signed level used for nodes unrelated to the focus in the hierarchical layout.
REMAINING_LEVEL = 3


class LayoutStrategy(str, Enum):
    HIERARCHICAL = "hierarchical"
    GRID = "grid"
    CIRCULAR = "circular"
    RADIAL = "radial"
    LAYERED = "layered"

    @classmethod
    def parse(cls, value: "LayoutStrategy | str") -> "LayoutStrategy":
        if isinstance(value, LayoutStrategy):
            return value
        key = str(value).strip().lower()
        if key == "force":
            return cls.RADIAL
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown layout strategy '{value}'. Choose one of: {choices}")


@dataclass(frozen=True)
class LayoutSettings:
    """Geometry constants for all strategies (overridable via ``[layout]`` in config.toml)."""

    canvas_width: float = 1200.0

    # hierarchical
    level_height: float = 180.0
    base_y: float = 100.0
    min_node_spacing: float = 200.0
    min_row_width: float = 1000.0
    jitter_x: float = 30.0
    jitter_y: float = 20.0

    # grid
    grid_max_columns: int = 6
    grid_cell_spacing: float = 220.0
    grid_row_height: float = 140.0
    grid_top: float = 80.0
    grid_group_gap: float = 60.0
    grid_cell_offset: float = 110.0
    focus_offset_x: float = 10.0
    focus_offset_y: float = -5.0
    category_order: Tuple[str, ...] = DEFAULT_CATEGORY_ORDER

    # circular
    circle_center_x: float = 600.0
    circle_center_y: float = 400.0
    ring_capacity: int = 12
    base_radius: float = 180.0
    ring_increment: float = 120.0
    radius_jitter: float = 20.0
    angle_jitter: float = 0.2

    # radial
    radial_center_x: float = 500.0
    radial_center_y: float = 350.0
    inner_radius: float = 200.0
    outer_radius: float = 350.0
    arc_span: float = 0.8

    # layered
    layered_direction: str = "TB"
    layered_node_width: float = 172.0
    layered_node_height: float = 64.0
    layered_node_sep: float = 50.0
    layered_rank_sep: float = 50.0

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "LayoutSettings":
        """Build settings from a config mapping, ignoring unknown keys."""
        settings = cls()
        if not data:
            return settings
        updates: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            updates[f.name] = coerce_setting(f.name, data[f.name])
        return replace(settings, **updates)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = list(value) if isinstance(value, tuple) else value
        return out


def setting_names() -> List[str]:
    return [f.name for f in fields(LayoutSettings)]


def coerce_setting(name: str, value: Any) -> Any:
    """Convert a raw config value to the type of the named setting.

    Raises:
        KeyError: if ``name`` is not a layout setting.
        ValueError: if the value cannot be converted.
    """
    if name not in setting_names():
        raise KeyError(name)
    default = getattr(LayoutSettings(), name)
    if isinstance(default, tuple):
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",")]
        return tuple(str(v).strip().lower() for v in value if str(v).strip())
    if isinstance(default, str):
        text = str(value).strip().upper()
        if name == "layered_direction" and text not in LAYERED_DIRECTIONS:
            raise ValueError(f"expected one of {', '.join(LAYERED_DIRECTIONS)}, got '{value}'")
        return text
    if isinstance(default, int):
        return int(value)
    return float(value)


# ===================================================================
# Helpers
# ===================================================================

def _jitter(rng: Optional[random.Random], spread: float) -> float:
    if rng is None or not spread:
        return 0.0
    return (rng.random() - 0.5) * spread


def _valid_focus(nodes: Sequence[Node], focus_id: Optional[str]) -> Optional[str]:
    if not focus_id:
        return None
    for node in nodes:
        if node.node_id == focus_id:
            return focus_id
    logger.debug("Focus '%s' is not in the node set; laying out without a centre", focus_id)
    return None


def _index_for(nodes: Sequence[Node], links: Iterable[Link], index: Optional[RelationIndex]) -> RelationIndex:
    return index if index is not None else RelationIndex.build(nodes, links)


def _finalize(nodes: Sequence[Node], coords: Mapping[str, Tuple[float, float]]) -> Dict[str, Position]:
    positions: Dict[str, Position] = {}
    for node in nodes:
        x, y = coords.get(node.node_id, (0.0, 0.0))
        positions[node.node_id] = Position(node.node_id, float(x), float(y))
    return positions


# ===================================================================
# Hierarchical
# ===================================================================

def hierarchical_levels(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    focus_id: Optional[str] = None,
    index: Optional[RelationIndex] = None,
) -> List[Tuple[int, List[str]]]:
    """Rows of the hierarchical layout as ``(signed_level, node_ids)`` top to bottom.

    Levels -2/-1 hold what the focus depends on (reached through incoming
    links), +1/+2 what depends on it (outgoing links) and every other node
    ends up in a final row.  Each node is placed once, in discovery order.
    Empty levels are dropped so no blank row is rendered.
    """
    index = _index_for(nodes, links, index)
    focus = _valid_focus(nodes, focus_id)
    placed = set()

    def take(candidates: Iterable[str]) -> List[str]:
        level: List[str] = []
        for node_id in candidates:
            if node_id not in placed:
                placed.add(node_id)
                level.append(node_id)
        return level

    if focus:
        placed.add(focus)
        d1 = take(index.incoming_ids(focus))
        d2 = take(src for dep in d1 for src in index.incoming_ids(dep))
        u1 = take(index.outgoing_ids(focus))
        u2 = take(dst for dep in u1 for dst in index.outgoing_ids(dep))
    else:
        d1 = d2 = u1 = u2 = []
    remaining = take(node.node_id for node in nodes)

    rows = [
        (-2, d2),
        (-1, d1),
        (0, [focus] if focus else []),
        (1, u1),
        (2, u2),
        (REMAINING_LEVEL, remaining),
    ]
    return [(level, ids) for level, ids in rows if ids]


def hierarchical_layout(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    focus_id: Optional[str] = None,
    *,
    settings: Optional[LayoutSettings] = None,
    rng: Optional[random.Random] = None,
    index: Optional[RelationIndex] = None,
) -> Dict[str, Position]:
    settings = settings or LayoutSettings()
    rows = hierarchical_levels(nodes, links, focus_id, index=index)
    coords: Dict[str, Tuple[float, float]] = {}

    for row, (level, ids) in enumerate(rows):
        y = settings.base_y + row * settings.level_height
        total_width = max(len(ids) * settings.min_node_spacing, settings.min_row_width)
        start_x = (settings.canvas_width - total_width) / 2
        spacing = total_width / max(len(ids) - 1, 1)
        logger.debug("Hierarchical level %d: %d node(s)", level, len(ids))

        for i, node_id in enumerate(ids):
            x = settings.canvas_width / 2 if len(ids) == 1 else start_x + i * spacing
            coords[node_id] = (
                x + _jitter(rng, settings.jitter_x),
                y + _jitter(rng, settings.jitter_y),
            )

    return _finalize(nodes, coords)


# ===================================================================
# Grid
# ===================================================================

def category_sequence(nodes: Sequence[Node], order: Sequence[str] = DEFAULT_CATEGORY_ORDER) -> List[Tuple[str, List[Node]]]:
    """Group nodes by artifact type; configured order first, unlisted types after."""
    groups: Dict[str, List[Node]] = {}
    for node in nodes:
        groups.setdefault(node.artifact_type.value, []).append(node)
    ordered = [c for c in order if c in groups]
    ordered += [c for c in groups if c not in ordered]
    return [(c, groups[c]) for c in ordered]


def grid_layout(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    focus_id: Optional[str] = None,
    *,
    settings: Optional[LayoutSettings] = None,
    rng: Optional[random.Random] = None,
    index: Optional[RelationIndex] = None,
) -> Dict[str, Position]:
    settings = settings or LayoutSettings()
    focus = _valid_focus(nodes, focus_id)
    coords: Dict[str, Tuple[float, float]] = {}
    current_y = settings.grid_top

    for _category, members in category_sequence(nodes, settings.category_order):
        columns = max(1, min(math.ceil(math.sqrt(len(members))), settings.grid_max_columns))
        row_width = min(len(members), columns) * settings.grid_cell_spacing
        start_x = (settings.canvas_width - row_width) / 2

        for i, node in enumerate(members):
            row, col = divmod(i, columns)
            x = start_x + col * settings.grid_cell_spacing + settings.grid_cell_offset
            y = current_y + row * settings.grid_row_height
            if node.node_id == focus:
                x += settings.focus_offset_x
                y += settings.focus_offset_y
            coords[node.node_id] = (x, y)

        rows = math.ceil(len(members) / columns)
        current_y += rows * settings.grid_row_height + settings.grid_group_gap

    return _finalize(nodes, coords)


# ===================================================================
# Circular
# ===================================================================

def circular_rings(
    nodes: Sequence[Node],
    focus_id: Optional[str] = None,
    capacity: int = 12,
) -> List[List[str]]:
    """Node ids per ring, innermost first.  The focus node is never on a ring."""
    focus = _valid_focus(nodes, focus_id)
    others = [n.node_id for n in nodes if n.node_id != focus]
    capacity = max(1, capacity)
    return [others[i:i + capacity] for i in range(0, len(others), capacity)]


def ring_radius(ring: int, settings: Optional[LayoutSettings] = None) -> float:
    settings = settings or LayoutSettings()
    return settings.base_radius + ring * settings.ring_increment


def circular_layout(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    focus_id: Optional[str] = None,
    *,
    settings: Optional[LayoutSettings] = None,
    rng: Optional[random.Random] = None,
    index: Optional[RelationIndex] = None,
) -> Dict[str, Position]:
    settings = settings or LayoutSettings()
    focus = _valid_focus(nodes, focus_id)
    cx, cy = settings.circle_center_x, settings.circle_center_y
    coords: Dict[str, Tuple[float, float]] = {}
    if focus:
        coords[focus] = (cx, cy)

    for ring, members in enumerate(circular_rings(nodes, focus, settings.ring_capacity)):
        radius = ring_radius(ring, settings)
        for i, node_id in enumerate(members):
            angle = (i / len(members)) * 2 * math.pi
            r = radius + _jitter(rng, settings.radius_jitter)
            a = angle + _jitter(rng, settings.angle_jitter)
            coords[node_id] = (cx + r * math.cos(a), cy + r * math.sin(a))

    return _finalize(nodes, coords)


# ===================================================================
# Radial
# ===================================================================

def radial_groups(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    focus_id: Optional[str] = None,
    index: Optional[RelationIndex] = None,
) -> Tuple[List[str], List[str], List[str]]:
    """Split non-focus nodes into (direct dependencies, direct dependents, others).

    A node linked in both directions counts as a dependent only.
    """
    index = _index_for(nodes, links, index)
    focus = _valid_focus(nodes, focus_id)
    if focus:
        dependents = [n for n in index.outgoing_ids(focus) if n != focus]
        dependent_set = set(dependents)
        deps = [n for n in index.incoming_ids(focus) if n != focus and n not in dependent_set]
    else:
        deps, dependents = [], []
    related = set(deps) | set(dependents)
    others = [n.node_id for n in nodes if n.node_id != focus and n.node_id not in related]
    return deps, dependents, others


def radial_layout(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    focus_id: Optional[str] = None,
    *,
    settings: Optional[LayoutSettings] = None,
    rng: Optional[random.Random] = None,
    index: Optional[RelationIndex] = None,
) -> Dict[str, Position]:
    """Focus at the centre, dependencies on the upper arc, dependents on the lower one.

    Slots on the dependency arc are counted over every source of the focus's
    incoming links, so a node linked in both directions still takes a slot
    there even though it is drawn on the dependent arc.
    """
    settings = settings or LayoutSettings()
    index = _index_for(nodes, links, index)
    focus = _valid_focus(nodes, focus_id)
    cx, cy = settings.radial_center_x, settings.radial_center_y
    _, dependents, others = radial_groups(nodes, links, focus, index=index)
    deps = [n for n in index.incoming_ids(focus) if n != focus] if focus else []
    coords: Dict[str, Tuple[float, float]] = {}
    if focus:
        coords[focus] = (cx, cy)

    def place(ids: List[str], start: float, span: float, radius: float, closed: bool) -> None:
        # closed rings divide by n so the last node does not land on the first
        steps = max(1, len(ids)) if closed else max(1, len(ids) - 1)
        for i, node_id in enumerate(ids):
            angle = start + (i / steps) * span
            coords[node_id] = (cx + radius * math.cos(angle), cy + radius * math.sin(angle))

    arc = settings.arc_span * math.pi
    place(deps, math.pi, arc, settings.inner_radius, closed=False)
    place(dependents, 0.0, arc, settings.inner_radius, closed=False)
    place(others, 0.0, 2 * math.pi, settings.outer_radius, closed=True)

    return _finalize(nodes, coords)


# ===================================================================
# Layered
# ===================================================================

def layered_ranks(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    index: Optional[RelationIndex] = None,
) -> Dict[str, int]:
    """Rank of every node: the longest link path reaching it from a source.

    Nodes on a cycle are collapsed into one component and share its rank.
    """
    index = _index_for(nodes, links, index)
    graph = nx.DiGraph()
    graph.add_nodes_from(n.node_id for n in nodes)
    graph.add_edges_from((l.source, l.target) for l in index.links if l.source != l.target)

    dag = nx.condensation(graph)
    ranks: Dict[str, int] = {}
    for rank, generation in enumerate(nx.topological_generations(dag)):
        for component in generation:
            for node_id in dag.nodes[component]["members"]:
                ranks[node_id] = rank
    return ranks


def layered_rows(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    index: Optional[RelationIndex] = None,
) -> List[List[str]]:
    """Node ids per rank, ordered by the mean slot of their already placed sources."""
    index = _index_for(nodes, links, index)
    ranks = layered_ranks(nodes, links, index=index)
    rows: List[List[str]] = [[] for _ in range(max(ranks.values(), default=-1) + 1)]
    for node in nodes:
        rows[ranks[node.node_id]].append(node.node_id)

    slot: Dict[str, int] = {}
    for row in rows:

        def barycenter(item: Tuple[int, str]) -> float:
            i, node_id = item
            sources = [slot[s] for s in index.incoming_ids(node_id) if s in slot]
            return sum(sources) / len(sources) if sources else float(i)

        row[:] = [node_id for _, node_id in sorted(enumerate(row), key=barycenter)]
        slot.update({node_id: i for i, node_id in enumerate(row)})
    return rows


def layered_layout(
    nodes: Sequence[Node],
    links: Iterable[Link] = (),
    focus_id: Optional[str] = None,
    *,
    settings: Optional[LayoutSettings] = None,
    rng: Optional[random.Random] = None,
    index: Optional[RelationIndex] = None,
) -> Dict[str, Position]:
    """Ranks stacked along ``layered_direction``; rows centred on the widest one.

    Positions are node centres.  The focus node and jitter source are not used.
    """
    settings = settings or LayoutSettings()
    rows = layered_rows(nodes, links, index=index)
    horizontal = settings.layered_direction == "LR"
    width, height = settings.layered_node_width, settings.layered_node_height
    along_size, across_size = (height, width) if horizontal else (width, height)
    along_step = along_size + settings.layered_node_sep
    across_step = across_size + settings.layered_rank_sep
    widest = max((len(row) for row in rows), default=0)

    coords: Dict[str, Tuple[float, float]] = {}
    for rank, ids in enumerate(rows):
        offset = (widest - len(ids)) * along_step / 2
        across = rank * across_step + across_size / 2
        for i, node_id in enumerate(ids):
            along = offset + i * along_step + along_size / 2
            coords[node_id] = (across, along) if horizontal else (along, across)

    logger.debug("Layered layout: %d rank(s), direction %s", len(rows), settings.layered_direction)
    return _finalize(nodes, coords)


_STRATEGIES = {
    LayoutStrategy.HIERARCHICAL: hierarchical_layout,
    LayoutStrategy.GRID: grid_layout,
    LayoutStrategy.CIRCULAR: circular_layout,
    LayoutStrategy.RADIAL: radial_layout,
    LayoutStrategy.LAYERED: layered_layout,
}


# ===================================================================
# LayoutEngine
# ===================================================================

class LayoutEngine:
    """Dispatch to a layout strategy with shared settings and jitter source."""

    def __init__(
        self,
        settings: Optional[LayoutSettings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or LayoutSettings()
        self.rng = rng

    def layout(
        self,
        strategy: "LayoutStrategy | str",
        nodes: Sequence[Node],
        links: Iterable[Link] = (),
        focus_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> Dict[str, Position]:
        """Compute one position per node with the chosen strategy.

        Args:
            strategy: A :class:`LayoutStrategy` or its name (``"force"`` is
                accepted as an alias of ``"radial"``).
            nodes: Nodes to place, in input order.
            links: Links between them; dangling links are ignored.
            focus_id: Node to centre the view on, or ``None``.
            rng: Jitter source for this call, overriding the engine's.

        Returns:
            Mapping of node id to :class:`Position`, ordered like ``nodes``.
        """
        kind = LayoutStrategy.parse(strategy)
        nodes = list(nodes)
        if not nodes:
            return {}
        links = list(links)
        index = RelationIndex.build(nodes, links)
        func = _STRATEGIES[kind]
        return func(
            nodes,
            links,
            focus_id,
            settings=self.settings,
            rng=rng if rng is not None else self.rng,
            index=index,
        )

    def layout_analysis(
        self,
        result: AnalysisResult,
        strategy: "LayoutStrategy | str",
        focus_id: Optional[str] = None,
    ) -> Dict[str, Position]:
        """Lay out a whole analysis, resolving the focus node when not given."""
        focus = focus_id if focus_id is not None else resolve_target(result)
        return self.layout(strategy, result.nodes, result.links, focus)
