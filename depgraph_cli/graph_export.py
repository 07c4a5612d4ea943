"""Graph export helpers for DOT, JSON and simple standalone HTML outputs.

Every exporter lays the analysis out first, so the written coordinates are
exactly the ones a rendering surface would receive.  Dangling links are
never written.
"""

from __future__ import annotations

import html
import json
import random
from pathlib import Path
from typing import Any, Dict, Optional

from .layout_engine import LayoutEngine, LayoutSettings, LayoutStrategy
from .models import AnalysisResult, Position
from .relations import RelationIndex
from .styles import (
    ANIMATED_KINDS,
    CROSS_REPO_BORDER,
    edge_color,
    link_label,
    node_color,
    node_dimensions,
)
from .target_resolver import resolve_target

EXPORT_FORMATS = ("dot", "json", "html")


def build_graph_payload(
    result: AnalysisResult,
    strategy: "LayoutStrategy | str" = LayoutStrategy.HIERARCHICAL,
    engine: Optional[LayoutEngine] = None,
    focus_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Positioned nodes and drawable edges, ready for serialisation."""
    engine = engine or LayoutEngine()
    focus = focus_id if focus_id is not None else resolve_target(result)
    positions = engine.layout(strategy, result.nodes, result.links, focus)
    index = RelationIndex.build(result.nodes, result.links)
    dims = node_dimensions(len(result.nodes))

    nodes = []
    for node in result.nodes:
        pos = positions.get(node.node_id, Position(node.node_id, 0.0, 0.0))
        is_target = node.node_id == focus
        cross = index.is_cross_repo_node(node.node_id)
        nodes.append(
            {
                "id": node.node_id,
                "label": node.name,
                "title": node.path,
                "repository": node.repository_id,
                "type": node.artifact_type.value,
                "x": round(pos.x, 2),
                "y": round(pos.y, 2),
                "color": node_color(node.artifact_type, is_target),
                "border": CROSS_REPO_BORDER if cross else "#ffffff",
                "isTarget": is_target,
                "isCrossRepo": cross,
            }
        )

    edges = [
        {
            "src": link.source,
            "dst": link.target,
            "edge_type": link.kind.value,
            "label": link_label(link.kind),
            "color": edge_color(link.kind),
            "animated": link.kind in ANIMATED_KINDS,
            "crossRepo": index.is_cross_repo_link(link),
            "strength": link.strength,
        }
        for link in index.links
    ]

    return {
        "strategy": LayoutStrategy.parse(strategy).value,
        "focus": focus,
        "dimensions": dims,
        "nodes": nodes,
        "edges": edges,
    }


def export_dot(payload: Dict[str, Any], output_file: Path) -> None:
    lines = ["digraph DependencyGraph {"]
    lines.append("  layout=neato;")
    lines.append("  node [shape=box, style=filled, fontcolor=white];")

    for node in payload["nodes"]:
        label = f"{node['label']}\\n{node['repository']}"
        # neato uses points with y growing upwards
        pos = f"{node['x']},{-node['y']}!"
        lines.append(
            f'  "{_esc(node["id"])}" [label="{_esc(label)}", pos="{pos}", '
            f'fillcolor="{node["color"]}", color="{node["border"]}"];'
        )

    for edge in payload["edges"]:
        lines.append(
            f'  "{_esc(edge["src"])}" -> "{_esc(edge["dst"])}" '
            f'[label="{_esc(edge["label"])}", color="{edge["color"]}"];'
        )

    lines.append("}")
    output_file.write_text("\n".join(lines), encoding="utf-8")


def export_json(payload: Dict[str, Any], output_file: Path) -> None:
    output_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def export_html(payload: Dict[str, Any], output_file: Path) -> None:
    """Export a standalone HTML page drawing the positioned graph as SVG."""
    output_file.write_text(_basic_html_export(payload), encoding="utf-8")


def export_graph(
    result: AnalysisResult,
    output_file: Path,
    fmt: str = "json",
    strategy: "LayoutStrategy | str" = LayoutStrategy.HIERARCHICAL,
    seed: Optional[int] = None,
    settings: Optional[LayoutSettings] = None,
    jitter: bool = True,
) -> Dict[str, Any]:
    """Lay out ``result`` and write it in ``fmt``; returns the payload written.

    Jitter is drawn from ``random.Random(seed)`` unless ``jitter`` is false.
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'. Choose one of: {', '.join(EXPORT_FORMATS)}")
    rng = random.Random(seed) if jitter else None
    payload = build_graph_payload(result, strategy, LayoutEngine(settings, rng=rng))
    writer = {"dot": export_dot, "json": export_json, "html": export_html}[fmt]
    writer(payload, output_file)
    return payload


def _basic_html_export(payload: Dict[str, Any]) -> str:
    nodes = payload["nodes"]
    margin = 120
    min_x = min((n["x"] for n in nodes), default=0) - margin
    min_y = min((n["y"] for n in nodes), default=0) - margin
    width = max((n["x"] for n in nodes), default=0) - min_x + margin
    height = max((n["y"] for n in nodes), default=0) - min_y + margin
    by_id = {n["id"]: n for n in nodes}

    shapes = []
    for edge in payload["edges"]:
        a, b = by_id[edge["src"]], by_id[edge["dst"]]
        shapes.append(
            f'<line x1="{a["x"]}" y1="{a["y"]}" x2="{b["x"]}" y2="{b["y"]}" '
            f'stroke="{edge["color"]}" stroke-width="2" marker-end="url(#arrow)">'
            f"<title>{html.escape(edge['label'])}</title></line>"
        )
    for node in nodes:
        shapes.append(
            f'<g><circle cx="{node["x"]}" cy="{node["y"]}" r="{24 if node["isTarget"] else 18}" '
            f'fill="{node["color"]}" stroke="{node["border"]}" stroke-width="3">'
            f"<title>{html.escape(node['title'])}</title></circle>"
            f'<text x="{node["x"]}" y="{node["y"] + 38}" text-anchor="middle">'
            f"{html.escape(node['label'])}</text></g>"
        )

    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>Dependency Graph</title>
  <style>
    body {{ font-family: ui-monospace, SFMono-Regular, Menlo, monospace; margin: 20px; }}
    svg {{ border: 1px solid #ddd; border-radius: 8px; }}
    text {{ font-size: 11px; }}
  </style>
</head>
<body>
  <h1>Dependency Graph ({html.escape(payload["strategy"])})</h1>
  <svg viewBox="{min_x} {min_y} {width} {height}" width="100%">
    <defs>
      <marker id="arrow" viewBox="0 0 10 10" refX="28" refY="5" markerWidth="6" markerHeight="6" orient="auto">
        <path d="M 0 0 L 10 5 L 0 10 z" fill="#6B7280" />
      </marker>
    </defs>
    {"".join(shapes)}
  </svg>
  <script>
    const graph = {_script_json(payload)};
  </script>
</body>
</html>
"""


def _esc(text: str) -> str:
    return text.replace('"', '\\"')


def _script_json(payload: Dict[str, Any]) -> str:
    # keep analysis strings from closing the surrounding <script> element
    text = json.dumps(payload)
    return text.replace("&", "\\u0026").replace("<", "\\u003c").replace(">", "\\u003e")
