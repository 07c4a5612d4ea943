"""Typer-based CLI for depgraph dependency-graph analysis."""

from __future__ import annotations

import json
import logging
import random
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__, config, config_manager
from .cli_groups import config_grp
from .graph_export import EXPORT_FORMATS, export_graph
from .layout_engine import LayoutEngine, LayoutSettings, LayoutStrategy, coerce_setting, hierarchical_levels
from .loader import load_analysis
from .models import AnalysisResult, InvalidGraphError
from .relation_filter import ViewMode, filter_nodes
from .relations import RelationIndex
from .target_resolver import resolve_target

console = Console()

app = typer.Typer(
    help="🕸️  depgraph — dependency-graph layout & relationship analysis.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(config_grp, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"depgraph v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details to stderr."),
):
    """depgraph: resolve focus, classify relations and lay out dependency graphs."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def _load(path: Path) -> AnalysisResult:
    try:
        return load_analysis(path)
    except InvalidGraphError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)


def _strategy(value: str) -> LayoutStrategy:
    try:
        return LayoutStrategy.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))


def _settings(direction: Optional[str]) -> LayoutSettings:
    """Configured layout settings, with the layered direction overridden if given."""
    settings = config_manager.load_layout_settings()
    if direction is None:
        return settings
    try:
        return replace(settings, layered_direction=coerce_setting("layered_direction", direction))
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid direction: {exc}")


@app.command("target")
def target(analysis_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Analysis result JSON file.")):
    """Print the focus node of an analysis."""
    result = _load(analysis_file)
    focus = resolve_target(result)
    if focus is None:
        typer.echo("No target: analysis has no nodes.")
        raise typer.Exit(code=0)
    node = result.get_node(focus)
    typer.echo(focus)
    if node is not None:
        typer.echo(f"  {node.name} ({node.artifact_type.value}) in {node.repository_id or '-'}")


@app.command("layout")
def layout(
    analysis_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Analysis result JSON file."),
    strategy: str = typer.Option(config.DEFAULT_STRATEGY, "--strategy", "-s", help="hierarchical, grid, circular, radial or layered."),
    direction: Optional[str] = typer.Option(None, "--direction", "-d", help="Layered direction: TB or LR."),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible jitter."),
    no_jitter: bool = typer.Option(False, "--no-jitter", help="Disable jitter for exact coordinates."),
    as_json: bool = typer.Option(False, "--json", help="Print positions as JSON."),
):
    """Compute node positions with a layout strategy."""
    kind = _strategy(strategy)
    settings = _settings(direction)
    result = _load(analysis_file)
    rng = None if no_jitter else random.Random(seed)
    engine = LayoutEngine(settings, rng=rng)
    focus = resolve_target(result)
    positions = engine.layout(kind, result.nodes, result.links, focus)

    if as_json:
        payload = {
            "strategy": kind.value,
            "focus": focus,
            "positions": [{"id": p.node_id, "x": p.x, "y": p.y} for p in positions.values()],
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    if not positions:
        console.print("[yellow]Analysis has no nodes; nothing to lay out.[/yellow]")
        return

    levels = {}
    if kind is LayoutStrategy.HIERARCHICAL:
        for level, ids in hierarchical_levels(result.nodes, result.links, focus):
            levels.update({node_id: level for node_id in ids})

    table = Table(title=f"{kind.value.title()} layout", show_header=True)
    table.add_column("Node", style="cyan")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    if levels:
        table.add_column("Level", justify="right")
    for pos in positions.values():
        name = f"[bold red]{pos.node_id}[/bold red]" if pos.node_id == focus else pos.node_id
        row = [name, f"{pos.x:.1f}", f"{pos.y:.1f}"]
        if levels:
            row.append(str(levels.get(pos.node_id, "")))
        table.add_row(*row)
    console.print(table)


@app.command("relations")
def relations(
    analysis_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Analysis result JSON file."),
    mode: str = typer.Option("all", "--mode", "-m", help="all, dependencies, dependents or cross-repo."),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Case-insensitive name/path/repository filter."),
    repo: Optional[str] = typer.Option(None, "--repo", help="Reference repository for cross-repo mode."),
):
    """List the nodes visible in a view mode."""
    try:
        view = ViewMode.parse(mode)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    result = _load(analysis_file)
    index = RelationIndex.build(result.nodes, result.links)
    focus = resolve_target(result)
    nodes = filter_nodes(result, index, focus, view, search_term=search, primary_repository=repo)

    if not nodes:
        typer.echo(f"No nodes in '{view.value}' view.")
        raise typer.Exit(code=0)

    table = Table(title=f"{len(nodes)} node(s) — {view.value}", show_header=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Repository")
    table.add_column("Path", overflow="fold")
    table.add_column("In", justify="right")
    table.add_column("Out", justify="right")
    for node in nodes:
        links = index.node_links(node.node_id)
        marker = " 🌐" if index.is_cross_repo_node(node.node_id) else ""
        table.add_row(
            node.name + marker,
            node.artifact_type.value,
            node.repository_id or "-",
            node.path,
            str(len(links["incoming"])),
            str(len(links["outgoing"])),
        )
    console.print(table)


@app.command("stats")
def stats(analysis_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Analysis result JSON file.")):
    """Show node, link and cross-repository statistics."""
    result = _load(analysis_file)
    index = RelationIndex.build(result.nodes, result.links)
    summary = index.statistics()
    focus = resolve_target(result)

    console.print(
        Panel.fit(
            f"Nodes: [bold]{summary.node_count}[/bold]   "
            f"Links: [bold]{summary.link_count}[/bold]   "
            f"Cross-repo: [bold yellow]{summary.cross_repo_link_count}[/bold yellow]   "
            f"Dangling: [bold red]{summary.dangling_link_count}[/bold red]\n"
            f"Target: {focus or '-'}",
            title="[bold]Dependency Analysis[/bold]",
            border_style="cyan",
        )
    )

    if summary.links_by_kind:
        table = Table(title="Links by kind", show_header=True)
        table.add_column("Kind", style="cyan")
        table.add_column("Count", justify="right")
        for kind, count in summary.links_by_kind.items():
            table.add_row(kind, str(count))
        console.print(table)

    if summary.nodes_by_type:
        table = Table(title="Nodes by type", show_header=True)
        table.add_column("Type", style="cyan")
        table.add_column("Count", justify="right")
        for kind, count in summary.nodes_by_type.items():
            table.add_row(kind, str(count))
        console.print(table)


@app.command("export")
def export(
    analysis_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Analysis result JSON file."),
    fmt: str = typer.Option("html", "--format", "-f", help="Export format: dot, json or html."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
    strategy: str = typer.Option(config.DEFAULT_STRATEGY, "--strategy", "-s", help="Layout strategy."),
    direction: Optional[str] = typer.Option(None, "--direction", "-d", help="Layered direction: TB or LR."),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible jitter."),
    no_jitter: bool = typer.Option(False, "--no-jitter", help="Disable jitter for exact coordinates."),
):
    """Export a laid-out graph to DOT, JSON or standalone HTML."""
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise typer.BadParameter(f"Format must be one of: {', '.join(EXPORT_FORMATS)}")
    kind = _strategy(strategy)
    settings = _settings(direction)
    result = _load(analysis_file)

    if output is None:
        output = Path.cwd() / f"{analysis_file.stem}_graph.{fmt}"

    payload = export_graph(
        result, output, fmt=fmt, strategy=kind, seed=seed, settings=settings, jitter=not no_jitter
    )
    typer.echo(f"Exported {len(payload['nodes'])} node(s), {len(payload['edges'])} edge(s) to {output}")


# ── config group ─────────────────────────────────────────────

@config_grp.command("show")
def config_show():
    """Show effective layout settings."""
    settings = config_manager.load_layout_settings()
    overrides = config_manager.load_layout_config()
    table = Table(title=f"Layout settings ({config.CONFIG_FILE})", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_column("Source")
    for key, value in settings.to_dict().items():
        shown = ", ".join(value) if isinstance(value, list) else str(value)
        table.add_row(key, shown, "config" if key in overrides else "default")
    console.print(table)


@config_grp.command("set")
def config_set(
    key: str = typer.Argument(..., help="Layout setting name."),
    value: str = typer.Argument(..., help="New value (comma-separated for category_order)."),
):
    """Override one layout setting."""
    try:
        saved = config_manager.save_layout_config(key, value)
    except KeyError:
        raise typer.BadParameter(f"Unknown layout setting '{key}'.")
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid value for '{key}': {exc}")
    if not saved:
        console.print(f"[red]✗[/red] Could not write {config.CONFIG_FILE}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {key} = {value}")


@config_grp.command("reset")
def config_reset():
    """Restore default layout settings."""
    config_manager.reset_layout_config()
    console.print("[green]✓[/green] Layout settings reset to defaults.")


if __name__ == "__main__":
    app()
