"""Command groups for the depgraph CLI.

  depgraph config   — Layout configuration
"""

from __future__ import annotations

import typer

# ── Configuration group ──────────────────────────────────────
config_grp = typer.Typer(
    help="⚙️  Configuration — layout geometry and category order.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
