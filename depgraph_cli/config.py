"""Configuration paths and defaults for depgraph."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("DEPGRAPH_HOME", str(Path.home() / ".depgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Seconds an analysis stays in an AnalysisCache before it is considered stale.
DEFAULT_CACHE_TTL = 30 * 60

DEFAULT_STRATEGY = "hierarchical"


def ensure_base_dirs() -> None:
    """Create the base directory for local configuration if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
