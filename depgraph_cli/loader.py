"""Load analysis results produced by the discovery service."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Union

from .models import AnalysisResult, InvalidGraphError

logger = logging.getLogger(__name__)


def parse_analysis(payload: Union[str, bytes, Mapping[str, Any]]) -> AnalysisResult:
    """Build an :class:`AnalysisResult` from JSON text or an already-decoded mapping.

    A ``{"dependencyGraph": {...}}`` or ``{"result": {...}}`` envelope, as
    returned by the analysis API, is unwrapped.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise InvalidGraphError(f"Analysis is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise InvalidGraphError("Analysis document must be a JSON object")

    for envelope in ("dependencyGraph", "result"):
        inner = payload.get(envelope)
        if "nodes" not in payload and isinstance(inner, Mapping):
            payload = inner
            break
    return AnalysisResult.from_dict(payload)


def load_analysis(path: Path) -> AnalysisResult:
    """Read and parse an analysis JSON file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidGraphError(f"Cannot read analysis file '{path}': {exc}") from exc
    result = parse_analysis(text)
    logger.debug("Loaded %d node(s), %d link(s) from %s", len(result.nodes), len(result.links), path)
    return result


def save_analysis(result: AnalysisResult, path: Path) -> None:
    Path(path).write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
