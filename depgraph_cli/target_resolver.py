"""Resolve the focus node of an analysis view."""

from __future__ import annotations

import logging
from typing import Optional

from .models import AnalysisResult

logger = logging.getLogger(__name__)


def resolve_target(result: AnalysisResult) -> Optional[str]:
    """Return the id of the node the analysis was run for.

    The first node, in input order, whose path equals
    ``metadata.analyzed_file``, whose id ends in ``":<analyzed_file>"`` or
    whose path ends in it (repositories may prefix paths differently) wins.
    Otherwise the first node is used.
    Returns ``None`` for an empty analysis.
    """
    if not result.nodes:
        return None

    analyzed = result.metadata.analyzed_file
    if analyzed:
        suffix = f":{analyzed}"
        for node in result.nodes:
            if node.path == analyzed or node.node_id.endswith(suffix) or node.path.endswith(analyzed):
                logger.debug("Target resolved from analyzed file: %s (%s)", node.node_id, node.path)
                return node.node_id
        logger.debug("Analyzed file '%s' matched no node; falling back to first node", analyzed)

    fallback = result.nodes[0].node_id
    logger.debug("Target fallback to first node: %s", fallback)
    return fallback
