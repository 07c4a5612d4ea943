"""depgraph — dependency-graph layout and relationship analysis."""

__version__ = "0.3.0"
