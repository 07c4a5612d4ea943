"""Pytest configuration and fixtures for depgraph tests."""

import random
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from depgraph_cli.models import AnalysisMetadata, AnalysisResult, ArtifactType, Link, LinkKind, Node


def make_node(node_id: str, artifact_type: ArtifactType = ArtifactType.PRIMARY_UNIT, **kwargs) -> Node:
    """Build a node from a ``repo:path`` id."""
    repo, _, path = node_id.partition(":")
    name = kwargs.pop("name", path.rsplit("/", 1)[-1] or node_id)
    return Node(
        node_id=node_id,
        name=name,
        path=kwargs.pop("path", path),
        repository_id=kwargs.pop("repository_id", repo),
        artifact_type=artifact_type,
        **kwargs,
    )


def make_link(source: str, target: str, kind: LinkKind = LinkKind.METHOD_CALL, strength: float = 1.0) -> Link:
    return Link(source=source, target=target, kind=kind, strength=strength)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def temp_config(temp_dir: Path, monkeypatch) -> Path:
    """Point configuration at a throwaway directory."""
    base_dir = temp_dir / "home"
    monkeypatch.setattr("depgraph_cli.config.BASE_DIR", base_dir)
    monkeypatch.setattr("depgraph_cli.config.CONFIG_FILE", base_dir / "config.toml")
    return base_dir / "config.toml"


@pytest.fixture
def sample_analysis_path() -> Path:
    """Path to the sample discovery-service output."""
    return Path(__file__).parent / "fixtures" / "sample_analysis.json"


@pytest.fixture
def star_analysis() -> AnalysisResult:
    """Focus F with outgoing links to X and Y and an incoming link from Z.

    Also carries a dangling link and an unrelated node U.
    """
    nodes = [
        make_node("repoA:F.cls"),
        make_node("repoA:X.cls"),
        make_node("repoA:Y.cls", ArtifactType.TEST),
        make_node("repoB:Z.cls"),
        make_node("repoA:U.cls", ArtifactType.UI_COMPONENT),
    ]
    links = [
        make_link("repoA:F.cls", "repoA:X.cls"),
        make_link("repoA:F.cls", "repoA:Y.cls", LinkKind.TESTS),
        make_link("repoB:Z.cls", "repoA:F.cls", LinkKind.EXTENDS),
        make_link("repoA:F.cls", "repoC:Ghost.cls", LinkKind.REFERENCES),
    ]
    metadata = AnalysisMetadata(repositories=("repoA", "repoB"), analyzed_file="F.cls", analysis_depth=2)
    return AnalysisResult.build(nodes, links, metadata)


@pytest.fixture
def large_analysis() -> AnalysisResult:
    """Thirty nodes across four artifact types, chained by links."""
    types = [ArtifactType.TEST, ArtifactType.PRIMARY_UNIT, ArtifactType.OTHER, ArtifactType.UI_COMPONENT]
    nodes = [make_node(f"repo{i % 3}:N{i}.cls", types[i % len(types)]) for i in range(30)]
    links = [make_link(nodes[i].node_id, nodes[i + 1].node_id) for i in range(29)]
    return AnalysisResult.build(nodes, links)


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)
