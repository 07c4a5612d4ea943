"""Tests for view-mode filtering and sub-graph selection."""

import pytest

from depgraph_cli.models import AnalysisMetadata, AnalysisResult, ArtifactType, LinkKind
from depgraph_cli.relation_filter import (
    ViewMode,
    filter_nodes,
    reference_repository,
    same_repository,
    subgraph,
)
from depgraph_cli.relations import RelationIndex

from conftest import make_link, make_node


def _ids(nodes):
    return [n.node_id for n in nodes]


@pytest.fixture
def star_index(star_analysis: AnalysisResult) -> RelationIndex:
    return RelationIndex.build(star_analysis.nodes, star_analysis.links)


class TestFilterNodes:
    """Tests for filter_nodes."""

    def test_dependencies(self, star_analysis, star_index):
        """Test that dependencies are the targets of the focus's outgoing links."""
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", ViewMode.DEPENDENCIES)
        assert set(_ids(nodes)) == {"repoA:X.cls", "repoA:Y.cls"}

    def test_dependents(self, star_analysis, star_index):
        """Test that dependents are the sources of the focus's incoming links."""
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "dependents")
        assert _ids(nodes) == ["repoB:Z.cls"]

    def test_all_returns_every_node(self, star_analysis, star_index):
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "all")
        assert _ids(nodes) == star_analysis.node_ids

    def test_unresolved_focus_gives_empty(self, star_analysis, star_index):
        assert filter_nodes(star_analysis, star_index, None, "dependencies") == []
        assert filter_nodes(star_analysis, star_index, None, "dependents") == []
        assert filter_nodes(star_analysis, star_index, "ghost:id", "dependencies") == []

    def test_unresolved_focus_all_still_works(self, star_analysis, star_index):
        assert len(filter_nodes(star_analysis, star_index, None, "all")) == 5

    def test_cross_repo_uses_primary_repository(self, star_analysis, star_index):
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "cross-repo", primary_repository="repoA")
        assert _ids(nodes) == ["repoB:Z.cls"]

    def test_cross_repo_reference_not_tied_to_focus(self, star_analysis, star_index):
        """Test that the reference repository can differ from the focus node's."""
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "cross-repo", primary_repository="repoB")
        assert set(_ids(nodes)) == {"repoA:F.cls", "repoA:X.cls", "repoA:Y.cls", "repoA:U.cls"}

    def test_cross_repo_defaults_to_first_repository(self, star_analysis, star_index):
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", ViewMode.CROSS_REPO)
        assert _ids(nodes) == ["repoB:Z.cls"]

    def test_cross_repo_owner_prefixed_reference(self, star_analysis, star_index):
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "cross-repo", primary_repository="acme/repoA")
        assert _ids(nodes) == ["repoB:Z.cls"]

    def test_search_is_case_insensitive(self, star_analysis, star_index):
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "all", search_term="x.CLS")
        assert _ids(nodes) == ["repoA:X.cls"]

    def test_search_matches_repository(self, star_analysis, star_index):
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "all", search_term="REPOB")
        assert _ids(nodes) == ["repoB:Z.cls"]

    def test_search_combines_with_mode(self, star_analysis, star_index):
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "dependencies", search_term="y.cls")
        assert _ids(nodes) == ["repoA:Y.cls"]

    def test_dangling_target_not_listed(self, star_analysis, star_index):
        nodes = filter_nodes(star_analysis, star_index, "repoA:F.cls", "dependencies")
        assert "repoC:Ghost.cls" not in _ids(nodes)

    def test_unknown_mode(self, star_analysis, star_index):
        with pytest.raises(ValueError):
            filter_nodes(star_analysis, star_index, "repoA:F.cls", "sideways")


class TestRepositoryHelpers:
    """Tests for repository comparison helpers."""

    def test_same_repository(self):
        assert same_repository("repoA", "repoA")
        assert same_repository("acme/repoA", "repoA")
        assert same_repository("repoA", "acme/repoA")
        assert not same_repository("acme/repoA", "other/repoA")
        assert not same_repository("repoA", "repoB")

    def test_reference_falls_back_to_focus_repository(self):
        result = AnalysisResult.build([make_node("solo:A.cls")], [], AnalysisMetadata())
        assert reference_repository(result, "solo:A.cls") == "solo"
        assert reference_repository(result, None) == ""


class TestSubgraph:
    """Tests for subgraph."""

    def test_filter_by_artifact_type(self, star_analysis):
        filtered = subgraph(star_analysis, artifact_type="apex")
        assert filtered.node_ids == ["repoA:F.cls", "repoA:X.cls", "repoB:Z.cls"]
        assert {(l.source, l.target) for l in filtered.links} == {
            ("repoA:F.cls", "repoA:X.cls"),
            ("repoB:Z.cls", "repoA:F.cls"),
        }
        assert filtered.metadata.node_count == 3
        assert filtered.metadata.link_count == 2
        assert filtered.metadata.cross_repo_link_count == 1

    def test_filter_by_link_kind(self, star_analysis):
        filtered = subgraph(star_analysis, link_kind=LinkKind.TESTS)
        assert len(filtered.nodes) == 5
        assert [(l.source, l.target) for l in filtered.links] == [("repoA:F.cls", "repoA:Y.cls")]

    def test_filter_by_strength(self):
        nodes = [make_node("r:A"), make_node("r:B", ArtifactType.TEST)]
        links = [make_link("r:A", "r:B", strength=0.2), make_link("r:B", "r:A", strength=0.8)]
        filtered = subgraph(AnalysisResult.build(nodes, links), min_strength=0.5)
        assert [(l.source, l.target) for l in filtered.links] == [("r:B", "r:A")]

    def test_dangling_links_dropped(self, star_analysis):
        filtered = subgraph(star_analysis)
        assert all(l.target != "repoC:Ghost.cls" for l in filtered.links)
        assert filtered.metadata.link_count == 3

    def test_all_means_no_filter(self, star_analysis):
        filtered = subgraph(star_analysis, artifact_type="all", link_kind="all")
        assert filtered.node_ids == star_analysis.node_ids

    def test_input_not_mutated(self, star_analysis):
        before = star_analysis.to_dict()
        subgraph(star_analysis, artifact_type="test")
        assert star_analysis.to_dict() == before
