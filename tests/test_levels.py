"""
Tests for level assignment.
"""

from org_graph_layout import GraphIndex, Link, Node, compute_subgraph
from org_graph_layout.layout import (
    ORG_LEVEL,
    UNREACHABLE_LEVEL,
    compute_hierarchy_levels,
    compute_levels_from_roots,
)

# =============================================================================
# Test Fixtures
# =============================================================================


def create_dataset():
    """Create two reporting levels under one org."""
    #   head -> a, head -> b, a -> c     (reports)
    #   a -> team                        (membership)
    return GraphIndex(
        persons=[{"id": "head"}, {"id": "a"}, {"id": "b"}, {"id": "c"}],
        orgs=[{"id": "team"}],
        links=[
            {"source": "head", "target": "a"},
            {"source": "head", "target": "b"},
            {"source": "a", "target": "c"},
            {"source": "a", "target": "team"},
        ],
    )


class TestLevelsFromRoots:
    """Tests for undirected BFS levels."""

    def test_levels(self):
        """Test BFS levels from one root."""
        nodes = [Node(id=nid) for nid in ["a", "b", "c"]]
        links = [Link("a", "b"), Link("b", "c")]
        assert compute_levels_from_roots(nodes, ["a"], links) == {"a": 0, "b": 1, "c": 2}

    def test_direction_ignored(self):
        """Test that link direction is ignored."""
        nodes = [Node(id=nid) for nid in ["a", "b", "c"]]
        links = [Link("a", "b"), Link("b", "c")]
        assert compute_levels_from_roots(nodes, ["c"], links) == {"c": 0, "b": 1, "a": 2}

    def test_multiple_roots_nearest_wins(self):
        """Test that the nearest root decides the level."""
        nodes = [Node(id=nid) for nid in ["a", "b", "c", "d"]]
        links = [Link("a", "b"), Link("b", "c"), Link("c", "d")]
        levels = compute_levels_from_roots(nodes, ["a", "d"], links)
        assert levels == {"a": 0, "b": 1, "c": 1, "d": 0}

    def test_unreachable(self):
        """Test the level of unreachable nodes."""
        nodes = [Node(id="a"), Node(id="island")]
        levels = compute_levels_from_roots(nodes, ["a"], [])
        assert levels["island"] == UNREACHABLE_LEVEL

    def test_links_outside_node_set_not_followed(self):
        """Test that links leaving the node set are ignored."""
        nodes = [Node(id="a"), Node(id="c")]
        links = [Link("a", "b"), Link("b", "c")]
        assert compute_levels_from_roots(nodes, ["a"], links)["c"] == UNREACHABLE_LEVEL

    def test_unknown_root_ignored(self):
        """Test that unknown roots are ignored."""
        nodes = [Node(id="a")]
        assert compute_levels_from_roots(nodes, ["ghost"], []) == {"a": UNREACHABLE_LEVEL}


class TestHierarchyLevels:
    """Tests for management levels."""

    def test_levels(self):
        """Test management levels."""
        index = create_dataset()
        levels = compute_hierarchy_levels(index.nodes, index.links, index)
        assert levels == {"head": 0, "a": 1, "b": 1, "c": 2, "team": ORG_LEVEL}

    def test_top_of_visible_subset_is_level_zero(self):
        """Test that the top visible manager is level 0."""
        index = create_dataset()
        result = compute_subgraph(index, "a", 1, "down")
        levels = compute_hierarchy_levels(result.nodes, result.links, index)
        assert levels == {"a": 0, "c": 1}

    def test_membership_links_ignored(self):
        """Test that membership links do not add levels."""
        index = create_dataset()
        nodes = [index.get("a"), index.get("team")]
        levels = compute_hierarchy_levels(nodes, index.links, index)
        assert levels == {"a": 0, "team": ORG_LEVEL}
