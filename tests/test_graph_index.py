"""
Tests for the graph index: normalization, adjacency cache and org hierarchy.
"""

import warnings

import pytest

from org_graph_layout import GraphIndex, HierarchyCycleWarning, Link, Node, NodeType
from org_graph_layout.graph import build_adjacency, build_hierarchy, collect_report_subtree, org_depth

# =============================================================================
# Test Fixtures
# =============================================================================


def create_small_org():
    """Create the three-person chain with two nested orgs."""
    #   p1 -> p2 -> p3        (reports)
    #   p1 -> o1, p2 -> o2    (membership)
    #   o1 -> o2              (org parent -> child)
    persons = [{"id": "p1", "name": "Ada"}, {"id": "p2"}, {"id": "p3"}]
    orgs = [{"id": "o1", "name": "Engineering"}, {"id": "o2", "name": "Platform"}]
    links = [
        {"source": "p1", "target": "p2"},
        {"source": "p2", "target": "p3"},
        {"source": "p1", "target": "o1"},
        {"source": "p2", "target": "o2"},
        {"source": "o1", "target": "o2"},
    ]
    return persons, orgs, links


def create_index():
    persons, orgs, links = create_small_org()
    return GraphIndex(persons, orgs, links)


# =============================================================================
# Loading
# =============================================================================


class TestLoading:
    """Tests for dataset normalization."""

    def test_node_types(self):
        """Test that persons and orgs get their node types."""
        index = create_index()
        assert index.person_ids == ["p1", "p2", "p3"]
        assert index.org_ids == ["o1", "o2"]
        assert index.get("p1").type is NodeType.person
        assert index.get("o1").is_org

    def test_label_falls_back_to_name_then_id(self):
        """Test label fallback."""
        index = create_index()
        assert index.get("p1").label == "Ada"
        assert index.get("p2").label == "p2"

    def test_extra_fields_copied(self):
        """Test that unknown record fields are kept."""
        index = GraphIndex([{"id": "p1", "title": "CTO"}], [], [])
        assert index.get("p1").title == "CTO"

    def test_records_without_id_skipped(self):
        """Test that records without an id are skipped."""
        index = GraphIndex([{"id": "p1"}, {"name": "nobody"}], [], [])
        assert len(index) == 1

    def test_numeric_ids_become_strings(self):
        """Test that numeric ids are normalized to strings."""
        index = GraphIndex([{"id": 1}, {"id": 2}], [], [{"source": 1, "target": 2}])
        assert "1" in index
        assert index.links == [Link("1", "2")]

    def test_zero_id_kept(self):
        """Test that an integer id of 0 is a valid id."""
        index = GraphIndex([{"id": 0}, {"id": 1}], [], [{"source": 0, "target": 1}])
        assert "0" in index
        assert index.links == [Link("0", "1")]

    def test_empty_id_skipped(self):
        """Test that an empty string id counts as missing."""
        index = GraphIndex([{"id": ""}, {"id": "p1"}], [], [])
        assert index.person_ids == ["p1"]

    def test_bad_links_dropped(self):
        """Test that invalid links are dropped."""
        persons, orgs, links = create_small_org()
        links = links + [
            {"source": "p1", "target": "p2"},  # duplicate
            {"source": "p3", "target": "p3"},  # self-loop
            {"source": "p3", "target": "ghost"},  # unknown endpoint
        ]
        index = GraphIndex(persons, orgs, links)
        assert len(index.links) == 5

    def test_link_endpoints_may_be_records(self):
        """Test links whose endpoints are records."""
        p1, p2 = Node(id="p1"), Node(id="p2")
        index = GraphIndex([p1, p2], [], [{"source": p1, "target": {"id": "p2"}}])
        assert index.links == [Link("p1", "p2")]

    def test_person_orgs(self):
        """Test direct org memberships of a person."""
        index = create_index()
        assert index.person_orgs("p1") == {"o1"}
        assert index.person_orgs("p3") == set()

    def test_explicit_basis_flag(self):
        """Test an explicit basis flag."""
        index = GraphIndex([{"id": "p1", "isBasis": True}, {"id": "p2"}], [], [])
        assert index.get("p1").is_basis
        assert not index.get("p2").is_basis

    def test_derive_basis(self):
        """Test that persons without reports become basis."""
        persons, orgs, links = create_small_org()
        index = GraphIndex(persons, orgs, links, derive_basis=True)
        assert not index.get("p1").is_basis
        assert not index.get("p2").is_basis
        assert index.get("p3").is_basis

    def test_derive_basis_keeps_explicit_flag(self):
        """Test that derivation keeps explicit flags."""
        index = GraphIndex(
            [{"id": "p1", "isBasis": False}], [], [], derive_basis=True
        )
        assert not index.get("p1").is_basis


# =============================================================================
# Adjacency
# =============================================================================


class TestAdjacency:
    """Tests for adjacency maps and their cache."""

    def test_maps(self):
        """Test forward and inverse adjacency maps."""
        adjacency = create_index().adjacency()
        assert adjacency.out["p1"] == {"p2", "o1"}
        assert adjacency.inn["o2"] == {"p2", "o1"}
        assert adjacency.adj["p2"] == {"p1", "p3", "o2"}

    def test_manager_of_only_person_links(self):
        """Test that manager_of only holds person links."""
        adjacency = create_index().adjacency()
        assert adjacency.manager_of == {"p2": "p1", "p3": "p2"}

    def test_same_instance_returns_cached_object(self):
        """Test that the same link list hits the cache."""
        index = create_index()
        links = list(index.links)
        assert index.adjacency(links) is index.adjacency(links)

    def test_default_links_cached(self):
        """Test caching for the index's own links."""
        index = create_index()
        assert index.adjacency() is index.adjacency()

    def test_equal_but_distinct_list_rebuilds(self):
        """Test that an equal but distinct list rebuilds."""
        index = create_index()
        first = index.adjacency(list(index.links))
        second = index.adjacency(list(index.links))
        assert first is not second
        assert first == second

    def test_invalidate_rebuilds(self):
        """Test that invalidate drops the cache."""
        index = create_index()
        first = index.adjacency()
        version = index.version
        index.invalidate()
        assert index.version == version + 1
        assert index.adjacency() is not first

    def test_build_adjacency_skips_unknown(self):
        """Test that unknown endpoints are skipped."""
        by_id = {"a": Node(id="a"), "b": Node(id="b")}
        adjacency = build_adjacency([Link("a", "b"), Link("a", "c")], by_id)
        assert adjacency.out == {"a": {"b"}}


# =============================================================================
# Org hierarchy
# =============================================================================


class TestHierarchy:
    """Tests for the org hierarchy and depth computation."""

    def test_parent_and_children(self):
        """Test org parent and children maps."""
        hierarchy = create_index().hierarchy
        assert hierarchy.parent_of == {"o2": "o1"}
        assert hierarchy.children == {"o1": {"o2"}}
        assert hierarchy.roots == ["o1"]

    def test_depth(self):
        """Test org depth."""
        index = create_index()
        assert index.org_depth("o1") == 0
        assert index.org_depth("o2") == 1

    def test_depth_memoized_until_invalidated(self):
        """Test that org depth is memoized."""
        index = create_index()
        hierarchy = index.hierarchy
        assert index.org_depth("o2") == 1
        hierarchy.parent_of.pop("o2")
        assert index.org_depth("o2") == 1
        index.invalidate_hierarchy()
        assert index.hierarchy is not hierarchy
        assert index.org_depth("o2") == 1

    def test_cycle_terminates_with_warning(self):
        """Test that an org cycle warns and terminates."""
        parent_of = {"a": "b", "b": "c", "c": "a"}
        with pytest.warns(HierarchyCycleWarning, match="cycle"):
            depth = org_depth("a", parent_of)
        assert depth == 3

    def test_no_warning_without_cycle(self):
        """Test that acyclic hierarchies do not warn."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert org_depth("c", {"c": "b", "b": "a"}) == 2

    def test_build_hierarchy_ignores_person_links(self):
        """Test that person links are not org hierarchy."""
        hierarchy = build_hierarchy(["o1"], [Link("p1", "o1")])
        assert hierarchy.parent_of == {}
        assert hierarchy.roots == ["o1"]


# =============================================================================
# Report subtree
# =============================================================================


class TestReportSubtree:
    """Tests for collecting a person's reports."""

    def test_includes_root_and_indirect_reports(self):
        """Test that the subtree includes indirect reports."""
        index = create_index()
        assert index.collect_report_subtree("p1") == {"p1", "p2", "p3"}

    def test_leaf(self):
        """Test the subtree of a leaf."""
        assert create_index().collect_report_subtree("p3") == {"p3"}

    def test_does_not_follow_orgs(self):
        """Test that the subtree skips orgs."""
        index = create_index()
        assert "o1" not in index.collect_report_subtree("p1")

    def test_pure_function_matches_method(self):
        """Test the function against the method."""
        index = create_index()
        assert collect_report_subtree("p2", index.links, index.by_id) == index.collect_report_subtree("p2")
