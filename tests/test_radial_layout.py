"""
Tests for radial seeding and warm layout updates.
"""

import math

import pytest

from org_graph_layout import (
    AttributeRings,
    EventType,
    Link,
    Node,
    Position,
    RadialSeedLayout,
    StyleParameters,
    capture_positions,
    find_position_outside_hull,
    place_on_circle,
    radial_expansion,
)
from org_graph_layout.layout import ExpansionItem

# Default outer radius (8 + 3/2) plus the default child padding
RING = 9.5 + 4.0

# =============================================================================
# Test Fixtures
# =============================================================================


def create_star():
    """Create a manager with a boss and two reports."""
    #      boss
    #        |
    #        m
    #       / \
    #     r1   r2
    nodes = [Node(id=nid) for nid in ["m", "boss", "r1", "r2"]]
    links = [Link("boss", "m"), Link("m", "r1"), Link("m", "r2")]
    return nodes, links


def create_chain(n):
    """Create a reporting chain n0 -> n1 -> ... -> n(n-1)."""
    nodes = [Node(id=f"n{i}") for i in range(n)]
    links = [Link(f"n{i}", f"n{i + 1}") for i in range(n - 1)]
    return nodes, links


def distance(a, b):
    return math.hypot(a.x - b.x, a.y - b.y)


def by_id(nodes):
    return {n.id: n for n in nodes}


# =============================================================================
# Primitives
# =============================================================================


class TestPlaceOnCircle:
    """Tests for even placement on a circle."""

    @pytest.mark.parametrize("n", [1, 2, 5, 12])
    def test_all_on_radius(self, n):
        """Test that all nodes lie on the radius."""
        nodes = [Node(id=str(i)) for i in range(n)]
        place_on_circle(nodes, 10.0, 20.0, 50.0)
        for node in nodes:
            assert math.hypot(node.x - 10.0, node.y - 20.0) == pytest.approx(50.0)

    def test_even_angular_separation(self):
        """Test that nodes are evenly spaced."""
        nodes = [Node(id=str(i)) for i in range(6)]
        place_on_circle(nodes, 0.0, 0.0, 30.0)
        angles = [math.atan2(n.y, n.x) for n in nodes]
        for a, b in zip(angles, angles[1:]):
            step = (b - a) % (2 * math.pi)
            assert step == pytest.approx(2 * math.pi / 6)

    def test_start_angle(self):
        """Test the start angle."""
        nodes = [Node(id="a")]
        place_on_circle(nodes, 0.0, 0.0, 10.0, start_angle=-math.pi / 2)
        assert nodes[0].x == pytest.approx(0.0, abs=1e-9)
        assert nodes[0].y == pytest.approx(-10.0)

    def test_empty(self):
        """Test placing no nodes."""
        place_on_circle([], 0.0, 0.0, 10.0)


class TestFindPositionOutsideHull:
    """Tests for the anchor of an additional root."""

    def test_right_of_placed_nodes(self):
        """Test anchor right of the placed nodes."""
        nodes = [Node(id="a", x=0.0, y=0.0), Node(id="b", x=100.0, y=50.0)]
        assert find_position_outside_hull(nodes, margin=200) == pytest.approx((320.0, 25.0))

    def test_unplaced_ignored(self):
        """Test that unplaced nodes are ignored."""
        nodes = [Node(id="a", x=10.0, y=10.0), Node(id="b")]
        assert find_position_outside_hull(nodes, margin=5) == pytest.approx((15.0, 10.0))

    def test_nothing_placed_uses_canvas_center(self):
        """Test the anchor with nothing placed."""
        assert find_position_outside_hull([], margin=200, size=(1200, 800)) == (800.0, 400.0)


class TestRadialExpansion:
    """Tests for ring-by-ring placement."""

    def test_children_placed_around_parent(self):
        """Test that children ring their parent."""
        nodes, links = create_chain(3)
        nodes_by_id = by_id(nodes)
        nodes_by_id["n0"].x, nodes_by_id["n0"].y = 0.0, 0.0
        placed = radial_expansion(
            [ExpansionItem("n0", 0.0, 0.0, 0)],
            {"n0": ["n1"], "n1": ["n2"]},
            {"n1": ["n0"], "n2": ["n1"]},
            nodes_by_id,
            {"n0"},
            orient_parents=False,
            outer_radius=lambda node: 10.0,
            child_padding=0.0,
        )
        assert placed == ["n1", "n2"]
        assert (nodes_by_id["n1"].x, nodes_by_id["n1"].y) == pytest.approx((10.0, 0.0))
        assert (nodes_by_id["n2"].x, nodes_by_id["n2"].y) == pytest.approx((20.0, 0.0))

    def test_nodes_outside_map_skipped(self):
        """Test that unknown children are skipped."""
        a = Node(id="a", x=0.0, y=0.0)
        placed = radial_expansion(
            [ExpansionItem("a", 0.0, 0.0, 0)],
            {"a": ["missing"]},
            {},
            {"a": a},
            {"a"},
            orient_parents=False,
            outer_radius=lambda node: 10.0,
        )
        assert placed == []


# =============================================================================
# Cold start
# =============================================================================


class TestColdStart:
    """Tests for placement without previous positions."""

    def test_root_at_center(self):
        """Test that the root starts at the canvas center."""
        nodes, links = create_star()
        RadialSeedLayout(nodes=nodes, links=links, roots=["m"]).run()
        m = by_id(nodes)["m"]
        assert (m.x, m.y) == (600.0, 400.0)

    def test_all_nodes_placed(self):
        """Test that every node gets a position."""
        nodes, links = create_star()
        RadialSeedLayout(nodes=nodes, links=links, roots=["m"]).run()
        assert all(n.has_position for n in nodes)

    def test_managers_north_of_root(self):
        """Test that managers are placed north of the root."""
        nodes, links = create_star()
        RadialSeedLayout(nodes=nodes, links=links, roots=["m"]).run()
        boss = by_id(nodes)["boss"]
        assert boss.x == pytest.approx(600.0)
        assert boss.y == pytest.approx(400.0 - RING)

    def test_first_ring_radius(self):
        """Test the first ring radius."""
        nodes, links = create_star()
        RadialSeedLayout(nodes=nodes, links=links, roots=["m"]).run()
        m = by_id(nodes)["m"]
        for nid in ["boss", "r1", "r2"]:
            assert distance(by_id(nodes)[nid], m) == pytest.approx(RING)

    def test_no_parents_starts_east(self):
        """Test that rings start east without managers."""
        nodes, links = create_chain(2)
        RadialSeedLayout(nodes=nodes, links=links, roots=["n0"]).run()
        n1 = by_id(nodes)["n1"]
        assert (n1.x, n1.y) == pytest.approx((600.0 + RING, 400.0))

    def test_deeper_rings_around_parent(self):
        """Test that deeper rings center on their parent."""
        nodes, links = create_chain(3)
        RadialSeedLayout(nodes=nodes, links=links, roots=["n0"]).run()
        n = by_id(nodes)
        assert distance(n["n2"], n["n1"]) == pytest.approx(RING)

    def test_attribute_rings_widen_radius(self):
        """Test that attribute rings widen the ring radius."""
        nodes, links = create_chain(2)
        rings = AttributeRings(person_attributes={"n0": ["skill::python"]}, active={"skill::python"})
        RadialSeedLayout(nodes=nodes, links=links, roots=["n0"], rings=rings).run()
        n = by_id(nodes)
        assert distance(n["n1"], n["n0"]) == pytest.approx(RING + 4.0 + 3.0)

    def test_style_size_used(self):
        """Test that the style canvas size is used."""
        nodes, links = create_chain(1)
        style = StyleParameters(size=(400, 300))
        RadialSeedLayout(nodes=nodes, links=links, roots=["n0"], style=style).run()
        assert (nodes[0].x, nodes[0].y) == (200.0, 150.0)

    def test_second_root_right_of_first(self):
        """Test that a second root goes right of the first."""
        nodes = [Node(id="a"), Node(id="a1"), Node(id="b")]
        links = [Link("a", "a1")]
        RadialSeedLayout(nodes=nodes, links=links, roots=["a", "b"]).run()
        n = by_id(nodes)
        assert n["b"].x > n["a1"].x
        assert n["b"].y == pytest.approx((n["a"].y + n["a1"].y) / 2)

    def test_second_root_already_placed_keeps_position(self):
        """Test that a placed root keeps its position."""
        nodes, links = create_chain(2)
        RadialSeedLayout(nodes=nodes, links=links, roots=["n0", "n1"]).run()
        n1 = by_id(nodes)["n1"]
        assert (n1.x, n1.y) == pytest.approx((600.0 + RING, 400.0))

    def test_unconnected_node_falls_back_near_center(self):
        """Test fallback placement of unconnected nodes."""
        nodes = [Node(id="a"), Node(id="stray")]
        RadialSeedLayout(nodes=nodes, links=[], roots=["a"], random_seed=1).run()
        stray = by_id(nodes)["stray"]
        assert abs(stray.x - 600.0) <= 50.0
        assert abs(stray.y - 400.0) <= 50.0

    def test_no_roots_falls_back(self):
        """Test layout without roots."""
        nodes, links = create_chain(3)
        RadialSeedLayout(nodes=nodes, links=links, roots=[], random_seed=7).run()
        assert all(n.has_position for n in nodes)

    def test_seed_reproducible(self):
        """Test that a seed reproduces the layout."""
        first = [Node(id="a"), Node(id="b")]
        second = [Node(id="a"), Node(id="b")]
        RadialSeedLayout(nodes=first, roots=[], random_seed=3).run()
        RadialSeedLayout(nodes=second, roots=[], random_seed=3).run()
        assert [(n.x, n.y) for n in first] == [(n.x, n.y) for n in second]

    def test_dict_nodes_accepted(self):
        """Test dict node records."""
        layout = RadialSeedLayout(
            nodes=[{"id": "a"}, {"id": "b"}],
            links=[{"source": "a", "target": "b"}],
            roots=["a"],
        )
        layout.run()
        assert all(n.has_position for n in layout.nodes)


# =============================================================================
# Warm updates
# =============================================================================


class TestWarmUpdate:
    """Tests for incremental placement from previous positions."""

    def test_previous_positions_kept(self):
        """Test that previous positions are restored."""
        nodes, links = create_chain(2)
        RadialSeedLayout(nodes=nodes, links=links, roots=["n0"]).run()
        previous = capture_positions(nodes)

        grown, grown_links = create_chain(3)
        RadialSeedLayout(nodes=grown, links=grown_links, roots=["n0"], previous=previous).run()
        for nid, pos in previous.items():
            node = by_id(grown)[nid]
            assert (node.x, node.y) == (pos.x, pos.y)

    def test_new_node_next_to_placed_neighbor(self):
        """Test that new nodes ring their placed neighbor."""
        previous = {"n0": Position(100.0, 100.0), "n1": Position(200.0, 100.0)}
        nodes, links = create_chain(3)
        RadialSeedLayout(nodes=nodes, links=links, roots=["n0"], previous=previous).run()
        n = by_id(nodes)
        assert (n["n2"].x, n["n2"].y) == pytest.approx((200.0 + RING, 100.0))

    def test_velocity_restored(self):
        """Test that previous velocities are restored."""
        previous = {"a": Position(1.0, 2.0, 0.5, -0.5)}
        nodes = [Node(id="a")]
        RadialSeedLayout(nodes=nodes, roots=["a"], previous=previous).run()
        assert (nodes[0].vx, nodes[0].vy) == (0.5, -0.5)

    def test_nothing_new_places_nothing(self):
        """Test a warm run without new nodes."""
        placed = []
        nodes = [Node(id="a")]
        layout = RadialSeedLayout(
            nodes=nodes,
            roots=["a"],
            previous={"a": Position(5.0, 5.0)},
            on_end=lambda event: placed.append(event["placed"]),
        )
        layout.run()
        assert placed == [0]

    def test_previous_from_other_subgraph_ignored_for_missing_nodes(self):
        """Test that stale previous positions are ignored."""
        previous = {"gone": Position(0.0, 0.0), "a": Position(10.0, 10.0)}
        nodes = [Node(id="a"), Node(id="b")]
        RadialSeedLayout(nodes=nodes, links=[Link("b", "a")], roots=["a"], previous=previous).run()
        b = by_id(nodes)["b"]
        assert distance(b, by_id(nodes)["a"]) == pytest.approx(RING)

    def test_capture_skips_unplaced(self):
        """Test that capture skips unplaced nodes."""
        nodes = [Node(id="a", x=1.0, y=2.0), Node(id="b")]
        assert capture_positions(nodes) == {"a": Position(1.0, 2.0, None, None)}


class TestEvents:
    """Tests for layout lifecycle events."""

    def test_start_and_end_fired(self):
        """Test start and end events."""
        events = []
        nodes, links = create_chain(3)
        layout = RadialSeedLayout(nodes=nodes, links=links, roots=["n0"])
        layout.on("start", lambda e: events.append(e["type"]))
        layout.on(EventType.end, lambda e: events.append((e["type"], e["placed"])))
        layout.run()
        assert events == [EventType.start, (EventType.end, 3)]
