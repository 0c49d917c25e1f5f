"""
Radial position seeding.

Places a subgraph's nodes before the force relaxation pass refines them:

- cold start: each root gets an anchor (canvas center for the first, right of
  everything placed so far for the others) and its neighborhood is placed
  ring by ring around it
- warm update: nodes seen in the previous pass keep their position and
  velocity; only new nodes are placed, ring by ring around the already
  placed nodes next to them

Ring radii follow the parent's outer visual radius so children never overlap
what is drawn for the parent.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Any, Callable, Iterable, Mapping, NamedTuple, Optional, Sequence

from ..base import StaticLayout
from ..style import AttributeRings, StyleParameters, outer_visual_radius, ring_count
from ..types import (
    Event,
    LinkLike,
    Node,
    NodeLike,
    Position,
    SizeType,
)

logger = logging.getLogger(__name__)

# Ring radius used when a parent is missing from the node map
DEFAULT_PARENT_RADIUS = 40.0


class ExpansionItem(NamedTuple):
    """Queue entry of the radial expansion."""

    node_id: str
    x: float
    y: float
    level: int


def place_on_circle(
    nodes: Sequence[Node],
    center_x: float,
    center_y: float,
    radius: float,
    start_angle: float = 0.0,
) -> None:
    """
    Place nodes evenly on a circle.

    A single node goes to ``start_angle``; N > 1 nodes are spaced by 2*pi/N
    starting there.

    Args:
        nodes: Nodes to place (mutated)
        center_x: Circle center x
        center_y: Circle center y
        radius: Circle radius
        start_angle: Angle of the first node in radians
    """
    n = len(nodes)
    if n == 0:
        return

    angle_step = 2 * math.pi / n
    for i, node in enumerate(nodes):
        angle = start_angle + i * angle_step
        node.x = center_x + radius * math.cos(angle)
        node.y = center_y + radius * math.sin(angle)


def find_position_outside_hull(
    nodes: Iterable[Node],
    margin: float = 200.0,
    size: SizeType = (1200.0, 800.0),
) -> tuple[float, float]:
    """
    Anchor point to the right of everything already placed.

    Uses the bounding box of the placed nodes: x is pushed past the right
    edge by ``margin`` plus a fifth of the box width, y is the box's middle.

    Args:
        nodes: Candidate nodes (unplaced ones are ignored)
        margin: Distance to keep from the placed nodes
        size: Canvas size, used when nothing is placed yet

    Returns:
        (x, y) anchor
    """
    points = [(n.x, n.y) for n in nodes if n.has_position]
    if not points:
        return (size[0] / 2 + margin, size[1] / 2)

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    width = max_x - min_x
    return (max_x + margin + width * 0.2, (min_y + max_y) / 2)


def radial_expansion(
    queue: Iterable[ExpansionItem],
    children_of: Mapping[str, Sequence[str]],
    parents_of: Mapping[str, Sequence[str]],
    nodes_by_id: Mapping[str, Node],
    positioned: set[str],
    orient_parents: bool,
    outer_radius: Callable[[Node], float],
    child_padding: float = 4.0,
) -> list[str]:
    """
    Breadth-first placement of unplaced neighbors around placed nodes.

    Every dequeued node places its unplaced neighbors (forward and inverse,
    within the node map) on one ring of radius ``outer_radius(parent) +
    child_padding`` and enqueues them one level deeper. With
    ``orient_parents`` the ring of a level-0 node lists inverse neighbors
    first and starts at -pi/2, so managers end up north of the root.

    Args:
        queue: Initial entries (already placed nodes)
        children_of: node id -> forward neighbor ids
        parents_of: node id -> inverse neighbor ids
        nodes_by_id: Nodes that may be placed
        positioned: Ids already placed (updated in place)
        orient_parents: Apply the north orientation at level 0
        outer_radius: Visual radius of a node
        child_padding: Gap between parent extent and ring

    Returns:
        Ids placed by this call, in placement order
    """
    pending: deque[ExpansionItem] = deque(queue)
    placed: list[str] = []

    while pending:
        current = pending.popleft()

        parents = [
            pid
            for pid in parents_of.get(current.node_id, ())
            if pid not in positioned and pid in nodes_by_id
        ]
        children = [
            cid
            for cid in children_of.get(current.node_id, ())
            if cid not in positioned and cid in nodes_by_id
        ]

        north = orient_parents and current.level == 0 and bool(parents)
        ordered = parents + children if north else children + parents
        ring = [nodes_by_id[nid] for nid in dict.fromkeys(ordered)]
        if not ring:
            continue

        parent = nodes_by_id.get(current.node_id)
        radius = (
            outer_radius(parent) + child_padding if parent is not None else DEFAULT_PARENT_RADIUS
        )
        start_angle = -math.pi / 2 if north else 0.0

        place_on_circle(ring, current.x, current.y, radius, start_angle)

        for node in ring:
            positioned.add(node.id)
            placed.append(node.id)
            pending.append(ExpansionItem(node.id, node.x, node.y, current.level + 1))  # type: ignore[arg-type]

    return placed


def capture_positions(nodes: Iterable[Node]) -> dict[str, Position]:
    """Snapshot positions and velocities of placed nodes for the next warm update."""
    return {
        node.id: Position(node.x, node.y, node.vx, node.vy)  # type: ignore[arg-type]
        for node in nodes
        if node.has_position
    }


class RadialSeedLayout(StaticLayout):
    """
    Radial initial placement with incremental updates.

    Nodes found in ``previous`` keep their position and velocity verbatim.
    If none of the nodes was placed before, the layout starts cold from the
    roots; otherwise only the new nodes are placed next to their placed
    neighbors. Nodes that remain unplaced (fragments not connected to any
    root or placed node) get a random position near the canvas center.

    Example:
        layout = RadialSeedLayout(
            nodes=persons,
            links=reporting_links,
            roots=["p1"],
            size=(1200, 800),
        )
        layout.run()
        previous = capture_positions(layout.nodes)
    """

    def __init__(
        self,
        *,
        nodes: Optional[Sequence[NodeLike]] = None,
        links: Optional[Sequence[LinkLike]] = None,
        size: Optional[SizeType] = None,
        random_seed: Optional[int] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
        # RadialSeed-specific parameters
        roots: Optional[Sequence[Any]] = None,
        previous: Optional[Mapping[str, Position]] = None,
        style: Optional[StyleParameters] = None,
        rings: Optional[AttributeRings] = None,
        root_margin: Optional[float] = None,
        fallback_spread: float = 100.0,
    ) -> None:
        """
        Initialize RadialSeed layout.

        Args:
            nodes: Nodes to place (Node objects are mutated in place)
            links: Links among the nodes
            size: Canvas size as (width, height). Defaults to style.size.
            random_seed: Seed for the fallback placement
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
            roots: Traversal roots in order (cold start anchors)
            previous: Positions from the previous pass, by node id
            style: Sizing parameters (node radius, ring sizes, child padding)
            rings: Attribute rings widening a node's outer radius
            root_margin: Gap between the placed graph and an extra root.
                Defaults to 1.5 * style.node_radius.
            fallback_spread: Width of the square around the center used for
                unplaced nodes
        """
        style = style if style is not None else StyleParameters()
        super().__init__(
            nodes=nodes,
            links=links,
            size=size if size is not None else style.size,
            random_seed=random_seed,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )

        self._roots: list[str] = [str(r) for r in (roots or ())]
        self._previous: dict[str, Position] = dict(previous or {})
        self._style: StyleParameters = style
        self._rings: Optional[AttributeRings] = rings
        self._root_margin: Optional[float] = root_margin
        self._fallback_spread: float = float(fallback_spread)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def roots(self) -> list[str]:
        """Get root ids."""
        return self._roots

    @roots.setter
    def roots(self, value: Sequence[Any]) -> None:
        self._roots = [str(r) for r in value]

    @property
    def previous(self) -> dict[str, Position]:
        """Get positions kept from the previous pass."""
        return self._previous

    @previous.setter
    def previous(self, value: Optional[Mapping[str, Position]]) -> None:
        self._previous = dict(value or {})

    @property
    def style(self) -> StyleParameters:
        return self._style

    @style.setter
    def style(self, value: StyleParameters) -> None:
        self._style = value

    @property
    def rings(self) -> Optional[AttributeRings]:
        return self._rings

    @rings.setter
    def rings(self, value: Optional[AttributeRings]) -> None:
        self._rings = value

    @property
    def root_margin(self) -> float:
        """Get gap between placed graph and an additional root."""
        if self._root_margin is not None:
            return self._root_margin
        return self._style.node_radius * 1.5

    @root_margin.setter
    def root_margin(self, value: Optional[float]) -> None:
        self._root_margin = float(value) if value is not None else None

    @property
    def fallback_spread(self) -> float:
        return self._fallback_spread

    @fallback_spread.setter
    def fallback_spread(self, value: float) -> None:
        self._fallback_spread = float(value)

    def outer_radius(self, node: Node) -> float:
        """Outer visual radius of a node under the current style and rings."""
        return outer_visual_radius(node, self._style, ring_count(node, self._rings))

    # -------------------------------------------------------------------------
    # Layout Computation
    # -------------------------------------------------------------------------

    def _compute(self, **kwargs: Any) -> int:
        """Restore kept positions, place new nodes, return number placed."""
        new_ids: list[str] = []
        for node in self._nodes:
            p = self._previous.get(node.id)
            if p is not None and _finite(p.x) and _finite(p.y):
                node.x, node.y, node.vx, node.vy = p.x, p.y, p.vx, p.vy
            else:
                new_ids.append(node.id)

        if not new_ids:
            return 0

        self._seed_random()
        by_id = self._node_map()
        children_of, parents_of = self._build_neighbor_maps()
        new_set = set(new_ids)
        positioned = {node.id for node in self._nodes if node.id not in new_set}

        if positioned:
            self._extend(by_id, children_of, parents_of, positioned, new_set)
        else:
            self._cold_start(by_id, children_of, parents_of, positioned)

        fallback = 0
        for node in self._nodes:
            if node.id in new_set and (node.id not in positioned or not node.has_position):
                node.x, node.y = self._fallback_position(self._fallback_spread)
                fallback += 1

        if fallback:
            logger.debug("Placed %d unconnected node(s) near the canvas center", fallback)
        return len(new_ids)

    def _cold_start(
        self,
        by_id: dict[str, Node],
        children_of: dict[str, list[str]],
        parents_of: dict[str, list[str]],
        positioned: set[str],
    ) -> None:
        roots = [rid for rid in dict.fromkeys(self._roots) if rid in by_id]
        if not roots:
            logger.debug("No root among %d nodes, using fallback placement", len(self._nodes))
            return

        for i, rid in enumerate(roots):
            root = by_id[rid]
            if rid not in positioned:
                if i == 0:
                    root.x, root.y = self.center
                else:
                    placed = [by_id[nid] for nid in positioned]
                    root.x, root.y = find_position_outside_hull(
                        placed, self.root_margin, self._canvas_size
                    )
                positioned.add(rid)

            radial_expansion(
                [ExpansionItem(rid, root.x, root.y, 0)],  # type: ignore[arg-type]
                children_of,
                parents_of,
                by_id,
                positioned,
                orient_parents=True,
                outer_radius=self.outer_radius,
                child_padding=self._style.child_padding,
            )

    def _extend(
        self,
        by_id: dict[str, Node],
        children_of: dict[str, list[str]],
        parents_of: dict[str, list[str]],
        positioned: set[str],
        new_set: set[str],
    ) -> None:
        seeds = []
        for node in self._nodes:
            if node.id in new_set:
                continue
            neighbors = list(children_of.get(node.id, ())) + list(parents_of.get(node.id, ()))
            if any(nid in new_set for nid in neighbors):
                seeds.append(ExpansionItem(node.id, node.x, node.y, 0))  # type: ignore[arg-type]

        placed = radial_expansion(
            seeds,
            children_of,
            parents_of,
            by_id,
            positioned,
            orient_parents=False,
            outer_radius=self.outer_radius,
            child_padding=self._style.child_padding,
        )
        logger.debug("Extended layout from %d seed(s), placed %d new node(s)", len(seeds), len(placed))


def _finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


__all__ = [
    "DEFAULT_PARENT_RADIUS",
    "ExpansionItem",
    "place_on_circle",
    "find_position_outside_hull",
    "radial_expansion",
    "capture_positions",
    "RadialSeedLayout",
]
