"""
Common types for the org graph engine.

This module provides the fundamental types used across all modules:
- NodeType: Person or organizational unit
- Direction: Traversal mode for subgraph selection
- Node: Person/org vertex with level, position and velocity
- Link: Directed edge between two node ids
- Position: Snapshot of a node's position and velocity
- SubgraphResult: Selected neighborhood plus legend bookkeeping
- EventType / Event: Layout lifecycle events
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, NamedTuple, Optional, Sequence, TypedDict, Union


class NodeType(str, Enum):
    """Kind of a graph node."""

    person = "person"
    org = "org"


class Direction(str, Enum):
    """
    Traversal mode for subgraph computation.

    - down: follow reporting lines and org children
    - up: follow managers, parent orgs and a person's own orgs
    - both: union of the two rule sets
    """

    down = "down"
    up = "up"
    both = "both"


class EventType(IntEnum):
    """
    Layout lifecycle events.

    - start: Layout iterations have begun
    - tick: Fired once per iteration (for animation)
    - end: Layout has converged or stopped
    """

    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    alpha: float
    placed: Optional[int]


def id_of(value: Any) -> str:
    """
    Extract a node id from a raw id, a node object or a dict record.

    Mirrors how link endpoints arrive from datasets: either the id itself or
    the referenced record.
    """
    if isinstance(value, dict):
        return str(value.get("id"))
    if value is not None and not isinstance(value, (str, int, float)) and hasattr(value, "id"):
        return str(value.id)
    return str(value)


# Record keys that are mapped onto a differently named attribute
_ALIASED_KEYS = frozenset({"isBasis"})


class Node:
    """
    Person or org node.

    Attributes:
        id: Globally unique id
        type: NodeType.person or NodeType.org
        label: Display label (falls back to ``name``, then the id)
        level: BFS distance from the nearest traversal root
        x: X coordinate, None while unplaced
        y: Y coordinate, None while unplaced
        vx: X velocity (simulation state)
        vy: Y velocity (simulation state)
        fx: Pinned x coordinate (dragged nodes), None when free
        fy: Pinned y coordinate (dragged nodes), None when free
        is_basis: Person is a leaf individual contributor
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize node from record fields."""
        self.id: str = str(kwargs.get("id", ""))
        self.type: NodeType = NodeType(kwargs.get("type", NodeType.person))
        self.label: str = str(kwargs.get("label") or kwargs.get("name") or self.id)
        self.level: int = int(kwargs.get("level", 0))
        self.x: Optional[float] = kwargs.get("x")
        self.y: Optional[float] = kwargs.get("y")
        self.vx: Optional[float] = kwargs.get("vx")
        self.vy: Optional[float] = kwargs.get("vy")
        self.fx: Optional[float] = kwargs.get("fx")
        self.fy: Optional[float] = kwargs.get("fy")
        self.is_basis: bool = bool(kwargs.get("is_basis", kwargs.get("isBasis", False)))

        # Copy any additional record fields
        for key, value in kwargs.items():
            if key not in _ALIASED_KEYS and not hasattr(self, key):
                setattr(self, key, value)

    @property
    def is_person(self) -> bool:
        return self.type is NodeType.person

    @property
    def is_org(self) -> bool:
        return self.type is NodeType.org

    @property
    def has_position(self) -> bool:
        """True when both coordinates are finite numbers."""
        return _is_finite(self.x) and _is_finite(self.y)

    def copy(self, **overrides: Any) -> Node:
        """Return a shallow copy with some attributes replaced."""
        clone = Node.__new__(Node)
        clone.__dict__.update(self.__dict__)
        clone.__dict__.update(overrides)
        return clone

    def __repr__(self) -> str:
        if self.has_position:
            return f"Node({self.id!r}, {self.type.value}, level={self.level}, x={self.x:.2f}, y={self.y:.2f})"
        return f"Node({self.id!r}, {self.type.value}, level={self.level})"


class Link:
    """
    Directed edge between two node ids.

    The meaning depends on the endpoint types: person->person is a reporting
    line (source is the manager), person->org a membership and org->org a
    parent->child relation.

    Attributes:
        source: Source node id
        target: Target node id
    """

    def __init__(self, source: Any, target: Any, **kwargs: Any) -> None:
        """
        Initialize link between two nodes.

        Args:
            source: Source id, node or record (required)
            target: Target id, node or record (required)

        Raises:
            ValueError: If source or target is None
        """
        if source is None:
            raise ValueError("Link source cannot be None")
        if target is None:
            raise ValueError("Link target cannot be None")

        self.source: str = id_of(source)
        self.target: str = id_of(target)

        for key, value in kwargs.items():
            if not hasattr(self, key):
                setattr(self, key, value)

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Link):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"Link({self.source} -> {self.target})"


class Position(NamedTuple):
    """Position and velocity of a node captured between layout passes."""

    x: float
    y: float
    vx: Optional[float] = None
    vy: Optional[float] = None


@dataclass
class SubgraphResult:
    """
    Neighborhood selected around one or more start nodes.

    Attributes:
        nodes: Node copies carrying the per-call BFS level
        links: Links whose endpoints both survived filtering
        legend_orgs: Deepest org of every included person
        legend_org_levels: Minimum person level activating each legend org
        hidden_ids: Ids removed by the hidden filter in this call
    """

    nodes: list[Node] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    legend_orgs: set[str] = field(default_factory=set)
    legend_org_levels: dict[str, int] = field(default_factory=dict)
    hidden_ids: set[str] = field(default_factory=set)

    @property
    def hidden_count(self) -> int:
        return len(self.hidden_ids)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def levels(self) -> dict[str, int]:
        return {n.id: n.level for n in self.nodes}

    def person_view(self) -> tuple[list[Node], list[Link]]:
        """Return the person nodes and the person->person links among them."""
        persons = [n for n in self.nodes if n.is_person]
        person_ids = {n.id for n in persons}
        links = [
            link for link in self.links if link.source in person_ids and link.target in person_ids
        ]
        return persons, links


def _is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


# Type aliases for Pythonic API
NodeLike = Union[Node, dict[str, Any], Any]
"""Input type for nodes: Node objects, dicts, or objects with node attributes."""

LinkLike = Union[Link, dict[str, Any], Any]
"""Input type for links: Link objects, dicts, or objects with source/target."""

SizeType = Union[tuple[float, float], list[float], Sequence[float]]
"""Canvas size: (width, height) tuple, list, or sequence."""

Point = tuple[float, float]
"""2D point as (x, y)."""

Polygon = list[Point]
"""Closed polygon as an ordered list of points."""


__all__ = [
    "NodeType",
    "Direction",
    "EventType",
    "Event",
    "id_of",
    "Node",
    "Link",
    "Position",
    "SubgraphResult",
    # Pythonic API type aliases
    "NodeLike",
    "LinkLike",
    "SizeType",
    "Point",
    "Polygon",
]
