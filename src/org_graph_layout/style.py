"""
Node sizing parameters and the outer visual radius.

The host supplies sizing per call; nothing here reads a global source. The
outer visual radius (base radius, half the stroke, and one ring per active
attribute) sizes placement circles, collision radii and link end points.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from .types import Node
from .validation import UnknownParameterError, validate_canvas_size, validate_non_negative


@dataclass(frozen=True)
class StyleParameters:
    """
    Sizing of rendered nodes and clusters.

    Attributes:
        node_radius: Base circle radius
        stroke_width: Circle stroke width
        ring_gap: Gap between attribute rings
        ring_width: Width of one attribute ring
        collide_padding: Extra spacing used by the collision force
        cluster_padding: Padding around cluster hulls
        child_padding: Gap between a parent's outer radius and its placed children
        size: Canvas (width, height)
    """

    node_radius: float = 8.0
    stroke_width: float = 3.0
    ring_gap: float = 4.0
    ring_width: float = 3.0
    collide_padding: float = 6.0
    cluster_padding: float = 12.0
    child_padding: float = 4.0
    size: tuple[float, float] = (1200.0, 800.0)

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            if f.name == "size":
                object.__setattr__(self, "size", validate_canvas_size(self.size))
            else:
                object.__setattr__(self, f.name, validate_non_negative(getattr(self, f.name), f.name))

    @property
    def width(self) -> float:
        return self.size[0]

    @property
    def height(self) -> float:
        return self.size[1]

    def replace(self, **overrides: Any) -> StyleParameters:
        """
        Return a copy with named parameters replaced.

        Raises:
            UnknownParameterError: If a name is not a style parameter
        """
        check_parameter_names(self, overrides)
        return dataclasses.replace(self, **overrides)


@dataclass
class AttributeRings:
    """
    Decorative attribute rings drawn around person nodes.

    Attribute names use the ``"category::value"`` form; a ring is drawn for
    every attribute of a person that is active and whose category is not
    hidden, as long as rings are visible at all.

    Attributes:
        person_attributes: person id -> attribute names
        active: Attribute names currently switched on
        hidden_categories: Categories whose rings are suppressed
        visible: Global ring visibility
    """

    person_attributes: Mapping[str, Iterable[str]] = field(default_factory=dict)
    active: set[str] = field(default_factory=set)
    hidden_categories: set[str] = field(default_factory=set)
    visible: bool = True

    def count(self, node: Node) -> int:
        """Number of rings drawn around a node."""
        if not self.visible:
            return 0
        attrs = self.person_attributes.get(node.id)
        if not attrs:
            return 0
        total = 0
        for name in attrs:
            if name not in self.active:
                continue
            category = name.split("::", 1)[0]
            if category in self.hidden_categories:
                continue
            total += 1
        return total


def outer_visual_radius(node: Node, style: StyleParameters, rings: int = 0) -> float:
    """
    Radius of everything drawn for a node.

    Args:
        node: Node being measured (kept for callers mapping per-node rings)
        style: Sizing parameters
        rings: Number of active attribute rings

    Returns:
        node_radius + stroke_width / 2 + rings * (ring_gap + ring_width)
    """
    radius = style.node_radius + style.stroke_width / 2
    if rings > 0:
        radius += rings * (style.ring_gap + style.ring_width)
    return radius


def ring_count(node: Node, rings: Optional[AttributeRings]) -> int:
    return rings.count(node) if rings is not None else 0


def check_parameter_names(params: Any, overrides: Mapping[str, Any]) -> None:
    known = {f.name for f in dataclasses.fields(params)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise UnknownParameterError(
            f"Unknown {type(params).__name__} parameter(s): {', '.join(unknown)}"
        )


__all__ = [
    "StyleParameters",
    "AttributeRings",
    "outer_visual_radius",
    "ring_count",
    "check_parameter_names",
]
