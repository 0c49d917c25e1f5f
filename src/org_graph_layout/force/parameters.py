"""
Tunable parameters of the relaxation pass.

Every value can be overridden per call through ``replace``; nothing is read
from a global source.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..style import AttributeRings, StyleParameters, check_parameter_names, outer_visual_radius, ring_count
from ..types import Node
from ..validation import validate_alpha, validate_non_negative

# Parameters that must lie in [0, 1]
_UNIT_PARAMETERS = ("alpha_decay", "velocity_decay", "collide_strength")

# Parameters that must be finite and >= 0
_NON_NEGATIVE_PARAMETERS = (
    "link_distance",
    "link_strength",
    "center_strength",
    "level_height",
    "level_force_strength",
    "cluster_force_strength",
    "cluster_ring_ratio",
)


@dataclass(frozen=True)
class ForceParameters:
    """
    Physical parameters of the force simulation.

    Attributes:
        link_distance: Rest length of links
        link_strength: Stiffness of links
        charge_strength: Many-body strength (negative repels)
        alpha_decay: Fraction of the gap to alpha_target closed per tick
        velocity_decay: Fraction of velocity lost per tick
        center_strength: Pull of the graph's mean towards the canvas center
        collide_strength: Strength of overlap resolution
        level_height: Vertical distance between level bands
        level_force_strength: Pull towards the level band
        cluster_force_strength: Pull towards the primary org's slot
        cluster_ring_ratio: Radius of the org slot ring relative to min(w, h)
        collide_radius: Optional (node) -> radius; overrides the style-derived radius
    """

    link_distance: float = 10.0
    link_strength: float = 0.1
    charge_strength: float = -90.0
    alpha_decay: float = 0.0228
    velocity_decay: float = 0.4
    center_strength: float = 0.05
    collide_strength: float = 0.7
    level_height: float = 200.0
    level_force_strength: float = 0.5
    cluster_force_strength: float = 0.08
    cluster_ring_ratio: float = 0.35
    collide_radius: Optional[Callable[[Node], float]] = None

    def __post_init__(self) -> None:
        for name in _UNIT_PARAMETERS:
            object.__setattr__(self, name, validate_alpha(float(getattr(self, name)), name))
        for name in _NON_NEGATIVE_PARAMETERS:
            object.__setattr__(self, name, validate_non_negative(getattr(self, name), name))
        object.__setattr__(self, "charge_strength", float(self.charge_strength))

    def replace(self, **overrides: Any) -> ForceParameters:
        """
        Return a copy with named parameters replaced.

        Raises:
            UnknownParameterError: If a name is not a force parameter
            InvalidParameterError: If a value is out of range
        """
        check_parameter_names(self, overrides)
        return dataclasses.replace(self, **overrides)

    def collide_radius_for(
        self,
        node: Node,
        style: StyleParameters,
        rings: Optional[AttributeRings] = None,
    ) -> float:
        """Collision radius of a node: the custom function, or outer radius plus padding."""
        if self.collide_radius is not None:
            return float(self.collide_radius(node))
        return outer_visual_radius(node, style, ring_count(node, rings)) + style.collide_padding


__all__ = ["ForceParameters"]
