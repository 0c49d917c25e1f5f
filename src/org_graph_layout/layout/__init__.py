"""
Position seeding for subgraphs.

This module provides:
- RadialSeedLayout: Radial cold start and incremental warm updates
- place_on_circle / find_position_outside_hull / radial_expansion: Primitives
- compute_levels_from_roots / compute_hierarchy_levels: Level assignment
"""

from .levels import (
    ORG_LEVEL,
    UNREACHABLE_LEVEL,
    compute_hierarchy_levels,
    compute_levels_from_roots,
)
from .radial import (
    ExpansionItem,
    RadialSeedLayout,
    capture_positions,
    find_position_outside_hull,
    place_on_circle,
    radial_expansion,
)

__all__ = [
    "ORG_LEVEL",
    "UNREACHABLE_LEVEL",
    "compute_hierarchy_levels",
    "compute_levels_from_roots",
    "ExpansionItem",
    "RadialSeedLayout",
    "capture_positions",
    "find_position_outside_hull",
    "place_on_circle",
    "radial_expansion",
]
