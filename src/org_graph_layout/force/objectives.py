"""
Steady-state objectives of the relaxation pass.

- free: no constraint beyond the core forces
- leveled: every node is pulled towards the horizontal band of its level
- cluster attraction (optional, on top of the free objective): every person
  is pulled towards the slot of its deepest org on a ring around the canvas
  center
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional

from ..types import Point, SizeType
from ..validation import validate_canvas_size

# Y of the first level band
LEVEL_TOP = 100.0


class LayoutObjective(str, Enum):
    """Extra directional forces attached to the simulation."""

    free = "free"
    leveled = "leveled"


def level_targets(
    levels: Mapping[str, int], level_height: float, top: float = LEVEL_TOP
) -> dict[int, float]:
    """
    Band Y per level.

    Distinct levels are sorted and spaced ``level_height`` apart starting at
    ``top``, so gaps in the level numbers do not leave empty bands.

    Example:
        >>> level_targets({"a": 0, "b": 2, "c": -1}, 200)
        {-1: 100.0, 0: 300.0, 2: 500.0}
    """
    return {
        level: top + idx * level_height
        for idx, level in enumerate(sorted(set(levels.values())))
    }


def cluster_targets(
    memberships: Mapping[str, Iterable[str]],
    org_depth: Callable[[str], int],
    size: SizeType,
    ring_ratio: float = 0.35,
) -> tuple[dict[str, Point], dict[str, Optional[str]]]:
    """
    Org slots on a ring and the primary org of every person.

    Args:
        memberships: person id -> org ids the person belongs to
        org_depth: Depth of an org in the hierarchy
        size: Canvas (width, height)
        ring_ratio: Ring radius relative to min(width, height)

    Returns:
        (centers, primary_of): org id -> slot center, and person id -> the
        deepest org among its memberships (None without memberships). Ties in
        depth go to the smaller org id.
    """
    width, height = validate_canvas_size(size)
    cx, cy = width / 2, height / 2
    radius = min(width, height) * ring_ratio

    org_ids: set[str] = set()
    for oids in memberships.values():
        org_ids.update(oids)
    ordered = sorted(org_ids, key=lambda oid: (org_depth(oid), str(oid)))

    centers: dict[str, Point] = {}
    for i, oid in enumerate(ordered):
        angle = 2 * math.pi * i / len(ordered)
        centers[oid] = (cx + math.cos(angle) * radius, cy + math.sin(angle) * radius)

    primary_of: dict[str, Optional[str]] = {}
    for pid, oids in memberships.items():
        best: Optional[str] = None
        best_depth = -1
        for oid in sorted(oids):
            depth = org_depth(oid)
            if depth > best_depth:
                best, best_depth = oid, depth
        primary_of[pid] = best

    return centers, primary_of


__all__ = [
    "LEVEL_TOP",
    "LayoutObjective",
    "level_targets",
    "cluster_targets",
]
