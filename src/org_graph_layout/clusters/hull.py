"""
Padded hull polygons around groups of positioned nodes.

A cluster polygon surrounds the live positions of an org's visible members:
- 1 member: regular 12-gon approximating a padded circle
- 2 members: padded rectangle along the segment between them
- 3+ members: convex hull with each vertex pushed away from the hull's
  vertex centroid by the padding (radial padding, not a Minkowski sum)
"""

from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np

from ..types import Point, Polygon

# Vertices of the polygon approximating a single member's circle
CIRCLE_SEGMENTS = 12


def convex_hull(points: Sequence[Point]) -> Polygon:
    """
    Convex hull of a point set (Andrew's monotone chain).

    Duplicate points are merged and collinear points on hull edges dropped.

    Args:
        points: (x, y) points

    Returns:
        Hull vertices in counter-clockwise order (fewer than 3 when the
        points are collinear or coincide)
    """
    if len(points) == 0:
        return []

    # np.unique sorts rows lexicographically: by x, then y
    pts = np.unique(np.asarray(points, dtype=np.float64).reshape(-1, 2), axis=0)
    if len(pts) < 3:
        return [(float(x), float(y)) for x, y in pts]

    def cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
        return float((a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0]))

    lower: list[np.ndarray] = []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: list[np.ndarray] = []
    for p in pts[::-1]:
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    hull = lower[:-1] + upper[:-1]
    return [(float(p[0]), float(p[1])) for p in hull]


def polygon_centroid(polygon: Sequence[Point]) -> Point:
    """Mean of the polygon's vertices."""
    center = np.mean(np.asarray(polygon, dtype=np.float64), axis=0)
    return (float(center[0]), float(center[1]))


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """
    Even-odd containment test.

    Args:
        point: (x, y) to test
        polygon: Vertices in order (closed implicitly)

    Returns:
        True if the point lies inside; polygons with fewer than 3 vertices
        contain nothing
    """
    n = len(polygon)
    if n < 3:
        return False

    x, y = point
    x0, y0 = polygon[-1]
    inside = False
    for x1, y1 in polygon:
        if (y1 > y) != (y0 > y) and x < (x0 - x1) * (y - y1) / (y0 - y1) + x1:
            inside = not inside
        x0, y0 = x1, y1
    return inside


def compute_cluster_polygon(
    nodes: Sequence[Any], pad: float, node_radius: float = 8.0
) -> Polygon:
    """
    Padded polygon around nodes.

    Args:
        nodes: Nodes (with x/y) or (x, y) points; unplaced nodes are skipped
        pad: Padding beyond the node radius
        node_radius: Base node radius

    Returns:
        Polygon vertices, empty when there is nothing to surround

    Example:
        >>> poly = compute_cluster_polygon([(0.0, 0.0)], pad=12, node_radius=8)
        >>> len(poly), round(math.hypot(*poly[3]), 6)
        (12, 20.0)
    """
    pts = [p for p in (_xy(n) for n in nodes) if p is not None]
    r = node_radius + pad

    if not pts:
        return []
    if len(pts) == 1:
        return _circle(pts[0], r)
    if len(pts) == 2:
        if pts[0] == pts[1]:
            return _circle(pts[0], r)
        return _segment_rectangle(pts[0], pts[1], r)

    hull = convex_hull(pts)
    if len(hull) == 1:
        return _circle(hull[0], r)
    if len(hull) == 2:
        # Collinear members: cap the ends so the outer members stay covered
        return _segment_rectangle(hull[0], hull[1], r, extend=r)

    cx, cy = polygon_centroid(hull)
    padded: Polygon = []
    for x, y in hull:
        vx, vy = x - cx, y - cy
        length = math.hypot(vx, vy) or 1.0
        s = (length + pad) / length
        padded.append((cx + vx * s, cy + vy * s))
    return padded


def _circle(center: Point, r: float) -> Polygon:
    x, y = center
    return [
        (
            x + math.cos(2 * math.pi * i / CIRCLE_SEGMENTS) * r,
            y + math.sin(2 * math.pi * i / CIRCLE_SEGMENTS) * r,
        )
        for i in range(CIRCLE_SEGMENTS)
    ]


def _segment_rectangle(a: Point, b: Point, r: float, extend: float = 0.0) -> Polygon:
    dx, dy = b[0] - a[0], b[1] - a[1]
    length = math.hypot(dx, dy) or 1.0
    ux, uy = dx / length, dy / length
    nx, ny = -uy, ux
    ax, ay = a[0] - ux * extend, a[1] - uy * extend
    bx, by = b[0] + ux * extend, b[1] + uy * extend
    return [
        (ax + nx * r, ay + ny * r),
        (bx + nx * r, by + ny * r),
        (bx - nx * r, by - ny * r),
        (ax - nx * r, ay - ny * r),
    ]


def _xy(item: Any) -> Any:
    if isinstance(item, (tuple, list)):
        return (float(item[0]), float(item[1]))
    if getattr(item, "has_position", False):
        return (float(item.x), float(item.y))
    return None


__all__ = [
    "CIRCLE_SEGMENTS",
    "convex_hull",
    "polygon_centroid",
    "point_in_polygon",
    "compute_cluster_polygon",
]
