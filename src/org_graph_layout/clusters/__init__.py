"""
Org cluster regions.

This module provides:
- compute_cluster_polygon: Padded hull around positioned members
- compute_memberships: Persons grouped under every allowed ancestor org
- labels_at_point: Hit-testing for tooltips
"""

from .hull import (
    CIRCLE_SEGMENTS,
    compute_cluster_polygon,
    convex_hull,
    point_in_polygon,
    polygon_centroid,
)
from .membership import (
    DescendantsCache,
    compute_cluster_polygons,
    compute_memberships,
    labels_at_point,
    ordered_clusters,
    point_in_cluster,
)

__all__ = [
    "CIRCLE_SEGMENTS",
    "compute_cluster_polygon",
    "convex_hull",
    "point_in_polygon",
    "polygon_centroid",
    "DescendantsCache",
    "compute_cluster_polygons",
    "compute_memberships",
    "labels_at_point",
    "ordered_clusters",
    "point_in_cluster",
]
