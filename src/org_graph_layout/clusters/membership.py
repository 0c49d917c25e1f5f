"""
Org cluster membership and hit-testing.

Persons are grouped under every allowed org that contains their direct org,
so nested org regions overlap. Hit-testing returns the labels of all allowed
clusters under a point, deepest org first.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..graph.index import GraphIndex
from ..types import Link, Node, Point, Polygon
from .hull import compute_cluster_polygon, point_in_polygon

logger = logging.getLogger(__name__)


class DescendantsCache:
    """
    Memoized descendant sets of the org hierarchy.

    ``get(oid)`` returns the org itself plus every org below it.
    """

    def __init__(self, org_children: Mapping[str, Iterable[str]]) -> None:
        self._children = org_children
        self._cache: dict[str, set[str]] = {}

    def get(self, org_id: Any) -> set[str]:
        key = str(org_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = {key}
        queue = deque([key])
        while queue:
            current = queue.popleft()
            for child in self._children.get(current, ()):
                if child not in result:
                    result.add(child)
                    queue.append(child)

        self._cache[key] = result
        return result

    __call__ = get


def compute_memberships(
    person_ids: Iterable[str],
    org_ids: Iterable[str],
    allowed_orgs: Optional[Iterable[str]],
    links: Iterable[Link],
    org_children: Mapping[str, Iterable[str]],
    positions: Mapping[str, Node],
) -> dict[str, list[Node]]:
    """
    Group positioned persons by allowed org.

    Every person->org membership link attributes the person to each allowed
    org whose descendant set contains the linked org. Persons without a
    position are skipped.

    Args:
        person_ids: Visible persons
        org_ids: All org ids of the dataset
        allowed_orgs: Orgs to draw clusters for
        links: Dataset links
        org_children: org id -> child org ids
        positions: person id -> live node (read-only)

    Returns:
        allowed org id -> member nodes, in link order
    """
    members: dict[str, list[Node]] = {}
    if not allowed_orgs:
        return members

    persons = {str(p) for p in person_ids}
    orgs = {str(o) for o in org_ids}
    descendants = DescendantsCache(org_children)

    roots_for_org: dict[str, set[str]] = {}
    for root in allowed_orgs:
        rid = str(root)
        if rid not in orgs:
            continue
        for oid in descendants.get(rid):
            roots_for_org.setdefault(oid, set()).add(rid)

    for link in links:
        if link.source not in persons or link.target not in orgs:
            continue
        roots = roots_for_org.get(link.target)
        if not roots:
            continue
        node = positions.get(link.source)
        if node is None or not node.has_position:
            continue
        for rid in sorted(roots):
            group = members.setdefault(rid, [])
            if node not in group:
                group.append(node)

    return members


def compute_cluster_polygons(
    members_by_org: Mapping[str, Sequence[Node]], pad: float, node_radius: float = 8.0
) -> dict[str, Polygon]:
    """Polygon for every org with members (orgs yielding no polygon are omitted)."""
    polygons: dict[str, Polygon] = {}
    for oid, nodes in members_by_org.items():
        polygon = compute_cluster_polygon(nodes, pad, node_radius)
        if polygon:
            polygons[oid] = polygon
    logger.debug("Computed %d cluster polygons", len(polygons))
    return polygons


def ordered_clusters(org_ids: Iterable[str], org_depth: Callable[[str], int]) -> list[str]:
    """Draw order: shallow orgs first so nested regions are painted on top."""
    return sorted(org_ids, key=lambda oid: (org_depth(oid), str(oid)))


def point_in_cluster(point: Point, polygon: Sequence[Point]) -> bool:
    """True if the point lies inside a cluster polygon."""
    return point_in_polygon(point, polygon)


def labels_at_point(
    point: Point,
    clusters: Mapping[str, Sequence[Point]],
    allowed_orgs: Iterable[str],
    index: GraphIndex,
    label: Optional[Callable[[Node, int], str]] = None,
) -> list[str]:
    """
    Labels of all allowed clusters containing a point.

    Args:
        point: (x, y) in layout coordinates
        clusters: org id -> polygon
        allowed_orgs: Orgs that may be reported
        index: Dataset, used for org nodes and depths
        label: Label function (node, depth) -> str; defaults to node.label

    Returns:
        Labels sorted by org depth (deepest first), then label
    """
    allowed = {str(o) for o in allowed_orgs}
    items: list[tuple[int, str]] = []

    for oid, polygon in clusters.items():
        if oid not in allowed:
            continue
        if len(polygon) < 3 or not point_in_polygon(point, polygon):
            continue
        depth = index.org_depth(oid)
        node = index.get(oid)
        if node is None:
            text = oid
        elif label is not None:
            text = label(node, depth)
        else:
            text = node.label
        items.append((depth, text))

    items.sort(key=lambda item: (-item[0], item[1]))
    return [text for _, text in items]


__all__ = [
    "DescendantsCache",
    "compute_memberships",
    "compute_cluster_polygons",
    "ordered_clusters",
    "point_in_cluster",
    "labels_at_point",
]
