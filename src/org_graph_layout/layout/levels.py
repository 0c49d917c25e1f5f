"""
Level assignment for leveled layouts.

Two notions of level are used to band nodes vertically:
- BFS levels from the selected roots, ignoring link direction
- management levels from the reporting lines among the visible persons
"""

from __future__ import annotations

from collections import deque
from typing import Any, Iterable, Sequence

from ..graph.index import GraphIndex
from ..types import Link, Node

# Level given to nodes no root can reach
UNREACHABLE_LEVEL = 999

# Level given to org nodes in management levels
ORG_LEVEL = -1


def compute_levels_from_roots(
    nodes: Sequence[Node], root_ids: Iterable[Any], links: Iterable[Link]
) -> dict[str, int]:
    """
    Undirected BFS levels from the roots.

    Args:
        nodes: Nodes to level
        root_ids: Roots (level 0); roots not among the nodes are ignored
        links: Links among the nodes

    Returns:
        node id -> level, UNREACHABLE_LEVEL for nodes no root reaches
    """
    ids = {n.id for n in nodes}
    adjacency: dict[str, list[str]] = {}
    for link in links:
        adjacency.setdefault(link.source, []).append(link.target)
        adjacency.setdefault(link.target, []).append(link.source)

    levels: dict[str, int] = {}
    queue: deque[str] = deque()
    for rid in root_ids:
        rid = str(rid)
        if rid in ids and rid not in levels:
            levels[rid] = 0
            queue.append(rid)

    while queue:
        v = queue.popleft()
        for w in adjacency.get(v, ()):
            if w in ids and w not in levels:
                levels[w] = levels[v] + 1
                queue.append(w)

    for node in nodes:
        levels.setdefault(node.id, UNREACHABLE_LEVEL)
    return levels


def compute_hierarchy_levels(
    nodes: Sequence[Node], links: Iterable[Link], index: GraphIndex
) -> dict[str, int]:
    """
    Management levels among the given nodes.

    Persons without a manager inside the node set are level 0; each report
    is one level below its manager. Orgs get ORG_LEVEL.

    Args:
        nodes: Nodes to level
        links: Links among the nodes
        index: Dataset used to classify link endpoints

    Returns:
        node id -> level
    """
    ids = {n.id for n in nodes}
    reports: dict[str, list[str]] = {}
    managed: set[str] = set()
    for link in links:
        s, t = index.get(link.source), index.get(link.target)
        if s is None or t is None or not (s.is_person and t.is_person):
            continue
        if link.source in ids and link.target in ids:
            reports.setdefault(link.source, []).append(link.target)
            managed.add(link.target)

    levels: dict[str, int] = {}
    queue: deque[str] = deque()
    for node in nodes:
        if node.is_person and node.id not in managed:
            levels[node.id] = 0
            queue.append(node.id)

    while queue:
        v = queue.popleft()
        for w in reports.get(v, ()):
            if w not in levels:
                levels[w] = levels[v] + 1
                queue.append(w)

    for node in nodes:
        if node.is_org:
            levels.setdefault(node.id, ORG_LEVEL)
    return levels


__all__ = [
    "UNREACHABLE_LEVEL",
    "ORG_LEVEL",
    "compute_levels_from_roots",
    "compute_hierarchy_levels",
]
