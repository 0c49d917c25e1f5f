"""
Subgraph selection around one or more focus nodes.

Breadth-first traversal over the person/org graph, bounded by depth and
steered by direction-dependent, type-aware edge rules:

- down/both from a person: reporting lines are followed, the person's own
  org memberships are not
- down/both from an org: child orgs are followed; the org's members are
  pulled in only when the traversal started at an org
- up/both from an org: only parent orgs
- up/both from a person: managers and the person's orgs

The asymmetry between the down and up rules is intended product behavior.
After traversal the node set is filtered (hidden nodes, optional management
compaction, allowed orgs) and the links among the survivors are projected.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Iterable, Optional, Union

from ..types import Direction, Link, Node, SubgraphResult
from ..validation import validate_depth, validate_direction
from .index import Adjacency, GraphIndex
from .visibility import VisibilityState

logger = logging.getLogger(__name__)

HiddenLike = Union[VisibilityState, Iterable[Any], None]
"""Hidden nodes: a VisibilityState, a plain collection of ids, or None."""


def compute_subgraph(
    index: GraphIndex,
    start_id: Any,
    depth: int,
    direction: Union[Direction, str] = Direction.down,
    *,
    visibility: HiddenLike = None,
    management: bool = False,
    allowed_orgs: Optional[Iterable[Any]] = None,
) -> SubgraphResult:
    """
    Select the neighborhood of a start node.

    Args:
        index: Loaded dataset
        start_id: Focus node id
        depth: Maximum BFS distance (nodes at this distance are included)
        direction: "down", "up" or "both"
        visibility: Hidden nodes to filter out
        management: Drop basis persons, keeping connecting managers
        allowed_orgs: Org ids to keep; None keeps every reached org

    Returns:
        SubgraphResult. Empty if start_id is unknown.

    Raises:
        InvalidDepthError: If depth is negative or not an integer
        InvalidDirectionError: If direction is not recognized

    Example:
        >>> index = GraphIndex(
        ...     persons=[{"id": "p1"}, {"id": "p2"}],
        ...     links=[{"source": "p1", "target": "p2"}],
        ... )
        >>> sorted(n.id for n in compute_subgraph(index, "p1", 1, "down").nodes)
        ['p1', 'p2']
    """
    depth = validate_depth(depth)
    mode = validate_direction(direction)
    sid = str(start_id)

    if sid not in index:
        logger.debug("Start node %s not in dataset, returning empty subgraph", sid)
        return SubgraphResult()

    dist = _traverse(index, index.adjacency(), sid, depth, mode)
    legend_orgs, legend_levels = _legend_orgs(index, dist)

    nodes = [index.by_id[nid].copy(level=level) for nid, level in dist.items()]

    hidden = _as_visibility(visibility)
    nodes, hidden_ids = _filter_hidden(nodes, hidden)

    if management:
        nodes = _compact_management(index, nodes, dist, mode, hidden)

    if allowed_orgs is not None:
        allowed = {str(oid) for oid in allowed_orgs}
        nodes = [n for n in nodes if not n.is_org or n.id in allowed]

    links = _project_links(index.links, nodes)

    logger.debug(
        "Subgraph from %s (depth=%d, %s): %d nodes, %d links, %d hidden",
        sid,
        depth,
        mode.value,
        len(nodes),
        len(links),
        len(hidden_ids),
    )
    return SubgraphResult(
        nodes=nodes,
        links=links,
        legend_orgs=legend_orgs,
        legend_org_levels=legend_levels,
        hidden_ids=hidden_ids,
    )


def compute_multi_root_subgraph(
    index: GraphIndex,
    start_ids: Iterable[Any],
    depth: int,
    direction: Union[Direction, str] = Direction.down,
    **options: Any,
) -> SubgraphResult:
    """
    Union of the subgraphs around several start nodes.

    A node reached from more than one root keeps its smallest level. Legend
    orgs are merged the same way.

    Args:
        index: Loaded dataset
        start_ids: Focus node ids, in root order
        depth: Maximum BFS distance per root
        direction: "down", "up" or "both"
        **options: visibility, management, allowed_orgs (see compute_subgraph)

    Returns:
        Merged SubgraphResult
    """
    merged = SubgraphResult()
    by_id: dict[str, Node] = {}
    link_keys: set[tuple[str, str]] = set()

    for rid in start_ids:
        sub = compute_subgraph(index, rid, depth, direction, **options)
        for node in sub.nodes:
            current = by_id.get(node.id)
            if current is None:
                by_id[node.id] = node
                merged.nodes.append(node)
            else:
                current.level = min(current.level, node.level)
        for link in sub.links:
            if link.key not in link_keys:
                link_keys.add(link.key)
                merged.links.append(link)
        merged.legend_orgs |= sub.legend_orgs
        for oid, level in sub.legend_org_levels.items():
            previous = merged.legend_org_levels.get(oid)
            if previous is None or level < previous:
                merged.legend_org_levels[oid] = level
        merged.hidden_ids |= sub.hidden_ids

    return merged


class SubgraphComputator:
    """
    Subgraph selection with persistent filter options.

    Keeps the options a host changes rarely (hidden nodes, management mode,
    allowed orgs) and exposes the hidden count of the latest computation.

    Example:
        computator = SubgraphComputator(index, management=True)
        result = computator.compute("p1", depth=2, direction="both")
        computator.hidden_count
    """

    def __init__(
        self,
        index: GraphIndex,
        *,
        visibility: Optional[VisibilityState] = None,
        management: bool = False,
        allowed_orgs: Optional[Iterable[Any]] = None,
    ) -> None:
        """
        Initialize computator.

        Args:
            index: Loaded dataset
            visibility: Hidden-subtree state (a fresh one if None)
            management: Enable management compaction
            allowed_orgs: Org ids to keep; None keeps every reached org
        """
        self._index = index
        self._visibility: VisibilityState = visibility if visibility is not None else VisibilityState()
        self._management: bool = bool(management)
        self._allowed_orgs: Optional[set[str]] = None
        self.allowed_orgs = allowed_orgs
        self.hidden_count: int = 0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def index(self) -> GraphIndex:
        return self._index

    @property
    def visibility(self) -> VisibilityState:
        return self._visibility

    @visibility.setter
    def visibility(self, value: VisibilityState) -> None:
        self._visibility = value

    @property
    def management(self) -> bool:
        """Get whether management compaction is enabled."""
        return self._management

    @management.setter
    def management(self, value: bool) -> None:
        self._management = bool(value)

    @property
    def allowed_orgs(self) -> Optional[set[str]]:
        """Get allowed org ids (None = no org filtering)."""
        return self._allowed_orgs

    @allowed_orgs.setter
    def allowed_orgs(self, value: Optional[Iterable[Any]]) -> None:
        self._allowed_orgs = None if value is None else {str(v) for v in value}

    # -------------------------------------------------------------------------
    # Computation
    # -------------------------------------------------------------------------

    def compute(
        self, start_id: Any, depth: int, direction: Union[Direction, str] = Direction.down
    ) -> SubgraphResult:
        """Compute the subgraph around one start node."""
        result = compute_subgraph(self._index, start_id, depth, direction, **self._options())
        self.hidden_count = result.hidden_count
        return result

    def compute_many(
        self,
        start_ids: Iterable[Any],
        depth: int,
        direction: Union[Direction, str] = Direction.down,
    ) -> SubgraphResult:
        """Compute the union of the subgraphs around several start nodes."""
        roots = list(start_ids)
        if len(roots) == 1:
            return self.compute(roots[0], depth, direction)
        result = compute_multi_root_subgraph(
            self._index, roots, depth, direction, **self._options()
        )
        self.hidden_count = result.hidden_count
        return result

    def _options(self) -> dict[str, Any]:
        return {
            "visibility": self._visibility,
            "management": self._management,
            "allowed_orgs": self._allowed_orgs,
        }


# =============================================================================
# Traversal and post passes
# =============================================================================


def _traverse(
    index: GraphIndex, adjacency: Adjacency, start_id: str, depth: int, mode: Direction
) -> dict[str, int]:
    """BFS from start_id; returns node id -> first-reached distance, in BFS order."""
    by_id = index.by_id
    out, inn = adjacency.out, adjacency.inn
    start_is_org = by_id[start_id].is_org
    down = mode in (Direction.down, Direction.both)
    up = mode in (Direction.up, Direction.both)

    dist: dict[str, int] = {start_id: 0}
    queue = deque([start_id])

    def visit(node_id: str, d: int) -> None:
        if node_id not in dist:
            dist[node_id] = d
            queue.append(node_id)

    while queue:
        v = queue.popleft()
        d = dist[v]
        if d >= depth:
            continue
        node = by_id[v]

        if down:
            for w in sorted(out.get(v, ())):
                # A person's own orgs are not part of the downward view
                if node.is_person and by_id[w].is_org:
                    continue
                visit(w, d + 1)

            # Org -> members, only when the traversal started at an org
            if node.is_org and start_is_org:
                for src in sorted(inn.get(v, ())):
                    if by_id[src].is_person:
                        visit(src, d + 1)

        if up:
            for w in sorted(inn.get(v, ())):
                # Orgs only climb to parent orgs
                if node.is_org and not by_id[w].is_org:
                    continue
                visit(w, d + 1)

            if node.is_person:
                for w in sorted(out.get(v, ())):
                    if by_id[w].is_org:
                        visit(w, d + 1)

    return dist


def _legend_orgs(index: GraphIndex, dist: dict[str, int]) -> tuple[set[str], dict[str, int]]:
    """Deepest org of every traversed person and the lowest level activating it."""
    parent_of = index.hierarchy.parent_of
    legend: set[str] = set()
    levels: dict[str, int] = {}

    for nid, level in dist.items():
        if not index.by_id[nid].is_person:
            continue
        orgs = index.person_orgs(nid)
        for oid in sorted(orgs):
            if any(other != oid and parent_of.get(other) == oid for other in orgs):
                continue
            legend.add(oid)
            previous = levels.get(oid)
            if previous is None or level < previous:
                levels[oid] = level

    return legend, levels


def _as_visibility(hidden: HiddenLike) -> VisibilityState:
    if hidden is None:
        return VisibilityState()
    if isinstance(hidden, VisibilityState):
        return hidden
    return VisibilityState.from_ids(hidden)


def _filter_hidden(nodes: list[Node], hidden: VisibilityState) -> tuple[list[Node], set[str]]:
    if not hidden.hidden_nodes:
        return nodes, set()
    kept: list[Node] = []
    removed: set[str] = set()
    for node in nodes:
        if hidden.is_hidden(node.id):
            removed.add(node.id)
        else:
            kept.append(node)
    return kept, removed


def _compact_management(
    index: GraphIndex,
    nodes: list[Node],
    dist: dict[str, int],
    mode: Direction,
    hidden: VisibilityState,
) -> list[Node]:
    """Drop basis persons, then re-add direct managers of retained persons."""
    by_id = index.by_id
    kept = [n for n in nodes if not n.is_basis]
    retained = {n.id for n in kept}
    included = set(retained)

    for link in index.links:
        s, t = link.source, link.target
        if not (by_id[s].is_person and by_id[t].is_person):
            continue
        if t not in retained or s in included:
            continue
        if hidden.is_hidden(s):
            continue
        # Downward views never grow above what the traversal reached
        if mode is Direction.down and s not in dist:
            continue
        kept.append(by_id[s].copy(level=dist.get(s, 0)))
        included.add(s)

    return kept


def _project_links(links: list[Link], nodes: list[Node]) -> list[Link]:
    ids = {n.id for n in nodes}
    return [Link(link.source, link.target) for link in links if link.source in ids and link.target in ids]


__all__ = [
    "HiddenLike",
    "SubgraphComputator",
    "compute_subgraph",
    "compute_multi_root_subgraph",
]
