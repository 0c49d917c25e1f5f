"""
Graph index: adjacency, org hierarchy and cached lookups.

A GraphIndex normalizes one loaded dataset (person records, org records and
link records) and owns every derived structure the traversal and layout code
needs:

- forward / inverse / undirected adjacency plus the person->person
  ``manager_of`` map, cached by identity of the link collection
- the org parent/child hierarchy and memoized org depths
- person -> direct org memberships

All caches live on the instance. Nothing is invalidated automatically: after
editing nodes, links or the hierarchy the host must call ``invalidate()``.
"""

from __future__ import annotations

import logging
import warnings
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from typing_extensions import Self

from ..types import Link, Node, NodeType, id_of

logger = logging.getLogger(__name__)


class HierarchyCycleWarning(UserWarning):
    """Warning issued when the org parent chain loops back on itself."""

    pass


@dataclass
class Adjacency:
    """
    Adjacency maps derived from a link collection.

    Attributes:
        out: node id -> ids of link targets
        inn: node id -> ids of link sources
        manager_of: report id -> manager id (person->person links only)
        adj: node id -> ids of neighbors in either direction
    """

    out: dict[str, set[str]] = field(default_factory=dict)
    inn: dict[str, set[str]] = field(default_factory=dict)
    manager_of: dict[str, str] = field(default_factory=dict)
    adj: dict[str, set[str]] = field(default_factory=dict)


@dataclass
class OrgHierarchy:
    """
    Org tree derived from org->org links.

    Attributes:
        parent_of: org id -> parent org id
        children: org id -> ids of child orgs
        roots: orgs without a parent, in dataset order
    """

    parent_of: dict[str, str] = field(default_factory=dict)
    children: dict[str, set[str]] = field(default_factory=dict)
    roots: list[str] = field(default_factory=list)


# =============================================================================
# Pure builders
# =============================================================================


def build_adjacency(links: Iterable[Any], by_id: Mapping[str, Node]) -> Adjacency:
    """
    Build forward, inverse and undirected adjacency from links.

    Links whose endpoints are not in ``by_id`` are skipped.

    Args:
        links: Link objects, dicts or objects with source/target
        by_id: Map of node id -> Node

    Returns:
        Adjacency with out, inn, manager_of and adj maps
    """
    result = Adjacency()
    for link in links:
        if link is None:
            continue
        s, t = _link_endpoints(link)
        if s not in by_id or t not in by_id:
            continue

        result.out.setdefault(s, set()).add(t)
        result.inn.setdefault(t, set()).add(s)
        result.adj.setdefault(s, set()).add(t)
        result.adj.setdefault(t, set()).add(s)

        if by_id[s].is_person and by_id[t].is_person:
            result.manager_of[t] = s

    return result


def build_hierarchy(org_ids: Sequence[str], links: Iterable[Any]) -> OrgHierarchy:
    """
    Derive the org parent/child hierarchy from org->org links.

    Args:
        org_ids: All org ids, in dataset order
        links: Link collection (non org->org links are ignored)

    Returns:
        OrgHierarchy
    """
    known = set(org_ids)
    hierarchy = OrgHierarchy()
    for link in links:
        s, t = _link_endpoints(link)
        if s not in known or t not in known:
            continue
        hierarchy.parent_of[t] = s
        hierarchy.children.setdefault(s, set()).add(t)

    hierarchy.roots = [oid for oid in org_ids if oid not in hierarchy.parent_of]
    return hierarchy


def org_depth(org_id: str, parent_of: Mapping[str, str]) -> int:
    """
    Count the steps from an org up to its hierarchy root.

    A malformed dataset may contain a parent cycle; the walk stops at the
    first repeated org and returns the steps counted so far.

    Args:
        org_id: Org to measure
        parent_of: Map of org id -> parent org id

    Returns:
        Number of ancestors (0 for a root org)
    """
    depth = 0
    current = str(org_id)
    seen: set[str] = set()

    while current in parent_of:
        if current in seen:
            warnings.warn(
                f"Org hierarchy contains a cycle through {current!r}; "
                f"depth of {org_id!r} truncated to {depth}.",
                HierarchyCycleWarning,
                stacklevel=2,
            )
            break
        seen.add(current)
        current = parent_of[current]
        depth += 1

    return depth


def collect_report_subtree(
    root_id: str, links: Iterable[Any], by_id: Mapping[str, Node]
) -> set[str]:
    """
    Collect a person and everyone reporting to them, directly or indirectly.

    Only person->person links are followed.

    Args:
        root_id: Person at the top of the subtree
        links: Link collection
        by_id: Map of node id -> Node

    Returns:
        Set of ids including the root
    """
    rid = str(root_id)
    reports: dict[str, set[str]] = {}
    for link in links:
        s, t = _link_endpoints(link)
        src, tgt = by_id.get(s), by_id.get(t)
        if src is not None and tgt is not None and src.is_person and tgt.is_person:
            reports.setdefault(s, set()).add(t)

    seen = {rid}
    queue = deque([rid])
    while queue:
        v = queue.popleft()
        for w in reports.get(v, ()):
            if w not in seen:
                seen.add(w)
                queue.append(w)

    return seen


# =============================================================================
# GraphIndex
# =============================================================================


class GraphIndex:
    """
    Normalized dataset with cached adjacency and hierarchy lookups.

    Example:
        index = GraphIndex(
            persons=[{"id": "p1"}, {"id": "p2"}],
            orgs=[{"id": "o1"}],
            links=[
                {"source": "p1", "target": "p2"},
                {"source": "p1", "target": "o1"},
            ],
        )
        adjacency = index.adjacency()
        adjacency.manager_of["p2"]  # "p1"
    """

    def __init__(
        self,
        persons: Optional[Sequence[Any]] = None,
        orgs: Optional[Sequence[Any]] = None,
        links: Optional[Sequence[Any]] = None,
        *,
        derive_basis: bool = False,
    ) -> None:
        """
        Initialize and load a dataset.

        Args:
            persons: Person records (dicts or objects with an ``id``)
            orgs: Org records (dicts or objects with an ``id``)
            links: Link records with ``source`` / ``target`` (ids or records)
            derive_basis: Mark persons without reports as basis when the
                record carries no explicit ``isBasis`` flag
        """
        self._by_id: dict[str, Node] = {}
        self._links: list[Link] = []
        self._person_ids: list[str] = []
        self._org_ids: list[str] = []
        self._person_orgs: dict[str, set[str]] = {}
        self._derive_basis: bool = bool(derive_basis)
        self._version: int = 0

        self._adjacency_cache: Optional[tuple[Any, int, Adjacency]] = None
        self._hierarchy: Optional[OrgHierarchy] = None
        self._depth_cache: dict[str, int] = {}

        self.load(persons or [], orgs or [], links or [])

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, persons: Sequence[Any], orgs: Sequence[Any], links: Sequence[Any]) -> Self:
        """
        Replace the dataset.

        Records without an id are skipped. Links referencing unknown ids,
        self-loops and duplicate (source, target) pairs are dropped.

        Returns:
            self (for chaining)
        """
        by_id: dict[str, Node] = {}
        flagged: set[str] = set()

        for node_type, records in ((NodeType.person, persons), (NodeType.org, orgs)):
            for record in records:
                fields = _record_fields(record)
                if fields.get("id") in (None, ""):
                    continue
                fields["id"] = str(fields["id"])
                fields["type"] = node_type
                if "isBasis" in fields or "is_basis" in fields:
                    flagged.add(fields["id"])
                by_id[fields["id"]] = Node(**fields)

        normalized: list[Link] = []
        seen: set[tuple[str, str]] = set()
        dropped = 0
        for record in links:
            if record is None:
                dropped += 1
                continue
            s, t = _link_endpoints(record)
            if s not in by_id or t not in by_id or s == t or (s, t) in seen:
                dropped += 1
                continue
            seen.add((s, t))
            normalized.append(Link(s, t))

        self._by_id = by_id
        self._links = normalized
        self._person_ids = [nid for nid, n in by_id.items() if n.is_person]
        self._org_ids = [nid for nid, n in by_id.items() if n.is_org]

        self._person_orgs = {}
        has_reports: set[str] = set()
        for link in normalized:
            src, tgt = by_id[link.source], by_id[link.target]
            if src.is_person and tgt.is_org:
                self._person_orgs.setdefault(link.source, set()).add(link.target)
            elif src.is_person and tgt.is_person:
                has_reports.add(link.source)

        if self._derive_basis:
            for pid in self._person_ids:
                if pid not in flagged:
                    by_id[pid].is_basis = pid not in has_reports

        logger.debug(
            "Loaded dataset: %d persons, %d orgs, %d links (%d dropped)",
            len(self._person_ids),
            len(self._org_ids),
            len(normalized),
            dropped,
        )
        self.invalidate()
        return self

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def by_id(self) -> dict[str, Node]:
        """Map of node id -> Node."""
        return self._by_id

    @property
    def nodes(self) -> list[Node]:
        return list(self._by_id.values())

    @property
    def links(self) -> list[Link]:
        """Normalized link collection (stable instance until the next load)."""
        return self._links

    @property
    def person_ids(self) -> list[str]:
        return self._person_ids

    @property
    def org_ids(self) -> list[str]:
        return self._org_ids

    @property
    def version(self) -> int:
        """Counter bumped by every invalidation."""
        return self._version

    def get(self, node_id: Any) -> Optional[Node]:
        return self._by_id.get(str(node_id))

    def __contains__(self, node_id: object) -> bool:
        return str(node_id) in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    # -------------------------------------------------------------------------
    # Cached lookups
    # -------------------------------------------------------------------------

    def adjacency(self, links: Optional[Sequence[Any]] = None) -> Adjacency:
        """
        Return adjacency maps for a link collection, building them if needed.

        The cache is keyed by the identity of ``links`` and the index version:
        passing the same list instance again returns the same object, while an
        equal but distinct list triggers a rebuild.

        Args:
            links: Link collection, defaults to the index's own links
        """
        if links is None:
            links = self._links

        cached = self._adjacency_cache
        if cached is not None and cached[0] is links and cached[1] == self._version:
            return cached[2]

        adjacency = build_adjacency(links, self._by_id)
        self._adjacency_cache = (links, self._version, adjacency)
        logger.debug("Built adjacency for %d links", len(links))
        return adjacency

    @property
    def hierarchy(self) -> OrgHierarchy:
        """Org parent/child hierarchy, built on first access."""
        if self._hierarchy is None:
            self._hierarchy = build_hierarchy(self._org_ids, self._links)
        return self._hierarchy

    def org_depth(self, org_id: Any) -> int:
        """Memoized depth of an org in the hierarchy."""
        key = str(org_id)
        depth = self._depth_cache.get(key)
        if depth is None:
            depth = org_depth(key, self.hierarchy.parent_of)
            self._depth_cache[key] = depth
        return depth

    def person_orgs(self, person_id: Any) -> set[str]:
        """Orgs a person is a direct member of."""
        return self._person_orgs.get(str(person_id), set())

    def collect_report_subtree(self, root_id: Any) -> set[str]:
        """Person and all direct and indirect reports, using cached adjacency."""
        rid = str(root_id)
        out = self.adjacency().out
        seen = {rid}
        queue = deque([rid])
        while queue:
            v = queue.popleft()
            if not self._is_type(v, NodeType.person):
                continue
            for w in out.get(v, ()):
                if w not in seen and self._is_type(w, NodeType.person):
                    seen.add(w)
                    queue.append(w)
        return seen

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def invalidate(self) -> None:
        """Drop every cache and bump the version (nodes or links changed)."""
        self._version += 1
        self._adjacency_cache = None
        self.invalidate_hierarchy()

    def invalidate_hierarchy(self) -> None:
        """Drop the hierarchy and memoized org depths."""
        self._hierarchy = None
        self._depth_cache = {}

    def _is_type(self, node_id: str, node_type: NodeType) -> bool:
        node = self._by_id.get(node_id)
        return node is not None and node.type is node_type


def _record_fields(record: Any) -> dict[str, Any]:
    """Copy the public fields of a dict or object record."""
    if isinstance(record, dict):
        return dict(record)
    if isinstance(record, Node):
        return {k: v for k, v in vars(record).items()}
    return {k: v for k, v in vars(record).items() if not k.startswith("_")}


def _link_endpoints(link: Any) -> tuple[str, str]:
    """Extract (source id, target id) from a Link, dict or object."""
    if isinstance(link, Link):
        return link.source, link.target
    if isinstance(link, dict):
        return id_of(link.get("source")), id_of(link.get("target"))
    return id_of(getattr(link, "source", None)), id_of(getattr(link, "target", None))


__all__ = [
    "Adjacency",
    "OrgHierarchy",
    "GraphIndex",
    "HierarchyCycleWarning",
    "build_adjacency",
    "build_hierarchy",
    "org_depth",
    "collect_report_subtree",
]
