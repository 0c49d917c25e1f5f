"""
Graph indexing and subgraph selection.

This module provides:
- GraphIndex: Normalized dataset with cached adjacency and org hierarchy
- compute_subgraph / SubgraphComputator: Direction-aware BFS neighborhoods
- VisibilityState: Hidden-subtree bookkeeping
"""

from .index import (
    Adjacency,
    GraphIndex,
    HierarchyCycleWarning,
    OrgHierarchy,
    build_adjacency,
    build_hierarchy,
    collect_report_subtree,
    org_depth,
)
from .subgraph import SubgraphComputator, compute_multi_root_subgraph, compute_subgraph
from .visibility import VisibilityState

__all__ = [
    "Adjacency",
    "GraphIndex",
    "HierarchyCycleWarning",
    "OrgHierarchy",
    "build_adjacency",
    "build_hierarchy",
    "collect_report_subtree",
    "org_depth",
    "SubgraphComputator",
    "compute_subgraph",
    "compute_multi_root_subgraph",
    "VisibilityState",
]
