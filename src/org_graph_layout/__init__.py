"""
org-graph-layout: Neighborhood selection and layout seeding for org charts.

This package turns a dataset of persons, org units and links into the
subgraph around one or more selected nodes, and seeds positions for it.

Available modules:
- graph: Indexing, direction-aware subgraph selection, hidden subtrees
- layout: Radial cold start, incremental warm updates, level assignment
- clusters: Org membership regions as padded hull polygons
- force: Force parameters, layout objectives and the relaxation pass
"""

import logging

__version__ = "0.1.0"

# Base classes for building layouts
from .base import (
    BaseLayout,
    IterativeLayout,
    StaticLayout,
)

# Org clusters
from .clusters import (
    DescendantsCache,
    compute_cluster_polygon,
    compute_cluster_polygons,
    compute_memberships,
    labels_at_point,
    ordered_clusters,
    point_in_cluster,
)

# Force relaxation
from .force import (
    ForceParameters,
    LayoutObjective,
    OrgForceSimulation,
    cluster_targets,
    level_targets,
)

# Graph indexing and subgraph selection
from .graph import (
    GraphIndex,
    HierarchyCycleWarning,
    SubgraphComputator,
    VisibilityState,
    compute_multi_root_subgraph,
    compute_subgraph,
)

# Position seeding
from .layout import (
    RadialSeedLayout,
    capture_positions,
    compute_hierarchy_levels,
    compute_levels_from_roots,
    find_position_outside_hull,
    place_on_circle,
    radial_expansion,
)

# Sizing
from .style import AttributeRings, StyleParameters, outer_visual_radius
from .types import (
    Direction,
    Event,
    EventType,
    Link,
    LinkLike,
    Node,
    NodeLike,
    NodeType,
    Position,
    SizeType,
    SubgraphResult,
)

# Validation utilities
from .validation import (
    InvalidCanvasSizeError,
    InvalidDepthError,
    InvalidDirectionError,
    InvalidParameterError,
    UnknownParameterError,
    ValidationError,
    validate_canvas_size,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Version
    "__version__",
    # Shared types
    "Node",
    "NodeType",
    "Link",
    "Direction",
    "Position",
    "SubgraphResult",
    "EventType",
    "Event",
    # Type aliases for API
    "NodeLike",
    "LinkLike",
    "SizeType",
    # Base classes
    "BaseLayout",
    "IterativeLayout",
    "StaticLayout",
    # Graph
    "GraphIndex",
    "HierarchyCycleWarning",
    "SubgraphComputator",
    "VisibilityState",
    "compute_subgraph",
    "compute_multi_root_subgraph",
    # Layout
    "RadialSeedLayout",
    "capture_positions",
    "compute_hierarchy_levels",
    "compute_levels_from_roots",
    "find_position_outside_hull",
    "place_on_circle",
    "radial_expansion",
    # Clusters
    "DescendantsCache",
    "compute_cluster_polygon",
    "compute_cluster_polygons",
    "compute_memberships",
    "labels_at_point",
    "ordered_clusters",
    "point_in_cluster",
    # Force
    "ForceParameters",
    "LayoutObjective",
    "OrgForceSimulation",
    "cluster_targets",
    "level_targets",
    # Sizing
    "StyleParameters",
    "AttributeRings",
    "outer_visual_radius",
    # Validation
    "ValidationError",
    "InvalidCanvasSizeError",
    "InvalidDepthError",
    "InvalidDirectionError",
    "InvalidParameterError",
    "UnknownParameterError",
    "validate_canvas_size",
]
