"""
Force relaxation of seeded positions.

This module provides:
- ForceParameters: Tunable physical parameters
- LayoutObjective: free / leveled steady-state objectives
- level_targets / cluster_targets: Objective target computation
- OrgForceSimulation: d3-style velocity simulation
"""

from .objectives import LEVEL_TOP, LayoutObjective, cluster_targets, level_targets
from .parameters import ForceParameters
from .simulation import OrgForceSimulation

__all__ = [
    "ForceParameters",
    "LEVEL_TOP",
    "LayoutObjective",
    "cluster_targets",
    "level_targets",
    "OrgForceSimulation",
]
