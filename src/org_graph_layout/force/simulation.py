"""
Velocity-Verlet force simulation refining seeded positions.

The simulation follows the usual d3-force model: every tick lowers alpha
towards alpha_target, each force adds to node velocities scaled by alpha,
velocities are damped by velocity_decay and then added to positions.

Core forces:
- link: springs of rest length link_distance between linked nodes
- charge: pairwise many-body force (negative strength repels)
- center: shifts the graph so its mean drifts towards the canvas center
- collide: pushes apart nodes whose collision circles overlap

Objective forces (swapped without touching the core forces):
- level: pulls each node towards the Y of its level band (leveled objective)
- cluster: pulls each person towards its primary org's slot (cluster attraction)
"""

from __future__ import annotations

import logging
import random
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from ..base import IterativeLayout
from ..style import AttributeRings, StyleParameters
from ..types import Event, EventType, LinkLike, Node, NodeLike, Point, SizeType
from ..validation import InvalidParameterError
from .objectives import LayoutObjective, cluster_targets, level_targets
from .parameters import ForceParameters

logger = logging.getLogger(__name__)

# Spread of the random placement used for unplaced nodes, by objective
FREE_SPREAD = 100.0
LEVELED_SPREAD = 100.0
CLUSTER_JITTER = 30.0


class OrgForceSimulation(IterativeLayout):
    """
    Force relaxation over seeded nodes.

    Positions that are already finite are never re-randomized; only nodes
    without a position get a jittered fallback near their objective target.
    Nodes with ``fx``/``fy`` set are pinned to those coordinates.

    Example:
        seed = RadialSeedLayout(nodes=nodes, links=links, roots=["p1"])
        seed.run()

        simulation = OrgForceSimulation(nodes=seed.nodes, links=seed.links)
        simulation.use_objective("leveled", levels=result.levels())
        simulation.run()
    """

    def __init__(
        self,
        *,
        nodes: Optional[Sequence[NodeLike]] = None,
        links: Optional[Sequence[LinkLike]] = None,
        size: Optional[SizeType] = None,
        random_seed: Optional[int] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
        # IterativeLayout parameters
        alpha: float = 1.0,
        alpha_min: float = 0.001,
        alpha_target: float = 0.0,
        iterations: int = 300,
        # Simulation-specific parameters
        params: Optional[ForceParameters] = None,
        style: Optional[StyleParameters] = None,
        rings: Optional[AttributeRings] = None,
        objective: Union[LayoutObjective, str] = LayoutObjective.free,
        levels: Optional[Mapping[str, int]] = None,
    ) -> None:
        """
        Initialize the simulation.

        Args:
            nodes: Nodes to relax (Node objects are mutated in place)
            links: Links among the nodes; links to unknown nodes are ignored
            size: Canvas size as (width, height). Defaults to style.size.
            random_seed: Seed for fallback placement and jiggling
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
            alpha: Initial alpha (0 to 1)
            alpha_min: Simulation stops once alpha falls below this
            alpha_target: Value alpha relaxes towards
            iterations: Maximum ticks per run
            params: Physical parameters (alpha_decay is taken from here)
            style: Sizing used for collision radii
            rings: Attribute rings widening collision radii
            objective: Initial objective ("free" or "leveled")
            levels: node id -> level, used by the leveled objective
        """
        params = params if params is not None else ForceParameters()
        style = style if style is not None else StyleParameters()
        super().__init__(
            nodes=nodes,
            links=links,
            size=size if size is not None else style.size,
            random_seed=random_seed,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
            alpha=alpha,
            alpha_min=alpha_min,
            alpha_decay=params.alpha_decay,
            alpha_target=alpha_target,
            iterations=iterations,
        )

        self._params: ForceParameters = params
        self._style: StyleParameters = style
        self._rings: Optional[AttributeRings] = rings

        # Objective state
        self._objective: LayoutObjective = LayoutObjective.free
        self._levels: dict[str, int] = {}
        self._level_y: dict[int, float] = {}
        self._cluster_centers: dict[str, Point] = {}
        self._primary_of: dict[str, Optional[str]] = {}

        # Arrays rebuilt when the node or link lists change
        self._prepared_key: Optional[tuple[int, int, int, int]] = None
        self._index: dict[str, int] = {}
        self._sources: np.ndarray = np.zeros(0, dtype=np.intp)
        self._targets: np.ndarray = np.zeros(0, dtype=np.intp)
        self._bias: np.ndarray = np.zeros(0, dtype=np.float64)
        self._radii: np.ndarray = np.zeros(0, dtype=np.float64)

        self.use_objective(objective, levels)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def params(self) -> ForceParameters:
        """Get physical parameters."""
        return self._params

    @params.setter
    def params(self, value: ForceParameters) -> None:
        """Set physical parameters (also updates alpha_decay)."""
        self._params = value
        self.alpha_decay = value.alpha_decay
        self._prepared_key = None

    @property
    def style(self) -> StyleParameters:
        """Get sizing parameters used for collision radii."""
        return self._style

    @style.setter
    def style(self, value: StyleParameters) -> None:
        self._style = value
        self._prepared_key = None

    @property
    def rings(self) -> Optional[AttributeRings]:
        """Get attribute rings widening collision radii."""
        return self._rings

    @rings.setter
    def rings(self, value: Optional[AttributeRings]) -> None:
        self._rings = value
        self._prepared_key = None

    @property
    def objective(self) -> LayoutObjective:
        """Get the active objective."""
        return self._objective

    @property
    def levels(self) -> dict[str, int]:
        """Get the levels used by the leveled objective."""
        return self._levels

    @property
    def level_y(self) -> dict[int, float]:
        """Get band Y per level (empty unless leveled)."""
        return self._level_y

    @property
    def cluster_attraction(self) -> bool:
        """True while persons are pulled towards their org slots."""
        return bool(self._cluster_centers)

    @property
    def cluster_centers(self) -> dict[str, Point]:
        """Get org slot centers (empty without cluster attraction)."""
        return self._cluster_centers

    @property
    def primary_of(self) -> dict[str, Optional[str]]:
        """Get person id -> primary org id (empty without cluster attraction)."""
        return self._primary_of

    # -------------------------------------------------------------------------
    # Objectives
    # -------------------------------------------------------------------------

    def use_objective(
        self,
        objective: Union[LayoutObjective, str],
        levels: Optional[Mapping[str, int]] = None,
    ) -> OrgForceSimulation:
        """
        Switch the steady-state objective.

        The leveled objective replaces cluster attraction; nodes without a
        level use level 0. When ``levels`` is omitted each node's own
        ``level`` attribute is used.

        Args:
            objective: "free" or "leveled"
            levels: node id -> level (leveled objective only)

        Returns:
            self (for chaining)

        Raises:
            InvalidParameterError: If the objective name is unknown
        """
        try:
            objective = LayoutObjective(objective)
        except ValueError:
            valid = ", ".join(o.value for o in LayoutObjective)
            raise InvalidParameterError(
                f"objective must be one of {valid}, got {objective!r}"
            ) from None

        self._objective = objective
        if objective is LayoutObjective.leveled:
            if levels is None:
                levels = {node.id: node.level for node in self._nodes}
            self._levels = {str(k): int(v) for k, v in levels.items()}
            self._level_y = level_targets(self._levels, self._params.level_height)
            self.clear_cluster_attraction()
        else:
            self._levels = {}
            self._level_y = {}

        logger.debug("Objective set to %s (%d level bands)", objective.value, len(self._level_y))
        return self

    def use_cluster_attraction(
        self,
        memberships: Mapping[str, Iterable[str]],
        org_depth: Callable[[str], int],
    ) -> OrgForceSimulation:
        """
        Pull persons towards the ring slot of their deepest org.

        Replaces the leveled objective with the free one.

        Args:
            memberships: person id -> org ids
            org_depth: Depth of an org in the hierarchy

        Returns:
            self (for chaining)
        """
        self._objective = LayoutObjective.free
        self._levels = {}
        self._level_y = {}
        self._cluster_centers, self._primary_of = cluster_targets(
            memberships, org_depth, self._canvas_size, self._params.cluster_ring_ratio
        )
        logger.debug("Cluster attraction towards %d org slots", len(self._cluster_centers))
        return self

    def clear_cluster_attraction(self) -> OrgForceSimulation:
        """Remove the cluster forces."""
        self._cluster_centers = {}
        self._primary_of = {}
        return self

    # -------------------------------------------------------------------------
    # Layout Implementation
    # -------------------------------------------------------------------------

    def run(self, **kwargs: Any) -> OrgForceSimulation:
        """
        Run the simulation until alpha falls below alpha_min.

        Returns:
            self for chaining
        """
        self._seed_random()
        self._place_unplaced()
        self._prepare()

        self._running = True
        self.trigger({"type": EventType.start, "alpha": self._alpha})
        self.kick()
        self._running = False
        self.trigger({"type": EventType.end, "alpha": self._alpha})
        return self

    def resume(self, alpha: float = 0.5) -> OrgForceSimulation:
        """Reheat and run again, placing nodes added since the last run."""
        self._place_unplaced()
        self._prepare()
        super().resume(alpha)
        return self

    def tick(self) -> bool:
        """
        Advance the simulation by one step.

        Returns:
            True once alpha is below alpha_min, False otherwise.
        """
        n = len(self._nodes)
        if n == 0 or self._alpha < self._alpha_min:
            return True

        self._prepare()
        params = self._params
        self._alpha += (self._alpha_target - self._alpha) * self._alpha_decay
        alpha = self._alpha

        x, y, vx, vy, fx, fy = self._read_state()

        self._apply_link(x, y, vx, vy, alpha, params)
        self._apply_charge(x, y, vx, vy, alpha, params)
        self._apply_center(x, y, params)
        self._apply_collide(x, y, vx, vy, params)
        self._apply_objectives(x, y, vx, vy, alpha, params)

        # Integrate; pinned nodes stay at fx/fy with zero velocity
        keep = 1.0 - params.velocity_decay
        vx *= keep
        vy *= keep
        x += vx
        y += vy

        pinned_x = ~np.isnan(fx)
        pinned_y = ~np.isnan(fy)
        x[pinned_x] = fx[pinned_x]
        vx[pinned_x] = 0.0
        y[pinned_y] = fy[pinned_y]
        vy[pinned_y] = 0.0

        self._write_state(x, y, vx, vy)
        self.trigger({"type": EventType.tick, "alpha": alpha})

        return self._alpha < self._alpha_min

    # -------------------------------------------------------------------------
    # Forces
    # -------------------------------------------------------------------------

    def _apply_link(
        self, x: np.ndarray, y: np.ndarray, vx: np.ndarray, vy: np.ndarray,
        alpha: float, params: ForceParameters,
    ) -> None:
        if len(self._sources) == 0:
            return
        s, t = self._sources, self._targets
        dx = _jiggle(x[t] + vx[t] - x[s] - vx[s])
        dy = _jiggle(y[t] + vy[t] - y[s] - vy[s])
        dist = np.sqrt(dx * dx + dy * dy)
        k = (dist - params.link_distance) / dist * alpha * params.link_strength
        dx *= k
        dy *= k
        np.add.at(vx, t, -dx * self._bias)
        np.add.at(vy, t, -dy * self._bias)
        np.add.at(vx, s, dx * (1 - self._bias))
        np.add.at(vy, s, dy * (1 - self._bias))

    def _apply_charge(
        self, x: np.ndarray, y: np.ndarray, vx: np.ndarray, vy: np.ndarray,
        alpha: float, params: ForceParameters,
    ) -> None:
        n = len(x)
        if n < 2 or params.charge_strength == 0:
            return
        dx = x[np.newaxis, :] - x[:, np.newaxis]
        dy = y[np.newaxis, :] - y[:, np.newaxis]
        dist_sq = dx * dx + dy * dy
        # Minimum distance of 1 keeps coincident nodes from exploding
        np.maximum(dist_sq, 1.0, out=dist_sq)
        weight = params.charge_strength * alpha / dist_sq
        np.fill_diagonal(weight, 0.0)
        vx += np.sum(dx * weight, axis=1)
        vy += np.sum(dy * weight, axis=1)

    def _apply_center(self, x: np.ndarray, y: np.ndarray, params: ForceParameters) -> None:
        if params.center_strength == 0:
            return
        cx, cy = self.center
        x -= (float(np.mean(x)) - cx) * params.center_strength
        y -= (float(np.mean(y)) - cy) * params.center_strength

    def _apply_collide(
        self, x: np.ndarray, y: np.ndarray, vx: np.ndarray, vy: np.ndarray,
        params: ForceParameters,
    ) -> None:
        n = len(x)
        if n < 2 or params.collide_strength == 0:
            return
        px = x + vx
        py = y + vy
        dx = px[:, np.newaxis] - px[np.newaxis, :]
        dy = py[:, np.newaxis] - py[np.newaxis, :]
        r = self._radii[:, np.newaxis] + self._radii[np.newaxis, :]
        dist_sq = dx * dx + dy * dy

        overlap = np.triu(dist_sq < r * r, k=1)
        i, j = np.nonzero(overlap)
        if len(i) == 0:
            return

        ox = _jiggle(dx[i, j])
        oy = _jiggle(dy[i, j])
        dist = np.sqrt(ox * ox + oy * oy)
        k = (r[i, j] - dist) / dist * params.collide_strength
        ox *= k
        oy *= k

        ri_sq = self._radii[i] ** 2
        rj_sq = self._radii[j] ** 2
        share = rj_sq / (ri_sq + rj_sq)
        np.add.at(vx, i, ox * share)
        np.add.at(vy, i, oy * share)
        np.add.at(vx, j, -ox * (1 - share))
        np.add.at(vy, j, -oy * (1 - share))

    def _apply_objectives(
        self, x: np.ndarray, y: np.ndarray, vx: np.ndarray, vy: np.ndarray,
        alpha: float, params: ForceParameters,
    ) -> None:
        if self._level_y:
            ty = np.array([self._level_target(node) for node in self._nodes], dtype=np.float64)
            vy += (ty - y) * params.level_force_strength * alpha

        if self._cluster_centers:
            targets = np.array([self._cluster_target(node) for node in self._nodes], dtype=np.float64)
            vx += (targets[:, 0] - x) * params.cluster_force_strength * alpha
            vy += (targets[:, 1] - y) * params.cluster_force_strength * alpha

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _level_target(self, node: Node) -> float:
        level = self._levels.get(node.id, 0)
        return self._level_y.get(level, self._canvas_size[1] / 2)

    def _cluster_target(self, node: Node) -> Point:
        oid = self._primary_of.get(node.id)
        if oid is not None and oid in self._cluster_centers:
            return self._cluster_centers[oid]
        return self.center

    def _place_unplaced(self) -> None:
        """Give nodes without a position a jittered spot near their target."""
        placed = 0
        cx, _ = self.center
        for node in self._nodes:
            if node.has_position:
                continue
            if self._level_y:
                if node.x is None or not np.isfinite(node.x):
                    node.x = cx + (random.random() - 0.5) * LEVELED_SPREAD
                if node.y is None or not np.isfinite(node.y):
                    node.y = self._level_target(node)
            elif self._cluster_centers:
                tx, ty = self._cluster_target(node)
                if node.x is None or not np.isfinite(node.x):
                    node.x = tx + (random.random() - 0.5) * CLUSTER_JITTER
                if node.y is None or not np.isfinite(node.y):
                    node.y = ty + (random.random() - 0.5) * CLUSTER_JITTER
            else:
                node.x, node.y = self._fallback_position(FREE_SPREAD)
            placed += 1
        if placed:
            logger.debug("Placed %d unpositioned nodes near their objective targets", placed)

    def _prepare(self) -> None:
        """Rebuild link index arrays and collision radii after structural changes."""
        key = (id(self._nodes), len(self._nodes), id(self._links), len(self._links))
        if key == self._prepared_key:
            return

        self._index = {node.id: i for i, node in enumerate(self._nodes)}
        sources: list[int] = []
        targets: list[int] = []
        for link in self._links:
            s = self._index.get(link.source)
            t = self._index.get(link.target)
            if s is None or t is None or s == t:
                continue
            sources.append(s)
            targets.append(t)

        n = len(self._nodes)
        self._sources = np.asarray(sources, dtype=np.intp)
        self._targets = np.asarray(targets, dtype=np.intp)
        count = np.bincount(
            np.concatenate([self._sources, self._targets]), minlength=n
        ).astype(np.float64)
        if len(sources):
            self._bias = count[self._sources] / (count[self._sources] + count[self._targets])
        else:
            self._bias = np.zeros(0, dtype=np.float64)

        self._radii = np.array(
            [self._params.collide_radius_for(node, self._style, self._rings) for node in self._nodes],
            dtype=np.float64,
        )
        self._prepared_key = key
        logger.debug("Simulation prepared: %d nodes, %d links", n, len(sources))

    def _read_state(self) -> tuple[np.ndarray, ...]:
        n = len(self._nodes)
        x = np.empty(n, dtype=np.float64)
        y = np.empty(n, dtype=np.float64)
        vx = np.zeros(n, dtype=np.float64)
        vy = np.zeros(n, dtype=np.float64)
        fx = np.full(n, np.nan, dtype=np.float64)
        fy = np.full(n, np.nan, dtype=np.float64)
        for i, node in enumerate(self._nodes):
            if not node.has_position:
                node.x, node.y = self._fallback_position(FREE_SPREAD)
            x[i] = node.x
            y[i] = node.y
            if node.vx is not None:
                vx[i] = node.vx
            if node.vy is not None:
                vy[i] = node.vy
            if node.fx is not None:
                fx[i] = node.fx
            if node.fy is not None:
                fy[i] = node.fy
        return x, y, vx, vy, fx, fy

    def _write_state(self, x: np.ndarray, y: np.ndarray, vx: np.ndarray, vy: np.ndarray) -> None:
        for i, node in enumerate(self._nodes):
            node.x = float(x[i])
            node.y = float(y[i])
            node.vx = float(vx[i])
            node.vy = float(vy[i])


def _jiggle(values: np.ndarray) -> np.ndarray:
    """Replace exact zeros with tiny random offsets so directions are defined."""
    zero = values == 0
    if np.any(zero):
        values = values.copy()
        values[zero] = [(random.random() - 0.5) * 1e-6 for _ in range(int(np.count_nonzero(zero)))]
    return values


__all__ = ["OrgForceSimulation"]
