"""
Base classes for position-seeding and relaxation passes.

This module provides abstract base classes that define the common interface
and shared functionality for everything that writes node positions:

- BaseLayout: Abstract base with event system, node/link management
- IterativeLayout: For animated passes with a tick loop (force simulation)
- StaticLayout: For single-pass placement (radial seeding)

Layouts mutate the Node objects they are given; callers keep ownership of
the node list and read positions back from it.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

if TYPE_CHECKING:
    from typing_extensions import Self

from .types import (
    Event,
    EventType,
    Link,
    LinkLike,
    Node,
    NodeLike,
    SizeType,
)
from .validation import validate_canvas_size


class BaseLayout(ABC):
    """
    Abstract base class for all layout passes.

    Provides shared infrastructure:
    - Event system (start/tick/end events)
    - Node/link management via properties
    - Fallback placement near the canvas center
    - Canvas size management

    Example:
        layout = SomeLayout(
            nodes=nodes,
            links=links,
            size=(1200, 800),
        )
        layout.run()

        for node in layout.nodes:
            print(f"{node.id}: ({node.x}, {node.y})")
    """

    def __init__(
        self,
        *,
        nodes: Optional[Sequence[NodeLike]] = None,
        links: Optional[Sequence[LinkLike]] = None,
        size: SizeType = (1200.0, 800.0),
        random_seed: Optional[int] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        """
        Initialize layout with configuration.

        Args:
            nodes: List of nodes (Node objects are used in place, dicts are converted)
            links: List of links (Link objects or dicts with source/target ids)
            size: Canvas size as (width, height)
            random_seed: Random seed for reproducible fallback placement
            on_start: Callback for start event
            on_tick: Callback for tick event (iterative layouts)
            on_end: Callback for end event
        """
        self._nodes: list[Node] = []
        self._links: list[Link] = []
        self._canvas_size: tuple[float, float] = (1200.0, 800.0)
        self._events: dict[EventType, Callable[[Optional[Event]], None]] = {}
        self._random_seed: Optional[int] = None

        # Set initial values via properties (triggers normalization)
        if nodes is not None:
            self.nodes = nodes
        if links is not None:
            self.links = links
        self.size = size
        if random_seed is not None:
            self.random_seed = random_seed

        # Register event callbacks
        if on_start:
            self._events[EventType.start] = on_start
        if on_tick:
            self._events[EventType.tick] = on_tick
        if on_end:
            self._events[EventType.end] = on_end

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def nodes(self) -> list[Node]:
        """Get the list of nodes."""
        return self._nodes

    @nodes.setter
    def nodes(self, value: Sequence[NodeLike]) -> None:
        """Set nodes from a sequence of Node objects or dicts."""
        self._nodes = []
        for node_data in value:
            if isinstance(node_data, Node):
                self._nodes.append(node_data)
            elif isinstance(node_data, dict):
                self._nodes.append(Node(**node_data))
            else:
                self._nodes.append(
                    Node(**{k: v for k, v in vars(node_data).items() if not k.startswith("_")})
                )

    @property
    def links(self) -> list[Link]:
        """Get the list of links."""
        return self._links

    @links.setter
    def links(self, value: Sequence[LinkLike]) -> None:
        """Set links from a sequence of Link objects, dicts, or objects."""
        self._links = []
        for link_data in value:
            if isinstance(link_data, Link):
                self._links.append(link_data)
            elif isinstance(link_data, dict):
                self._links.append(Link(**link_data))
            else:
                source = getattr(link_data, "source", None)
                target = getattr(link_data, "target", None)
                self._links.append(Link(source, target))

    @property
    def size(self) -> tuple[float, float]:
        """Get canvas size as (width, height)."""
        return self._canvas_size

    @size.setter
    def size(self, value: SizeType) -> None:
        """
        Set canvas size.

        Args:
            value: (width, height) tuple, list, or sequence

        Raises:
            InvalidCanvasSizeError: If width or height is not positive.
        """
        width, height = validate_canvas_size(value)
        self._canvas_size = (width, height)

    @property
    def random_seed(self) -> Optional[int]:
        """Get random seed for reproducible fallback placement."""
        return self._random_seed

    @random_seed.setter
    def random_seed(self, value: Optional[int]) -> None:
        """Set random seed for reproducible fallback placement."""
        self._random_seed = value

    @property
    def center(self) -> tuple[float, float]:
        """Canvas center."""
        return (self._canvas_size[0] / 2, self._canvas_size[1] / 2)

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callable[[Optional[Event]], None]) -> Self:
        """
        Subscribe to a layout event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """
        Trigger an event, calling the registered callback.

        Args:
            event: Event payload with type and optional data
        """
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def run(self, **kwargs: Any) -> Self:
        """
        Run the layout pass.

        Returns:
            self (for chaining)
        """
        pass

    def stop(self) -> Self:
        """
        Stop the layout (for iterative layouts).

        Returns:
            self (for chaining)
        """
        return self

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _seed_random(self) -> None:
        if self._random_seed is not None:
            random.seed(self._random_seed)

    def _fallback_position(
        self, spread: float, center: Optional[tuple[float, float]] = None
    ) -> tuple[float, float]:
        """Random point within +/- spread/2 of a center (canvas center by default)."""
        cx, cy = center if center is not None else self.center
        return (
            cx + (random.random() - 0.5) * spread,
            cy + (random.random() - 0.5) * spread,
        )

    def _node_map(self) -> dict[str, Node]:
        return {node.id: node for node in self._nodes}

    def _build_neighbor_maps(self) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
        """
        Build forward (children_of) and inverse (parents_of) neighbor lists.

        Only links between nodes of this layout are used; list order follows
        link order so placement is deterministic.
        """
        ids = {node.id for node in self._nodes}
        children_of: dict[str, list[str]] = {}
        parents_of: dict[str, list[str]] = {}
        for link in self._links:
            if link.source not in ids or link.target not in ids:
                continue
            children_of.setdefault(link.source, []).append(link.target)
            parents_of.setdefault(link.target, []).append(link.source)
        return children_of, parents_of


class IterativeLayout(BaseLayout):
    """
    Base class for iterative/animated layout passes.

    Provides:
    - Alpha (temperature/cooling) management
    - Tick-based iteration loop
    - Convergence checking

    Example:
        simulation = SomeSimulation(
            nodes=nodes,
            links=links,
            size=(1200, 800),
            iterations=300,
            alpha_min=0.001,
        )
        simulation.run()
    """

    def __init__(
        self,
        *,
        nodes: Optional[Sequence[NodeLike]] = None,
        links: Optional[Sequence[LinkLike]] = None,
        size: SizeType = (1200.0, 800.0),
        random_seed: Optional[int] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
        # IterativeLayout-specific parameters
        alpha: float = 1.0,
        alpha_min: float = 0.001,
        alpha_decay: float = 0.0228,
        alpha_target: float = 0.0,
        iterations: int = 300,
    ) -> None:
        """
        Initialize iterative layout.

        Args:
            nodes: List of nodes
            links: List of links
            size: Canvas size as (width, height)
            random_seed: Random seed for reproducible layouts
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
            alpha: Initial alpha/energy (0 to 1)
            alpha_min: Minimum alpha for convergence threshold
            alpha_decay: Fraction of the gap to alpha_target closed per tick
            alpha_target: Value alpha relaxes towards
            iterations: Maximum number of iterations
        """
        super().__init__(
            nodes=nodes,
            links=links,
            size=size,
            random_seed=random_seed,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )
        self._alpha: float = max(0.0, min(1.0, float(alpha)))
        self._alpha_min: float = float(alpha_min)
        self._alpha_decay: float = max(0.0, min(1.0, float(alpha_decay)))
        self._alpha_target: float = max(0.0, min(1.0, float(alpha_target)))
        self._running: bool = False
        self._iterations: int = max(1, int(iterations))

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def alpha(self) -> float:
        """Get current alpha (energy)."""
        return self._alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        """Set alpha (energy), clamped to [0, 1]."""
        self._alpha = max(0.0, min(1.0, float(value)))

    @property
    def alpha_min(self) -> float:
        """Get minimum alpha (convergence threshold)."""
        return self._alpha_min

    @alpha_min.setter
    def alpha_min(self, value: float) -> None:
        """Set minimum alpha (convergence threshold)."""
        self._alpha_min = float(value)

    @property
    def alpha_decay(self) -> float:
        """Get alpha decay rate."""
        return self._alpha_decay

    @alpha_decay.setter
    def alpha_decay(self, value: float) -> None:
        """Set alpha decay rate, clamped to [0, 1]."""
        self._alpha_decay = max(0.0, min(1.0, float(value)))

    @property
    def alpha_target(self) -> float:
        """Get the value alpha relaxes towards (raised while dragging)."""
        return self._alpha_target

    @alpha_target.setter
    def alpha_target(self, value: float) -> None:
        self._alpha_target = max(0.0, min(1.0, float(value)))

    @property
    def iterations(self) -> int:
        """Get maximum iterations."""
        return self._iterations

    @iterations.setter
    def iterations(self, value: int) -> None:
        """Set maximum iterations (minimum 1)."""
        self._iterations = max(1, int(value))

    @property
    def running(self) -> bool:
        return self._running

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def tick(self) -> bool:
        """
        Perform one iteration of the layout.

        Returns:
            True if converged/done, False if more iterations needed.
        """
        pass

    def kick(self) -> None:
        """Run tick() repeatedly until convergence or max iterations."""
        for _ in range(self._iterations):
            if self.tick():
                break

    def resume(self, alpha: float = 0.5) -> Self:
        """Reheat and run again (after the node set or objective changed)."""
        self._alpha = max(0.0, min(1.0, float(alpha)))
        self._running = True
        self.trigger({"type": EventType.start, "alpha": self._alpha})
        self.kick()
        self._running = False
        self.trigger({"type": EventType.end, "alpha": self._alpha})
        return self

    def stop(self) -> Self:
        """Stop the layout."""
        self._alpha = 0.0
        self._running = False
        return self


class StaticLayout(BaseLayout):
    """
    Base class for single-pass layouts.

    These layouts compute positions in one pass without iteration.
    Unlike the relaxation pass they never move the graph as a whole, so
    positions kept from an earlier pass stay where they were.

    Example:
        layout = RadialSeedLayout(
            nodes=nodes,
            links=links,
            roots=["p1"],
            size=(1200, 800),
        )
        layout.run()
    """

    def run(self, **kwargs: Any) -> Self:
        """
        Run the layout pass.

        Fires start event, computes layout, fires end event.

        Args:
            **kwargs: Additional arguments passed to _compute()

        Returns:
            self (for chaining)
        """
        self.trigger({"type": EventType.start, "alpha": 1.0})

        # Subclasses implement _compute()
        placed = self._compute(**kwargs)

        self.trigger({"type": EventType.end, "alpha": 0.0, "placed": placed})
        return self

    @abstractmethod
    def _compute(self, **kwargs: Any) -> Optional[int]:
        """
        Compute node positions.

        Returns:
            Number of nodes placed by this pass, if the layout tracks it.
        """
        pass


__all__ = [
    "BaseLayout",
    "IterativeLayout",
    "StaticLayout",
]
