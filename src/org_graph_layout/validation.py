"""
Input validation utilities for the org graph engine.

Provides centralized validation functions for canvas size, traversal
requests and tunable parameters. Raises descriptive exceptions on invalid
input. Inconsistent dataset records are not validation errors: they are
dropped at ingestion (see ``graph.index``).
"""

from __future__ import annotations

import math
from typing import Any, Sequence, Union

from .types import Direction


class ValidationError(ValueError):
    """Base exception for validation errors."""

    pass


class InvalidCanvasSizeError(ValidationError):
    """Raised when canvas dimensions are invalid."""

    pass


class InvalidDepthError(ValidationError):
    """Raised when a traversal depth is negative or not an integer."""

    pass


class InvalidDirectionError(ValidationError):
    """Raised when a traversal direction is not down, up or both."""

    pass


class UnknownParameterError(ValidationError):
    """Raised when overriding a parameter that does not exist."""

    pass


class InvalidParameterError(ValidationError):
    """Raised when a parameter value is out of range."""

    pass


def validate_canvas_size(size: Sequence[float]) -> tuple[float, float]:
    """
    Validate canvas size dimensions.

    Args:
        size: [width, height] sequence

    Returns:
        Validated (width, height) tuple

    Raises:
        InvalidCanvasSizeError: If dimensions are invalid
    """
    if len(size) < 2:
        raise InvalidCanvasSizeError(
            f"Canvas size must have 2 elements [width, height], got {len(size)}"
        )

    width, height = float(size[0]), float(size[1])

    if width <= 0:
        raise InvalidCanvasSizeError(f"Canvas width must be positive, got {width}")
    if height <= 0:
        raise InvalidCanvasSizeError(f"Canvas height must be positive, got {height}")

    return width, height


def validate_depth(depth: Any) -> int:
    """
    Validate a traversal depth.

    Args:
        depth: Number of BFS steps, must be an integer >= 0

    Returns:
        Validated depth

    Raises:
        InvalidDepthError: If depth is negative or not integral
    """
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise InvalidDepthError(f"depth must be an integer, got {depth!r}")
    if depth < 0:
        raise InvalidDepthError(f"depth must be >= 0, got {depth}")
    return depth


def validate_direction(direction: Union[Direction, str]) -> Direction:
    """
    Validate a traversal direction.

    Args:
        direction: Direction enum or one of "down", "up", "both"

    Returns:
        Direction enum member

    Raises:
        InvalidDirectionError: If direction is not recognized
    """
    try:
        return Direction(direction)
    except ValueError:
        valid = ", ".join(d.value for d in Direction)
        raise InvalidDirectionError(
            f"direction must be one of {valid}, got {direction!r}"
        ) from None


def validate_alpha(alpha: float, name: str = "alpha") -> float:
    """
    Validate a decay/alpha value is in [0, 1].

    Args:
        alpha: Value to check
        name: Parameter name used in the error message

    Returns:
        Validated value

    Raises:
        InvalidParameterError: If value not in [0, 1]
    """
    if not math.isfinite(alpha) or alpha < 0 or alpha > 1:
        raise InvalidParameterError(f"{name} must be in [0, 1], got {alpha}")
    return alpha


def validate_non_negative(value: float, name: str) -> float:
    """
    Validate a length-like parameter is a finite number >= 0.

    Raises:
        InvalidParameterError: If value is negative or not finite
    """
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise InvalidParameterError(f"{name} must be a finite number >= 0, got {value}")
    return value


__all__ = [
    "ValidationError",
    "InvalidCanvasSizeError",
    "InvalidDepthError",
    "InvalidDirectionError",
    "UnknownParameterError",
    "InvalidParameterError",
    "validate_canvas_size",
    "validate_depth",
    "validate_direction",
    "validate_alpha",
    "validate_non_negative",
]
