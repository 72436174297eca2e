"""Planar distance helpers for the implicit complete graphs."""

from __future__ import annotations

import math
from typing import Callable, List, Protocol, Sequence

from dashengine.types.base import ProblemKind


class HasCoords(Protocol):
    x: float
    y: float


DistanceFn = Callable[[HasCoords, HasCoords], float]


def validate_coordinates(x: float, y: float, node_id: str = "?") -> None:
    """Reject coordinates that are not finite numbers.

    Raises:
        ValueError: If either coordinate is NaN, infinite or not numeric.
    """
    for axis, value in (("x", x), ("y", y)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(
                f"Node '{node_id}' has non-numeric {axis} coordinate: {value!r}"
            )
        if not math.isfinite(value):
            raise ValueError(
                f"Node '{node_id}' has non-finite {axis} coordinate: {value!r}"
            )


def euclidean(a: HasCoords, b: HasCoords) -> float:
    """Straight-line distance between two points."""
    return math.hypot(a.x - b.x, a.y - b.y)


def manhattan(a: HasCoords, b: HasCoords) -> float:
    """Rectilinear (aisle-grid) distance between two points."""
    return abs(a.x - b.x) + abs(a.y - b.y)


def distance_function(kind: ProblemKind) -> DistanceFn:
    """Return the metric of a problem kind's implicit complete graph.

    Warehouse picking walks aisles, so it uses Manhattan distance; every
    other kind uses Euclidean distance.
    """
    return manhattan if kind == ProblemKind.PICKING else euclidean


def distance_matrix(points: Sequence[HasCoords], dist: DistanceFn) -> List[List[float]]:
    """Build a dense index-based distance matrix over ``points``."""
    return [[dist(a, b) for b in points] for a in points]
