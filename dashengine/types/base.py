"""Base aliases and enums shared by the solvers."""

from __future__ import annotations

from enum import IntEnum
from typing import Tuple, Union

#: Numeric cost of an edge, tour or flow plan (may be ``INF``).
Cost = Union[int, float]

#: Marker for unreachable or infeasible results.
INF = float("inf")

#: Flow threshold below which flow values are treated as effectively zero.
MIN_FLOW = 2**-12

#: Directed arc key in flow plans: ``(source_id, target_id)``.
ArcKey = Tuple[str, str]

#: Metric names carried by a metric vector, in primary/secondary/tertiary order.
METRICS: Tuple[str, ...] = ("time", "cost", "co2")


class ProblemKind(IntEnum):
    """The classroom problem a scenario poses."""

    #: Single-pair shortest path over an explicit directed graph.
    SHORTEST_PATH = 1
    #: Closed Euclidean tour over all nodes (TSP).
    TOUR = 2
    #: Closed Manhattan tour over warehouse picks.
    PICKING = 3
    #: Capacitated vehicle routing from a depot (Euclidean).
    ROUTING = 4
    #: Bipartite supply -> demand minimum-cost flow.
    TRANSPORTATION = 5
    #: Supply -> hubs -> demand minimum-cost flow over allowed arcs.
    TRANSSHIPMENT = 6

    @classmethod
    def from_string(cls, value: str) -> "ProblemKind":
        """Parse a kind from its name or the short game-mode code.

        Accepts case-insensitive member names (``"routing"``) and the codes
        used by round payloads (``sp``, ``tsp``, ``pick``, ``vrp``, ``tp``,
        ``ts``).

        Raises:
            ValueError: If the string matches neither form.
        """
        code = value.strip().lower()
        if code in _KIND_CODES:
            return _KIND_CODES[code]
        try:
            return cls[code.upper()]
        except KeyError:
            valid = ", ".join(e.name for e in cls)
            raise ValueError(
                f"Invalid problem kind '{value}'. Valid values are: {valid}"
            ) from None

    @property
    def is_flow(self) -> bool:
        return self in (ProblemKind.TRANSPORTATION, ProblemKind.TRANSSHIPMENT)

    @property
    def is_closed_tour(self) -> bool:
        """True for kinds whose solutions start and end at the same node."""
        return self in (ProblemKind.TOUR, ProblemKind.PICKING, ProblemKind.ROUTING)


_KIND_CODES = {
    "sp": ProblemKind.SHORTEST_PATH,
    "tsp": ProblemKind.TOUR,
    "pick": ProblemKind.PICKING,
    "vrp": ProblemKind.ROUTING,
    "tp": ProblemKind.TRANSPORTATION,
    "ts": ProblemKind.TRANSSHIPMENT,
}


class SolveMethod(IntEnum):
    """Which family of method produced a result."""

    #: Provably optimal for the instance (Dijkstra, Held-Karp, set-partition DP, SSP).
    EXACT = 1
    #: Construction/local-search result with no optimality claim.
    HEURISTIC = 2
