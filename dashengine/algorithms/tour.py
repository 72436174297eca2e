"""Closed-tour solvers over an index-based distance matrix.

Index 0 of every matrix is the start node. Two strategies share one
interface:

- ``ExactTourSolver``: Held-Karp bitmask dynamic programming,
  O(n^2 * 2^n) time and O(n * 2^n) memory;
- ``HeuristicTourSolver``: nearest neighbor followed by 2-opt until no
  improving reversal remains.

``select_tour_solver`` picks one from the instance size alone, so callers can
always tell which method produced a result.

Tie-breaking: nearest neighbor takes the lowest index among equally close
candidates; Held-Karp keeps the first predecessor reaching a state's minimum;
2-opt applies the first improving reversal found scanning ``i`` then ``k``.
"""

from __future__ import annotations

import abc
from typing import List, Optional, Sequence, Tuple

from dashengine.config import DEFAULT_CONFIG, SolverConfig
from dashengine.geometry import DistanceFn, HasCoords, distance_matrix
from dashengine.logging import get_logger
from dashengine.types.base import INF, SolveMethod
from dashengine.types.dto import OptimumResult

LOGGER = get_logger(__name__)

Matrix = Sequence[Sequence[float]]


def tour_length(order: Sequence[int], dist: Matrix) -> float:
    """Sum of consecutive legs of ``order`` (which should already be closed)."""
    total = 0.0
    for a, b in zip(order, order[1:]):
        total += dist[a][b]
    return total


class HeldKarpTable:
    """Filled Held-Karp table.

    ``dp[mask][last]`` is the cheapest way to leave index 0, visit exactly the
    indices in ``mask`` (bit 0 always set) and stop at ``last``. Only odd
    masks are ever populated.

    One table answers the closed-tour question for every subset containing
    the start, which is what the routing solver needs per feasible subset.
    """

    def __init__(self, dist: Matrix, allowed: Optional[Sequence[bool]] = None) -> None:
        """Fill the table.

        Args:
            dist: Square distance matrix; index 0 is the start.
            allowed: Optional per-mask flags; transitions into a mask whose
                flag is False are skipped. Must be closed under subsets.
        """
        n = len(dist)
        if n == 0:
            raise ValueError("Held-Karp needs at least the start node.")
        self.dist = dist
        self.n = n
        size = 1 << n
        dp: List[List[float]] = [[INF] * n for _ in range(size)]
        parent: List[List[int]] = [[-1] * n for _ in range(size)]
        dp[1][0] = 0.0

        for mask in range(1, size, 2):
            if allowed is not None and not allowed[mask]:
                continue
            row = dp[mask]
            for last in range(n):
                cur = row[last]
                if cur == INF:
                    continue
                legs = dist[last]
                for nxt in range(1, n):
                    bit = 1 << nxt
                    if mask & bit:
                        continue
                    new_mask = mask | bit
                    if allowed is not None and not allowed[new_mask]:
                        continue
                    val = cur + legs[nxt]
                    if val < dp[new_mask][nxt]:
                        dp[new_mask][nxt] = val
                        parent[new_mask][nxt] = last

        self.dp = dp
        self.parent = parent

    def closed_tour(self, mask: Optional[int] = None) -> Tuple[float, List[int]]:
        """Cheapest closed tour over ``mask`` (default: every index).

        Returns:
            ``(cost, order)`` where ``order`` starts and ends with index 0, or
            ``(INF, [])`` when the mask was never reached.
        """
        if mask is None:
            mask = (1 << self.n) - 1
        if mask == 1:
            return 0.0, [0, 0]

        best, end = INF, -1
        for last in range(1, self.n):
            if not mask & (1 << last):
                continue
            val = self.dp[mask][last] + self.dist[last][0]
            if val < best:
                best, end = val, last
        if end == -1:
            return INF, []

        order = []
        i = end
        while i != -1:
            order.append(i)
            prev = self.parent[mask][i]
            mask ^= 1 << i
            i = prev
        order.reverse()
        order.append(0)
        return best, order


def held_karp(dist: Matrix) -> Tuple[float, List[int]]:
    """Optimal closed tour over every index of ``dist`` as ``(cost, order)``."""
    return HeldKarpTable(dist).closed_tour()


def nearest_neighbor(dist: Matrix) -> List[int]:
    """Greedy closed tour from index 0, always moving to the closest unvisited."""
    n = len(dist)
    unvisited = list(range(1, n))
    order = [0]
    current = 0
    while unvisited:
        next_idx = min(unvisited, key=lambda j: dist[current][j])
        unvisited.remove(next_idx)
        order.append(next_idx)
        current = next_idx
    order.append(0)
    return order


def two_opt(order: List[int], dist: Matrix, tolerance: float = 1e-6) -> List[int]:
    """Improve a closed tour in place by segment reversals.

    For every pair of tour edges (A-B, C-D), reverse B..C when
    ``d(A,C) + d(B,D)`` beats ``d(A,B) + d(C,D)`` by more than ``tolerance``.
    Repeats full passes until none improves (a 2-opt local optimum).
    """
    improved = True
    while improved:
        improved = False
        for i in range(1, len(order) - 2):
            for k in range(i + 1, len(order) - 1):
                a, b, c, d = order[i - 1], order[i], order[k], order[k + 1]
                delta = (dist[a][c] + dist[b][d]) - (dist[a][b] + dist[c][d])
                if delta < -tolerance:
                    order[i : k + 1] = order[i : k + 1][::-1]
                    improved = True
    return order


class TourSolver(abc.ABC):
    """Strategy producing a closed tour over a distance matrix."""

    method: SolveMethod
    algorithm: str

    @abc.abstractmethod
    def order(self, dist: Matrix) -> List[int]:
        """Return a closed index order starting and ending at 0."""

    def solve(self, ids: Sequence[str], dist: Matrix) -> OptimumResult:
        """Tour over ``ids`` (``ids[0]`` is the start) as an ``OptimumResult``."""
        order = self.order(dist)
        return OptimumResult(
            cost=tour_length(order, dist),
            path=tuple(ids[i] for i in order),
            method=self.method,
            algorithm=self.algorithm,
        )


class ExactTourSolver(TourSolver):
    method = SolveMethod.EXACT
    algorithm = "held_karp"

    def order(self, dist: Matrix) -> List[int]:
        _, order = held_karp(dist)
        return order


class HeuristicTourSolver(TourSolver):
    method = SolveMethod.HEURISTIC
    algorithm = "nearest_neighbor_2opt"

    def __init__(self, tolerance: float = DEFAULT_CONFIG.two_opt_tolerance) -> None:
        self.tolerance = tolerance

    def order(self, dist: Matrix) -> List[int]:
        return two_opt(nearest_neighbor(dist), dist, self.tolerance)


def select_tour_solver(num_nodes: int, config: SolverConfig = DEFAULT_CONFIG) -> TourSolver:
    """Held-Karp up to ``config.exact_tour_max_nodes`` (start included), else heuristic."""
    if config.use_exact_tour(num_nodes):
        return ExactTourSolver()
    return HeuristicTourSolver(config.two_opt_tolerance)


def solve_tour(
    points: Sequence[HasCoords],
    ids: Sequence[str],
    dist_fn: DistanceFn,
    config: SolverConfig = DEFAULT_CONFIG,
    solver: Optional[TourSolver] = None,
) -> OptimumResult:
    """Closed tour through ``points`` starting and ending at ``points[0]``.

    Args:
        points: Start first, then every node to visit.
        ids: Node ids aligned with ``points``.
        dist_fn: Euclidean or Manhattan distance.
        config: Sizing thresholds.
        solver: Force a strategy instead of sizing by ``config``.
    """
    if solver is None:
        solver = select_tour_solver(len(points), config)
        if solver.method == SolveMethod.HEURISTIC:
            LOGGER.info(
                "Tour over %d nodes exceeds exact limit %d; using %s",
                len(points),
                config.exact_tour_max_nodes,
                solver.algorithm,
            )
    result = solver.solve(ids, distance_matrix(points, dist_fn))
    LOGGER.debug("Tour via %s: cost=%s path=%s", result.algorithm, result.cost, result.path)
    return result
