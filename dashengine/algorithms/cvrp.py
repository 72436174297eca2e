"""Capacitated vehicle routing from a single depot.

``ExactRoutingSolver`` (small customer counts):
    1. mark every customer subset whose total demand fits the vehicle;
    2. take each feasible subset's cheapest closed tour from one Held-Karp
       table restricted to feasible masks;
    3. set-partition DP over the customer bitmask, ``dp[covered]`` being the
       cheapest union of disjoint feasible tours serving exactly ``covered``.
       Each step extends ``covered`` by a subset containing its lowest
       uncovered customer, which enumerates every partition exactly once.

``SweepRoutingSolver`` (larger instances): order customers by polar angle
around the depot, cut the order greedily into capacity-feasible runs and
improve each run with 2-opt.

Either solver returns the route set flattened into one id sequence in which
every run is closed at the depot and consecutive runs share a depot visit.
"""

from __future__ import annotations

import abc
import math
from typing import List, Optional, Sequence

from dashengine.algorithms.tour import HeldKarpTable, tour_length, two_opt
from dashengine.config import DEFAULT_CONFIG, SolverConfig
from dashengine.geometry import DistanceFn, HasCoords, distance_matrix
from dashengine.logging import get_logger
from dashengine.types.base import INF, SolveMethod
from dashengine.types.dto import OptimumResult

LOGGER = get_logger(__name__)


def flatten_routes(routes: Sequence[Sequence[int]]) -> List[int]:
    """Concatenate closed routes, eliding the duplicate depot between runs."""
    flat: List[int] = []
    for route in routes:
        if not route:
            continue
        if flat and flat[-1] == route[0]:
            flat.extend(route[1:])
        else:
            flat.extend(route)
    return flat or [0, 0]


class RoutingSolver(abc.ABC):
    """Strategy serving every customer with capacity-feasible depot tours."""

    method: SolveMethod
    algorithm: str

    @abc.abstractmethod
    def routes(
        self,
        points: Sequence[HasCoords],
        ids: Sequence[str],
        dist: Sequence[Sequence[float]],
        demands: Sequence[float],
        capacity: float,
    ) -> Optional[List[List[int]]]:
        """Closed index routes; index 0 is the depot, customer ``i`` is ``i + 1``.

        Returns None when no capacity-feasible set of routes exists.
        """

    def solve(
        self,
        points: Sequence[HasCoords],
        ids: Sequence[str],
        demands: Sequence[float],
        capacity: float,
        dist_fn: DistanceFn,
    ) -> OptimumResult:
        """Route set as an ``OptimumResult``.

        Args:
            points: Depot first, then customers.
            ids: Node ids aligned with ``points``.
            demands: Demand per customer (aligned with ``points[1:]``).
            capacity: Vehicle capacity.
            dist_fn: Distance between two points.

        Raises:
            ValueError: If a demand or the capacity is not a finite,
                non-negative number.
        """
        if not math.isfinite(capacity) or capacity < 0:
            raise ValueError(f"Vehicle capacity must be finite and non-negative, got {capacity}")
        for cust_id, demand in zip(ids[1:], demands):
            if not math.isfinite(demand) or demand < 0:
                raise ValueError(
                    f"Customer {cust_id} demand must be finite and non-negative, got {demand}"
                )
            if demand > capacity:
                reason = (
                    f"Customer {cust_id} demand {demand:g} exceeds vehicle "
                    f"capacity {capacity:g}."
                )
                LOGGER.warning(reason)
                return OptimumResult.infeasible(reason, self.method, self.algorithm)

        dist = distance_matrix(points, dist_fn)
        routes = self.routes(points, ids, dist, demands, capacity)
        if routes is None:
            reason = f"No capacity-feasible partition of {len(demands)} customers."
            LOGGER.warning(reason)
            return OptimumResult.infeasible(reason, self.method, self.algorithm)
        order = flatten_routes(routes)
        LOGGER.debug("%s built %d route(s) over %d customers", self.algorithm, len(routes), len(demands))
        return OptimumResult(
            cost=tour_length(order, dist),
            path=tuple(ids[i] for i in order),
            method=self.method,
            algorithm=self.algorithm,
        )


class ExactRoutingSolver(RoutingSolver):
    method = SolveMethod.EXACT
    algorithm = "set_partition_dp"

    def routes(
        self,
        points: Sequence[HasCoords],
        ids: Sequence[str],
        dist: Sequence[Sequence[float]],
        demands: Sequence[float],
        capacity: float,
    ) -> Optional[List[List[int]]]:
        k = len(demands)
        if k == 0:
            return []
        full = (1 << k) - 1

        # Subset loads, built from the subset without its lowest customer
        load = [0.0] * (full + 1)
        for mask in range(1, full + 1):
            low = mask & -mask
            load[mask] = load[mask ^ low] + demands[low.bit_length() - 1]
        feasible = [load[mask] <= capacity for mask in range(full + 1)]

        # Table masks put the depot on bit 0 and customer i on bit i + 1
        allowed = [False] * (1 << (k + 1))
        for mask in range(full + 1):
            allowed[(mask << 1) | 1] = feasible[mask]
        table = HeldKarpTable(dist, allowed)

        subset_cost = [INF] * (full + 1)
        for mask in range(1, full + 1):
            if feasible[mask]:
                subset_cost[mask], _ = table.closed_tour((mask << 1) | 1)

        best = [INF] * (full + 1)
        choice = [0] * (full + 1)
        best[0] = 0.0
        for covered in range(full):
            if best[covered] == INF:
                continue
            remaining = full & ~covered
            low = remaining & -remaining
            sub = remaining
            while sub:
                if sub & low and feasible[sub]:
                    val = best[covered] + subset_cost[sub]
                    if val < best[covered | sub]:
                        best[covered | sub] = val
                        choice[covered | sub] = sub
                sub = (sub - 1) & remaining

        if best[full] == INF:
            return None

        chosen = []
        covered = full
        while covered:
            sub = choice[covered]
            chosen.append(sub)
            covered &= ~sub
        chosen.reverse()
        return [table.closed_tour((sub << 1) | 1)[1] for sub in chosen]


class SweepRoutingSolver(RoutingSolver):
    method = SolveMethod.HEURISTIC
    algorithm = "polar_sweep"

    def __init__(self, tolerance: float = DEFAULT_CONFIG.two_opt_tolerance) -> None:
        self.tolerance = tolerance

    def routes(
        self,
        points: Sequence[HasCoords],
        ids: Sequence[str],
        dist: Sequence[Sequence[float]],
        demands: Sequence[float],
        capacity: float,
    ) -> Optional[List[List[int]]]:
        depot = points[0]
        sweep = sorted(
            range(1, len(points)),
            key=lambda i: (
                math.atan2(points[i].y - depot.y, points[i].x - depot.x),
                ids[i],
            ),
        )
        runs: List[List[int]] = []
        run: List[int] = [0]
        load = 0.0
        for idx in sweep:
            demand = demands[idx - 1]
            if load + demand > capacity:
                runs.append(run + [0])
                run, load = [0], 0.0
            run.append(idx)
            load += demand
        if len(run) > 1:
            runs.append(run + [0])
        return [two_opt(route, dist, self.tolerance) for route in runs]


def select_routing_solver(
    points: Sequence[HasCoords],
    ids: Sequence[str],
    config: SolverConfig = DEFAULT_CONFIG,
) -> RoutingSolver:
    """Set-partition DP up to ``config.exact_routing_max_customers``, else sweep."""
    if config.use_exact_routing(len(points) - 1):
        return ExactRoutingSolver()
    return SweepRoutingSolver(config.two_opt_tolerance)


def solve_routing(
    points: Sequence[HasCoords],
    ids: Sequence[str],
    demands: Sequence[float],
    capacity: float,
    dist_fn: DistanceFn,
    config: SolverConfig = DEFAULT_CONFIG,
) -> OptimumResult:
    """Serve every customer in ``points[1:]`` from the depot ``points[0]``."""
    solver = select_routing_solver(points, ids, config)
    if solver.method == SolveMethod.HEURISTIC:
        LOGGER.info(
            "Routing over %d customers exceeds exact limit %d; using %s",
            len(points) - 1,
            config.exact_routing_max_customers,
            solver.algorithm,
        )
    return solver.solve(points, ids, demands, capacity, dist_fn)
