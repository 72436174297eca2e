"""Optimum computation for any scenario.

`solve` dispatches on ``scenario.kind`` to the matching algorithm:

- SHORTEST_PATH: resolve edge weights, then Dijkstra;
- TOUR and PICKING: Held-Karp or nearest neighbor + 2-opt over the implicit
  complete graph (Euclidean and Manhattan distance respectively);
- ROUTING: set-partition DP or polar sweep;
- TRANSPORTATION and TRANSSHIPMENT: successive shortest path min-cost flow.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from dashengine.algorithms.cvrp import solve_routing
from dashengine.algorithms.min_cost_flow import min_cost_flow
from dashengine.algorithms.spf import shortest_path
from dashengine.algorithms.tour import solve_tour
from dashengine.config import DEFAULT_CONFIG, SolverConfig
from dashengine.logging import get_logger, solve_context
from dashengine.model.flow import FlowInstance, Hub
from dashengine.model.scenario import Node, Objective, Scenario
from dashengine.types.base import ProblemKind
from dashengine.types.dto import OptimumResult
from dashengine.weights import ResolvedEdge, build_graph, resolve_edges

LOGGER = get_logger(__name__)


def _tour_points(scenario: Scenario) -> Sequence[Node]:
    start = scenario.node_map[scenario.start]
    return [start, *(node for node in scenario.nodes if node.id != scenario.start)]


def solve_shortest_path(
    scenario: Scenario,
    objective: Optional[Objective] = None,
    config: SolverConfig = DEFAULT_CONFIG,
    resolved: Optional[Sequence[ResolvedEdge]] = None,
) -> OptimumResult:
    if resolved is None:
        resolved = resolve_edges(scenario, objective, config)
    graph = build_graph((node.id for node in scenario.nodes), resolved)
    return shortest_path(graph, scenario.start, scenario.end)


def solve_closed_tour(
    scenario: Scenario, config: SolverConfig = DEFAULT_CONFIG
) -> OptimumResult:
    points = _tour_points(scenario)
    return solve_tour(points, [p.id for p in points], scenario.distance, config)


def solve_vehicle_routing(
    scenario: Scenario, config: SolverConfig = DEFAULT_CONFIG
) -> OptimumResult:
    points = _tour_points(scenario)
    demands = [
        scenario.demand_of(p.id, config.default_customer_demand) for p in points[1:]
    ]
    capacity = scenario.capacity or config.default_vehicle_capacity
    return solve_routing(
        points, [p.id for p in points], demands, capacity, scenario.distance, config
    )


def solve_transportation(
    supplies: Mapping[str, float],
    demands: Mapping[str, float],
    cost_table: Mapping[Any, float],
    config: SolverConfig = DEFAULT_CONFIG,
) -> OptimumResult:
    """Min-cost plan for a bipartite supply/demand instance.

    Args:
        supplies: Supply id -> quantity.
        demands: Demand id -> quantity.
        cost_table: Per-unit cost keyed by ``(supply, demand)`` or
            ``"supply>demand"``; missing pairs are not allowed lanes.
    """
    return min_cost_flow(FlowInstance.transportation(supplies, demands, cost_table), config)


def solve_transshipment(
    instance: FlowInstance,
    hub_caps: Optional[Mapping[str, Optional[float]]] = None,
    config: SolverConfig = DEFAULT_CONFIG,
) -> OptimumResult:
    """Min-cost plan through intermediate hubs.

    ``hub_caps`` overrides the throughput cap of the named hubs; ``None``
    lifts a cap.
    """
    if hub_caps:
        unknown = set(hub_caps) - set(instance.hub_map)
        if unknown:
            raise ValueError(f"Unknown hub(s) in caps: {sorted(unknown)}")
        hubs = tuple(
            Hub(hub.id, hub_caps.get(hub.id, hub.capacity)) for hub in instance.hubs
        )
        instance = FlowInstance(instance.supplies, instance.demands, hubs, instance.arcs)
    return min_cost_flow(instance, config)


def solve(
    scenario: Scenario,
    objective: Optional[Objective] = None,
    config: SolverConfig = DEFAULT_CONFIG,
) -> OptimumResult:
    """Compute the optimum (or heuristic best) solution of ``scenario``.

    Args:
        scenario: Problem instance.
        objective: Shortest-path objective; defaults to the scenario's own.
            Ignored by the geometric and flow kinds.
        config: Sizing thresholds and tolerances.
    """
    kind = scenario.kind
    with solve_context(scenario.log_label):
        if kind == ProblemKind.SHORTEST_PATH:
            result = solve_shortest_path(scenario, objective, config)
        elif kind == ProblemKind.ROUTING:
            result = solve_vehicle_routing(scenario, config)
        elif kind.is_closed_tour:
            result = solve_closed_tour(scenario, config)
        else:
            assert scenario.flow is not None
            result = min_cost_flow(scenario.flow, config)

        LOGGER.debug(
            "Solved %s scenario via %s: cost=%s feasible=%s",
            kind.name,
            result.algorithm,
            result.cost,
            result.feasible,
        )
    return result
