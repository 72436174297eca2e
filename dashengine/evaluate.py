"""Feasibility and cost evaluation of submitted solutions.

Every check runs to completion and records each violated constraint, so a
learner sees all problems with a submission at once. Costs follow exactly the
rules the solvers optimize (resolved edge weights for shortest path, the
scenario metric for tours and routing, per-unit arc costs for flows), which
makes grading a solver's own optimum reproduce its reported cost.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from dashengine.config import DEFAULT_CONFIG, SolverConfig
from dashengine.logging import get_logger, solve_context
from dashengine.model.flow import FlowInstance, parse_arc_key
from dashengine.model.scenario import Objective, Scenario
from dashengine.types.base import INF, ProblemKind
from dashengine.types.dto import Evaluation, arc_label
from dashengine.weights import ResolvedEdge, resolve_edges, weight_table

LOGGER = get_logger(__name__)

Solution = Union[Sequence[str], Mapping[Any, float]]


def _check_endpoints(
    path: Sequence[str], start: str, end: str, violations: List[str]
) -> None:
    if path[0] != start:
        violations.append(f"Path must start at {start} (starts at {path[0]}).")
    if path[-1] != end:
        violations.append(f"Path must end at {end} (ends at {path[-1]}).")


def _unknown_ids(scenario: Scenario, path: Sequence[str], violations: List[str]) -> bool:
    unknown = [node_id for node_id in dict.fromkeys(path) if node_id not in scenario.node_map]
    for node_id in unknown:
        violations.append(f"Unknown node '{node_id}'.")
    return bool(unknown)


def _geometric_cost(scenario: Scenario, path: Sequence[str]) -> float:
    nodes = scenario.node_map
    dist = scenario.distance
    cost = 0.0
    for u, v in zip(path, path[1:]):
        if u not in nodes or v not in nodes:
            return INF
        cost += dist(nodes[u], nodes[v])
    return cost


def evaluate_path(
    scenario: Scenario,
    path: Sequence[str],
    resolved: Optional[Sequence[ResolvedEdge]] = None,
    objective: Optional[Objective] = None,
    config: SolverConfig = DEFAULT_CONFIG,
) -> Evaluation:
    """Cost a shortest-path submission with resolved edge weights.

    A step without a matching edge is a violation and makes the cost ``INF``.
    """
    if not path:
        return Evaluation(INF, ("Path is empty.",))
    if resolved is None:
        resolved = resolve_edges(scenario, objective, config)

    violations: List[str] = []
    _unknown_ids(scenario, path, violations)
    _check_endpoints(path, scenario.start, scenario.end, violations)

    weights = weight_table(resolved)
    cost = 0.0
    for u, v in zip(path, path[1:]):
        weight = weights.get((u, v))
        if weight is None:
            violations.append(f"Edge {u}>{v} does not exist.")
            cost = INF
        else:
            cost += weight
    return Evaluation(cost, tuple(violations))


def evaluate_tour(scenario: Scenario, path: Sequence[str]) -> Evaluation:
    """Cost a closed-tour submission (TSP or order picking)."""
    if not path:
        return Evaluation(INF, ("Tour is empty.",))

    violations: List[str] = []
    _unknown_ids(scenario, path, violations)
    _check_endpoints(path, scenario.start, scenario.end, violations)

    visits = Counter(path[1:-1])
    if visits.get(scenario.start):
        violations.append(f"Tour revisits {scenario.start} before the end.")
    for node_id in scenario.visit_ids:
        count = visits.get(node_id, 0)
        if count == 0:
            violations.append(f"Node {node_id} not visited.")
        elif count > 1:
            violations.append(f"Node {node_id} visited {count} times.")
    return Evaluation(_geometric_cost(scenario, path), tuple(violations))


def evaluate_routing(
    scenario: Scenario,
    path: Sequence[str],
    config: SolverConfig = DEFAULT_CONFIG,
) -> Evaluation:
    """Cost a route-set submission given as one depot-delimited sequence."""
    if not path:
        return Evaluation(INF, ("Route is empty.",))

    depot = scenario.start
    capacity = scenario.capacity or config.default_vehicle_capacity
    violations: List[str] = []
    _unknown_ids(scenario, path, violations)
    _check_endpoints(path, depot, depot, violations)

    visits = Counter(node_id for node_id in path if node_id != depot)
    for node_id in scenario.visit_ids:
        count = visits.get(node_id, 0)
        if count == 0:
            violations.append(f"Customer {node_id} not served.")
        elif count > 1:
            violations.append(f"Customer {node_id} served {count} times.")

    segment: List[str] = []
    route_no = 0
    for node_id in [*path, depot]:
        if node_id != depot:
            segment.append(node_id)
            continue
        if segment:
            route_no += 1
            load = sum(
                scenario.demand_of(c, config.default_customer_demand)
                for c in segment
                if c in scenario.node_map
            )
            if load > capacity:
                violations.append(
                    f"Route {route_no} ({'-'.join(segment)}) load {load:g} "
                    f"exceeds capacity {capacity:g}."
                )
            segment = []
    return Evaluation(_geometric_cost(scenario, path), tuple(violations))


def evaluate_flow(
    instance: FlowInstance,
    shipments: Mapping[Any, float],
    config: SolverConfig = DEFAULT_CONFIG,
) -> Evaluation:
    """Cost a shipment plan and check it against the instance.

    ``shipments`` maps arc keys (``(u, v)`` or ``"u>v"``) to quantities.
    Net flow out of each supply must equal its supply, net flow into each
    demand must equal its demand, hubs must balance and respect their cap,
    and only allowed arcs within capacity may carry flow.
    """
    tol = config.flow_tolerance
    violations: List[str] = []
    outflow: Dict[str, float] = defaultdict(float)
    inflow: Dict[str, float] = defaultdict(float)
    cost = 0.0

    for raw_key, raw_quantity in shipments.items():
        try:
            key = parse_arc_key(raw_key)
        except ValueError as exc:
            violations.append(str(exc))
            continue
        quantity = float(raw_quantity or 0)
        label = arc_label(key)
        arc = instance.arc_map.get(key)
        if arc is None:
            if abs(quantity) > tol:
                violations.append(f"Arc {label} not allowed.")
            continue
        if quantity < -tol:
            violations.append(f"Arc {label}: negative quantity {quantity:g}.")
        if quantity > arc.capacity + tol:
            violations.append(
                f"Arc {label}: {quantity:g} exceeds capacity {arc.capacity:g}."
            )
        cost += quantity * arc.cost
        outflow[arc.source] += quantity
        inflow[arc.target] += quantity

    for supply in instance.supplies:
        sent = outflow[supply.id] - inflow[supply.id]
        if abs(sent - supply.quantity) > tol:
            violations.append(f"Supply {supply.id}: sent {sent:g} != {supply.quantity:g}")
    for demand in instance.demands:
        received = inflow[demand.id] - outflow[demand.id]
        if abs(received - demand.quantity) > tol:
            violations.append(
                f"Demand {demand.id}: recv {received:g} != {demand.quantity:g}"
            )
    for hub in instance.hubs:
        if abs(inflow[hub.id] - outflow[hub.id]) > tol:
            violations.append(
                f"Hub {hub.id}: inflow {inflow[hub.id]:g} != outflow {outflow[hub.id]:g}"
            )
        if hub.capacity is not None and inflow[hub.id] > hub.capacity + tol:
            violations.append(
                f"Hub {hub.id}: throughput {inflow[hub.id]:g} exceeds cap {hub.capacity:g}"
            )
    return Evaluation(cost, tuple(violations))


def evaluate(
    scenario: Scenario,
    solution: Solution,
    objective: Optional[Objective] = None,
    config: SolverConfig = DEFAULT_CONFIG,
    resolved: Optional[Sequence[ResolvedEdge]] = None,
) -> Evaluation:
    """Evaluate ``solution`` under the rules of the scenario's problem kind.

    Raises:
        ValueError: If the solution shape does not match the problem kind.
    """
    if scenario.kind.is_flow:
        if not isinstance(solution, Mapping):
            raise ValueError(
                f"{scenario.kind.name} solutions must map arc keys to quantities."
            )
    elif isinstance(solution, (Mapping, str)):
        raise ValueError(f"{scenario.kind.name} solutions must be node id sequences.")

    with solve_context(scenario.log_label):
        if scenario.kind.is_flow:
            assert scenario.flow is not None
            evaluation = evaluate_flow(scenario.flow, solution, config)
        else:
            path = list(solution)
            if scenario.kind == ProblemKind.SHORTEST_PATH:
                evaluation = evaluate_path(scenario, path, resolved, objective, config)
            elif scenario.kind == ProblemKind.ROUTING:
                evaluation = evaluate_routing(scenario, path, config)
            else:
                evaluation = evaluate_tour(scenario, path)

        LOGGER.debug(
            "Evaluated %s submission: cost=%s violations=%d",
            scenario.kind.name,
            evaluation.cost,
            len(evaluation.violations),
        )
    return evaluation
