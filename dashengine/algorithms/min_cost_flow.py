"""Minimum-cost flow by successive shortest augmenting paths.

The residual network is a ``StrictMultiDiGraph``:

- a super-source ``__SS__`` with an edge to each supply (capacity = supply);
- an edge from each demand to a super-sink ``__TT__`` (capacity = demand);
- one edge per allowed arc (per-unit cost, capacity default unbounded);
- a hub with a throughput cap is split into its inbound node and an
  outbound node joined by an edge of that capacity;
- every edge is paired with a reverse residual edge of zero capacity and
  negated cost (``reverse`` attribute holds the partner's key).

Each iteration runs Dijkstra on reduced costs ``cost + pi(u) - pi(v)``. Arc
costs are non-negative, so zero potentials are valid at the start, and adding
each round's distances to the potentials keeps reduced costs non-negative on
every residual edge afterwards.
"""

from __future__ import annotations

from heapq import heappop, heappush
from itertools import count
from typing import Dict, Hashable, List, Optional, Tuple

from dashengine.config import DEFAULT_CONFIG, SolverConfig
from dashengine.graph.strict_multidigraph import EdgeID, NodeID, StrictMultiDiGraph
from dashengine.logging import get_logger
from dashengine.model.flow import FlowInstance
from dashengine.types.base import INF, ArcKey, SolveMethod
from dashengine.types.dto import OptimumResult

LOGGER = get_logger(__name__)

ALGORITHM = "successive_shortest_path"

SUPER_SOURCE = "__SS__"
SUPER_SINK = "__TT__"


def hub_outlet(hub_id: str) -> Tuple[str, str]:
    """Residual node carrying a capped hub's outbound arcs."""
    return (hub_id, "out")


def _add_residual_pair(
    graph: StrictMultiDiGraph,
    u: NodeID,
    v: NodeID,
    capacity: float,
    cost: float,
    arc: Optional[ArcKey] = None,
) -> EdgeID:
    forward = graph.add_edge(
        u, v, capacity=capacity, cost=cost, flow=0.0, arc=arc, forward=True
    )
    backward = graph.add_edge(
        v, u, capacity=0.0, cost=-cost, flow=0.0, arc=None, forward=False
    )
    graph.get_edge_attr(forward)["reverse"] = backward
    graph.get_edge_attr(backward)["reverse"] = forward
    return forward


def build_residual_network(
    instance: FlowInstance,
) -> Tuple[StrictMultiDiGraph, Dict[ArcKey, EdgeID]]:
    """Residual graph for ``instance`` and the forward edge key of each arc."""
    graph = StrictMultiDiGraph()
    graph.add_node(SUPER_SOURCE)
    graph.add_node(SUPER_SINK)
    for entity in (*instance.supplies, *instance.hubs, *instance.demands):
        graph.add_node(entity.id)

    outlets: Dict[str, Hashable] = {}
    for hub in instance.hubs:
        if hub.capacity is not None:
            outlet = hub_outlet(hub.id)
            graph.add_node(outlet)
            _add_residual_pair(graph, hub.id, outlet, hub.capacity, 0.0)
            outlets[hub.id] = outlet

    arc_edges: Dict[ArcKey, EdgeID] = {}
    for arc in instance.arcs:
        tail = outlets.get(arc.source, arc.source)
        arc_edges[arc.key] = _add_residual_pair(
            graph, tail, arc.target, arc.capacity, arc.cost, arc.key
        )

    for supply in instance.supplies:
        _add_residual_pair(graph, SUPER_SOURCE, supply.id, supply.quantity, 0.0)
    for demand in instance.demands:
        _add_residual_pair(graph, demand.id, SUPER_SINK, demand.quantity, 0.0)

    return graph, arc_edges


def _reduced_cost_spf(
    graph: StrictMultiDiGraph,
    potentials: Dict[NodeID, float],
    src_node: NodeID,
    min_cap: float,
) -> Tuple[Dict[NodeID, float], Dict[NodeID, EdgeID]]:
    """Dijkstra over residual edges with capacity above ``min_cap``."""
    adjacency = graph._adj  # type: ignore[attr-defined]
    dist: Dict[NodeID, float] = {src_node: 0.0}
    pred_edge: Dict[NodeID, EdgeID] = {}
    push_order = count()
    min_pq: List[Tuple[float, int, NodeID]] = [(0.0, next(push_order), src_node)]

    while min_pq:
        current, _, node_id = heappop(min_pq)
        if current > dist[node_id]:
            continue
        pi_u = potentials[node_id]
        for neighbor_id, edges_map in adjacency[node_id].items():
            pi_v = potentials[neighbor_id]
            for e_id, attr in edges_map.items():
                if attr["capacity"] <= min_cap:
                    continue
                new_dist = current + attr["cost"] + pi_u - pi_v
                if neighbor_id not in dist or new_dist < dist[neighbor_id]:
                    dist[neighbor_id] = new_dist
                    pred_edge[neighbor_id] = e_id
                    heappush(min_pq, (new_dist, next(push_order), neighbor_id))

    return dist, pred_edge


def successive_shortest_paths(
    graph: StrictMultiDiGraph,
    src_node: NodeID,
    dst_node: NodeID,
    required: float,
    min_cap: float = DEFAULT_CONFIG.flow_tolerance,
) -> float:
    """Push up to ``required`` units from ``src_node`` to ``dst_node`` at least cost.

    Mutates residual ``capacity`` and forward-edge ``flow`` attributes in place.

    Returns:
        The amount of flow actually routed.
    """
    potentials: Dict[NodeID, float] = {node: 0.0 for node in graph.nodes}
    edges = graph.get_edges()
    routed = 0.0
    iterations = 0

    while required - routed > min_cap:
        dist, pred_edge = _reduced_cost_spf(graph, potentials, src_node, min_cap)
        if dst_node not in dist:
            break
        for node, d in dist.items():
            potentials[node] += d

        path: List[EdgeID] = []
        node = dst_node
        while node != src_node:
            e_id = pred_edge[node]
            path.append(e_id)
            node = edges[e_id][0]

        push = min(required - routed, min(edges[e_id][3]["capacity"] for e_id in path))
        for e_id in path:
            attr = edges[e_id][3]
            partner = edges[attr["reverse"]][3]
            attr["capacity"] -= push
            partner["capacity"] += push
            if attr["forward"]:
                attr["flow"] += push
            else:
                partner["flow"] -= push
        routed += push
        iterations += 1

    LOGGER.debug("Successive shortest paths: %d augmentations, routed %s", iterations, routed)
    return routed


def min_cost_flow(
    instance: FlowInstance, config: SolverConfig = DEFAULT_CONFIG
) -> OptimumResult:
    """Cheapest plan shipping every supply to every demand over allowed arcs.

    Unbalanced instances are reported infeasible before any augmentation.
    """
    total_supply = instance.total_supply
    total_demand = instance.total_demand
    if abs(total_supply - total_demand) > config.flow_tolerance:
        reason = f"Unbalanced: supply={total_supply:g} != demand={total_demand:g}"
        LOGGER.warning(reason)
        return OptimumResult.infeasible(reason, SolveMethod.EXACT, ALGORITHM)

    graph, arc_edges = build_residual_network(instance)
    routed = successive_shortest_paths(
        graph, SUPER_SOURCE, SUPER_SINK, total_demand, config.flow_tolerance
    )

    flows: Dict[ArcKey, float] = {}
    cost = 0.0
    for arc in instance.arcs:
        quantity = graph.get_edge_attr(arc_edges[arc.key])["flow"]
        if quantity > config.flow_tolerance:
            flows[arc.key] = quantity
            cost += quantity * arc.cost

    if total_demand - routed > config.flow_tolerance:
        reason = f"Could not push all demand: routed {routed:g} of {total_demand:g}"
        LOGGER.warning(reason)
        return OptimumResult(
            cost=INF,
            flows=flows,
            feasible=False,
            method=SolveMethod.EXACT,
            algorithm=ALGORITHM,
            reason=reason,
        )

    LOGGER.debug("Min-cost flow cost=%s over %d arcs", cost, len(flows))
    return OptimumResult(
        cost=cost, flows=flows, method=SolveMethod.EXACT, algorithm=ALGORITHM
    )
