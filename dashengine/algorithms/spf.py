"""Shortest-path-first (SPF) search.

Dijkstra over non-negative ``cost`` attributes of a ``StrictMultiDiGraph``.
Parallel edges contribute their cheapest member.

Notes:
    Tie-breaking: heap entries are ordered by (distance, push order) and
    relaxation only replaces a predecessor on a strictly shorter distance, so
    among equal-cost paths the one discovered first wins. No canonical path is
    promised between equal-cost alternatives.
"""

from __future__ import annotations

from heapq import heappop, heappush
from itertools import count
from typing import Dict, List, Optional, Tuple

from dashengine.graph.strict_multidigraph import NodeID, StrictMultiDiGraph
from dashengine.logging import get_logger
from dashengine.types.base import INF, Cost, SolveMethod
from dashengine.types.dto import OptimumResult

LOGGER = get_logger(__name__)

ALGORITHM = "dijkstra"


def spf(
    graph: StrictMultiDiGraph,
    src_node: NodeID,
    dst_node: Optional[NodeID] = None,
    cost_attr: str = "cost",
) -> Tuple[Dict[NodeID, Cost], Dict[NodeID, Optional[NodeID]]]:
    """Single-source Dijkstra with optional early termination.

    Args:
        graph: Directed graph with non-negative ``cost_attr`` on every edge.
        src_node: Source node.
        dst_node: If given, stop as soon as it is settled; the destination is
            not expanded.
        cost_attr: Edge attribute holding the weight.

    Returns:
        A tuple of (costs, pred): settled or tentative distances for every
        reached node, and each reached node's predecessor (None for the source).

    Raises:
        KeyError: If ``src_node`` is not in the graph.
    """
    adjacency = graph._adj  # type: ignore[attr-defined]
    if src_node not in adjacency:
        raise KeyError(f"Source node '{src_node}' is not in the graph.")

    costs: Dict[NodeID, Cost] = {src_node: 0.0}
    pred: Dict[NodeID, Optional[NodeID]] = {src_node: None}
    settled = set()
    push_order = count()
    min_pq: List[Tuple[Cost, int, NodeID]] = [(0.0, next(push_order), src_node)]

    while min_pq:
        current_cost, _, node_id = heappop(min_pq)
        if node_id in settled:
            continue
        settled.add(node_id)
        if node_id == dst_node:
            break

        for neighbor_id, edges_map in adjacency[node_id].items():
            if neighbor_id in settled:
                continue
            edge_cost = min(attr[cost_attr] for attr in edges_map.values())
            new_cost = current_cost + edge_cost
            if neighbor_id not in costs or new_cost < costs[neighbor_id]:
                costs[neighbor_id] = new_cost
                pred[neighbor_id] = node_id
                heappush(min_pq, (new_cost, next(push_order), neighbor_id))

    return costs, pred


def resolve_path(
    pred: Dict[NodeID, Optional[NodeID]], dst_node: NodeID
) -> List[NodeID]:
    """Walk predecessors back from ``dst_node``; empty if it was never reached."""
    if dst_node not in pred:
        return []
    path = [dst_node]
    while pred[path[-1]] is not None:
        path.append(pred[path[-1]])
    path.reverse()
    return path


def shortest_path(
    graph: StrictMultiDiGraph, src_node: str, dst_node: str
) -> OptimumResult:
    """Cheapest ``src_node`` -> ``dst_node`` path as an ``OptimumResult``.

    An unreachable destination yields ``cost=INF``, an empty path and
    ``feasible=False``.

    Raises:
        ValueError: If either endpoint is not in the graph.
    """
    for role, node in (("Start", src_node), ("End", dst_node)):
        if node not in graph:
            raise ValueError(f"{role} node '{node}' is not in the graph.")

    costs, pred = spf(graph, src_node, dst_node)
    if dst_node not in costs:
        LOGGER.warning("Node '%s' is unreachable from '%s'", dst_node, src_node)
        return OptimumResult(
            cost=INF,
            feasible=False,
            method=SolveMethod.EXACT,
            algorithm=ALGORITHM,
            reason=f"Node '{dst_node}' is unreachable from '{src_node}'.",
        )

    path = resolve_path(pred, dst_node)
    LOGGER.debug("Shortest path %s cost %s", "->".join(path), costs[dst_node])
    return OptimumResult(
        cost=costs[dst_node],
        path=tuple(path),
        method=SolveMethod.EXACT,
        algorithm=ALGORITHM,
    )
