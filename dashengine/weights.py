"""Weighted-graph resolver.

Turns raw edge data (a bare scalar or a ``{time, cost, co2}`` metric vector)
into the single effective weight the shortest-path solver and evaluator use:

1. complete the metric vector, deriving missing metrics from a reference
   metric with fixed per-mode conversion factors;
2. select one metric, or blend two with ``alpha``;
3. multiply by every scenario modifier (rounded to one decimal);
4. floor at ``config.weight_epsilon`` so weights stay strictly positive.

Derived metrics are an approximation of what a real lane would cost; the
derivation is logged at DEBUG so it is never mistaken for input data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from dashengine.config import DEFAULT_CONFIG, SolverConfig
from dashengine.graph.strict_multidigraph import StrictMultiDiGraph
from dashengine.logging import get_logger
from dashengine.model.scenario import Edge, MetricVector, Modifier, Objective, Scenario
from dashengine.types.base import METRICS, ArcKey

LOGGER = get_logger(__name__)

#: Per unit of distance: (time, cost, co2) for each transport mode.
MODE_FACTORS: Dict[str, Tuple[float, float, float]] = {
    "truck": (1.0, 85.0, 1.2),
    "rail": (0.85, 60.0, 0.7),
    "air": (0.4, 140.0, 2.1),
}

#: Factors for modes without an entry in ``MODE_FACTORS``.
DEFAULT_FACTORS: Tuple[float, float, float] = (1.0, 90.0, 1.0)

#: Smallest value a derived metric may take.
METRIC_FLOORS: Dict[str, float] = {"time": 2, "cost": 50, "co2": 5}

def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def mode_factors(mode: str) -> Tuple[float, float, float]:
    return MODE_FACTORS.get(mode, DEFAULT_FACTORS)


def metrics_from_distance(distance: float, mode: str) -> MetricVector:
    """Classroom metric vector for a lane of ``distance`` units.

    Each metric is the distance times the mode factor, rounded half up and
    floored at ``METRIC_FLOORS``.
    """
    factors = mode_factors(mode)
    values = {
        name: max(METRIC_FLOORS[name], _round_half_up(distance * factor))
        for name, factor in zip(METRICS, factors)
    }
    return MetricVector(**values)


def edge_metrics(edge: Edge, base_metric: str = "time") -> MetricVector:
    """Return a complete metric vector for ``edge``.

    A bare scalar weight is read as ``base_metric``. For a vector, the
    reference metric is ``base_metric`` when present, else the first present
    metric. Missing metrics are derived from the reference value through the
    edge mode's conversion factors; present metrics are kept as given.

    Raises:
        ValueError: If a metric vector carries no values at all.
    """
    if isinstance(edge.weight, MetricVector):
        present = edge.weight.present()
        if len(present) == len(METRICS):
            return edge.weight
        if not present:
            raise ValueError(f"Edge {edge.source}>{edge.target} has an empty metric vector.")
        reference = base_metric if base_metric in present else present[0]
        known = {name: edge.weight.get(name) for name in present}
    else:
        reference = base_metric
        known = {base_metric: float(edge.weight)}

    factor = mode_factors(edge.mode)[METRICS.index(reference)]
    derived = metrics_from_distance(known[reference] / factor, edge.mode)
    LOGGER.debug(
        "Derived metrics for %s>%s (%s) from %s=%s: %s",
        edge.source,
        edge.target,
        edge.mode,
        reference,
        known[reference],
        derived,
    )
    return MetricVector(
        **{name: known.get(name, derived.get(name)) for name in METRICS}
    )


def effective_weight(
    edge: Edge,
    objective: Objective,
    base_metric: str = "time",
    modifiers: Sequence[Modifier] = (),
    config: SolverConfig = DEFAULT_CONFIG,
) -> float:
    """Single strictly positive weight of ``edge`` under ``objective``.

    Raises:
        ValueError: If a modifier returns a non-finite or negative factor.
    """
    metrics = edge_metrics(edge, base_metric)
    if objective.kind == "single":
        weight = float(metrics.get(objective.metric_a))
    else:
        assert objective.metric_b is not None
        weight = objective.alpha * metrics.get(objective.metric_a) + (
            1 - objective.alpha
        ) * metrics.get(objective.metric_b)

    if modifiers:
        factor = 1.0
        for modifier in modifiers:
            value = modifier.factor(edge)
            if not math.isfinite(value) or value < 0:
                raise ValueError(
                    f"Modifier '{modifier.id}' returned invalid factor {value!r} "
                    f"for edge {edge.source}>{edge.target}"
                )
            factor *= value
        weight = _round_half_up(weight * factor * 10) / 10

    return max(config.weight_epsilon, weight)


@dataclass(frozen=True)
class ResolvedEdge:
    """Edge after objective selection and modifiers; solvers see only these."""

    source: str
    target: str
    weight: float
    mode: str = "truck"


def resolve_edges(
    scenario: Scenario,
    objective: Optional[Objective] = None,
    config: SolverConfig = DEFAULT_CONFIG,
) -> Tuple[ResolvedEdge, ...]:
    """Resolve every scenario edge under ``objective`` (default: the scenario's)."""
    objective = objective or scenario.objective
    resolved = tuple(
        ResolvedEdge(
            edge.source,
            edge.target,
            effective_weight(
                edge, objective, scenario.base_metric, scenario.modifiers, config
            ),
            edge.mode,
        )
        for edge in scenario.edges
    )
    LOGGER.debug(
        "Resolved %d edges of scenario '%s' under objective %s",
        len(resolved),
        scenario.scenario_id,
        objective.describe(),
    )
    return resolved


def build_graph(
    node_ids: Iterable[str], edges: Iterable[ResolvedEdge]
) -> StrictMultiDiGraph:
    """Build a graph whose edges carry the resolved weight as ``cost``."""
    graph = StrictMultiDiGraph()
    for node_id in node_ids:
        graph.add_node(node_id)
    for edge in edges:
        graph.add_edge(edge.source, edge.target, cost=edge.weight, mode=edge.mode)
    return graph


def weight_table(edges: Iterable[ResolvedEdge]) -> Dict[ArcKey, float]:
    """Cheapest resolved weight per ordered node pair."""
    table: Dict[ArcKey, float] = {}
    for edge in edges:
        key = (edge.source, edge.target)
        if key not in table or edge.weight < table[key]:
            table[key] = edge.weight
    return table
