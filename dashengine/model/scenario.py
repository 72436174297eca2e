"""Scenario model: nodes, edges, objectives, modifiers and the scenario itself.

A ``Scenario`` is built once per round by the surrounding application and is
treated as an immutable input by every solver. Construction validates the
structure (ids, coordinates, endpoints) and raises ``ValueError`` on malformed
input; structural infeasibility such as an unreachable target is left to the
solvers, which report it as data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from dashengine.geometry import DistanceFn, distance_function, validate_coordinates
from dashengine.model.flow import FlowInstance
from dashengine.types.base import METRICS, ProblemKind


def _check_metric(name: str, what: str = "metric") -> str:
    if name not in METRICS:
        raise ValueError(
            f"Unknown {what} '{name}'. Valid metrics are: {', '.join(METRICS)}"
        )
    return name


def _check_quantity(value: Any, what: str) -> None:
    """Reject booleans, non-numbers, NaN, infinities and negatives."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{what} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{what} must be finite and non-negative, got {value}")


@dataclass(frozen=True)
class Node:
    """Point in the plane.

    Attributes:
        id: Unique identifier within a scenario.
        x: Horizontal coordinate.
        y: Vertical coordinate.
        label: Optional display label.
        demand: Quantity a routing customer requires (routing only).
    """

    id: str
    x: float
    y: float
    label: Optional[str] = None
    demand: Optional[float] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError(f"Node id must be a non-empty string, got {self.id!r}")
        validate_coordinates(self.x, self.y, self.id)
        if self.demand is not None:
            _check_quantity(self.demand, f"Node '{self.id}' demand")


@dataclass(frozen=True)
class MetricVector:
    """Per-edge measurements; any entry may be missing."""

    time: Optional[float] = None
    cost: Optional[float] = None
    co2: Optional[float] = None

    def __post_init__(self) -> None:
        for name in METRICS:
            value = getattr(self, name)
            if value is not None:
                _check_quantity(value, f"Metric '{name}'")

    def get(self, name: str) -> Optional[float]:
        return getattr(self, _check_metric(name))

    def present(self) -> Tuple[str, ...]:
        """Names of the metrics that carry a value, in canonical order."""
        return tuple(name for name in METRICS if getattr(self, name) is not None)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "MetricVector":
        unknown = set(values) - set(METRICS)
        if unknown:
            raise ValueError(f"Unknown metric(s) {sorted(unknown)} in edge weights")
        return cls(
            **{k: None if v is None else float(v) for k, v in values.items()}
        )


#: Edge weight: a bare scalar or a metric vector.
EdgeWeight = Union[float, MetricVector]

#: Pictogram mode tags used by round payloads.
MODE_ALIASES: Dict[str, str] = {"🚚": "truck", "🚂": "rail", "✈️": "air", "✈": "air"}


@dataclass(frozen=True)
class Edge:
    """Directed edge of a shortest-path scenario.

    Attributes:
        source: Tail node id.
        target: Head node id.
        weight: Scalar weight or metric vector.
        mode: Transport mode tag (``truck``, ``rail``, ``air`` or any label).
    """

    source: str
    target: str
    weight: EdgeWeight
    mode: str = "truck"

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", MODE_ALIASES.get(self.mode, self.mode))
        if isinstance(self.weight, MetricVector):
            return
        if isinstance(self.weight, bool) or not isinstance(self.weight, (int, float)):
            raise ValueError(
                f"Edge {self.source}>{self.target} weight must be a number or "
                f"MetricVector, got {self.weight!r}"
            )
        if not math.isfinite(self.weight) or self.weight < 0:
            raise ValueError(
                f"Edge {self.source}>{self.target} weight must be finite and "
                f"non-negative, got {self.weight}"
            )


@dataclass(frozen=True)
class Objective:
    """Round-level objective: one metric, or two blended by ``alpha``.

    The effective weight of a dual objective is
    ``alpha * metric_a + (1 - alpha) * metric_b``.
    """

    kind: str = "single"
    metric_a: str = "time"
    metric_b: Optional[str] = None
    alpha: float = 1.0

    def __post_init__(self) -> None:
        if self.kind not in ("single", "dual"):
            raise ValueError(f"Objective kind must be 'single' or 'dual', got '{self.kind}'")
        _check_metric(self.metric_a)
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"Objective alpha must lie in [0, 1], got {self.alpha}")
        if self.kind == "dual":
            if self.metric_b is None:
                raise ValueError("Dual objective requires a second metric.")
            _check_metric(self.metric_b)
            if self.metric_b == self.metric_a:
                raise ValueError("Dual objective metrics must differ.")

    @classmethod
    def single(cls, metric: str = "time") -> "Objective":
        return cls("single", metric)

    @classmethod
    def dual(cls, metric_a: str, metric_b: str, alpha: float = 0.5) -> "Objective":
        return cls("dual", metric_a, metric_b, alpha)

    @classmethod
    def from_dict(
        cls, payload: Mapping[str, Any], default_metric: str = "time"
    ) -> "Objective":
        """Read ``objectiveMode``/``objA``/``objB``/``alpha`` round settings.

        A dual objective without ``objB`` pairs time with cost and anything
        else with CO2.
        """
        mode = str(payload.get("objectiveMode") or "single").lower()
        metric_a = str(payload.get("objA") or payload.get("metric_a") or default_metric).lower()
        if mode == "single":
            return cls.single(metric_a)
        if mode != "dual":
            raise ValueError(f"Objective mode must be 'single' or 'dual', got '{mode}'")
        metric_b = payload.get("objB") or payload.get("metric_b")
        if not metric_b:
            metric_b = "cost" if metric_a == "time" else "co2"
        alpha = payload.get("alpha")
        return cls.dual(metric_a, str(metric_b).lower(), 0.5 if alpha is None else float(alpha))

    def describe(self) -> str:
        if self.kind == "single":
            return self.metric_a
        return f"{self.alpha:g}*{self.metric_a}+{1 - self.alpha:g}*{self.metric_b}"


@dataclass(frozen=True)
class Modifier:
    """Scenario-wide multiplicative adjustment (congestion, promotions, ...).

    ``factor`` receives an edge and returns the multiplier applied to its
    effective weight; ``1.0`` leaves the edge unchanged.
    """

    id: str
    label: str
    factor: Callable[[Edge], float]

    @classmethod
    def uniform(cls, id: str, multiplier: float, label: str = "") -> "Modifier":
        return cls(id, label or id, lambda edge: multiplier)

    @classmethod
    def for_mode(cls, id: str, mode: str, multiplier: float, label: str = "") -> "Modifier":
        return cls(id, label or id, lambda edge: multiplier if edge.mode == mode else 1.0)

    @classmethod
    def for_arc(
        cls, id: str, source: str, target: str, multiplier: float, label: str = ""
    ) -> "Modifier":
        return cls(
            id,
            label or id,
            lambda edge: multiplier
            if (edge.source, edge.target) == (source, target)
            else 1.0,
        )

    @classmethod
    def for_sources(
        cls, id: str, sources: Iterable[str], multiplier: float, label: str = ""
    ) -> "Modifier":
        members = frozenset(sources)
        return cls(id, label or id, lambda edge: multiplier if edge.source in members else 1.0)


@dataclass(frozen=True, eq=False)
class Scenario:
    """Immutable problem instance for one round.

    Scenarios compare and hash by identity so they can key result caches.

    Attributes:
        kind: Which problem the scenario poses.
        nodes: Node set (empty for flow problems).
        edges: Explicit edges (shortest path only; tours use the implicit
            complete graph).
        start: Start node; the depot for tours and routing.
        end: Target node; equals ``start`` for closed-tour kinds.
        objective: Default round objective for shortest-path weights.
        base_metric: Metric a bare scalar edge weight is expressed in.
        modifiers: Multiplicative weight modifiers (shortest path only).
        capacity: Vehicle capacity (routing only).
        flow: Supply/demand instance (flow kinds only).
        scenario_id: Caller-defined identifier.
        title: Display title.
    """

    kind: ProblemKind
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    start: Optional[str] = None
    end: Optional[str] = None
    objective: Objective = field(default_factory=Objective)
    base_metric: str = "time"
    modifiers: Tuple[Modifier, ...] = ()
    capacity: Optional[float] = None
    flow: Optional[FlowInstance] = None
    scenario_id: str = ""
    title: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        object.__setattr__(self, "modifiers", tuple(self.modifiers))
        _check_metric(self.base_metric, "base metric")

        if self.kind.is_flow:
            self._validate_flow()
            return

        if not self.nodes:
            raise ValueError(f"{self.kind.name} scenario requires at least one node.")
        seen: set = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id '{node.id}'.")
            seen.add(node.id)

        if self.start is None:
            raise ValueError(f"{self.kind.name} scenario requires a start node.")
        if self.start not in seen:
            raise ValueError(f"Start node '{self.start}' not found in scenario nodes.")

        if self.kind.is_closed_tour:
            if self.end is None:
                object.__setattr__(self, "end", self.start)
            elif self.end != self.start:
                raise ValueError(
                    f"{self.kind.name} scenario must end where it starts "
                    f"('{self.end}' != '{self.start}')."
                )
        else:
            if self.end is None:
                raise ValueError("SHORTEST_PATH scenario requires an end node.")
            if self.end not in seen:
                raise ValueError(f"End node '{self.end}' not found in scenario nodes.")

        for edge in self.edges:
            if edge.source not in seen:
                raise ValueError(f"Edge source '{edge.source}' not found in scenario nodes.")
            if edge.target not in seen:
                raise ValueError(f"Edge target '{edge.target}' not found in scenario nodes.")

        if self.capacity is not None and not (
            math.isfinite(self.capacity) and self.capacity > 0
        ):
            raise ValueError(
                f"Vehicle capacity must be finite and positive, got {self.capacity}"
            )

    def _validate_flow(self) -> None:
        if self.flow is None:
            raise ValueError(f"{self.kind.name} scenario requires a flow instance.")
        if self.kind == ProblemKind.TRANSPORTATION and self.flow.hubs:
            raise ValueError("TRANSPORTATION scenario cannot have hubs; use TRANSSHIPMENT.")

    @cached_property
    def node_map(self) -> Dict[str, Node]:
        return {node.id: node for node in self.nodes}

    @property
    def distance(self) -> DistanceFn:
        """Metric of the implicit complete graph for tour kinds."""
        return distance_function(self.kind)

    @property
    def log_label(self) -> str:
        """Round id, or the kind name for unnamed scenarios."""
        return self.scenario_id or self.kind.name.lower()

    @property
    def visit_ids(self) -> Tuple[str, ...]:
        """Nodes a closed tour must visit besides the start, in scenario order."""
        return tuple(node.id for node in self.nodes if node.id != self.start)

    def demand_of(self, node_id: str, default: float = 1) -> float:
        node = self.node_map[node_id]
        return default if node.demand is None else node.demand

    @classmethod
    def from_dict(
        cls,
        payload: Mapping[str, Any],
        modifiers: Sequence[Modifier] = (),
    ) -> "Scenario":
        """Build a scenario from the plain payload of a round.

        Recognized keys: ``kind`` or ``gameMode``; ``nodes``
        (``[{id, x, y, label, demand}]``); ``edges`` as ``[u, v, weight, mode]``
        rows or ``{source, target, weight | metrics, mode}`` mappings where a
        weight is a number or a ``{time, cost, co2}`` mapping; ``start``,
        ``end``; ``objective`` (base metric name); ``objectiveMode``,
        ``objA``, ``objB``, ``alpha``; ``capacity``; ``demand``
        (``{node_id: quantity}``); and the flow tables understood by
        :meth:`FlowInstance.from_dict`. Modifiers carry callables and are
        passed separately.
        """
        raw_kind = payload.get("kind", payload.get("gameMode"))
        if raw_kind is None:
            raise ValueError("Scenario payload requires 'kind' or 'gameMode'.")
        kind = raw_kind if isinstance(raw_kind, ProblemKind) else ProblemKind.from_string(str(raw_kind))
        base_metric = str(payload.get("objective") or payload.get("base_metric") or "time").lower()

        demand_table = payload.get("demand") or {}
        nodes = []
        for row in payload.get("nodes") or ():
            node_id = str(row["id"])
            demand = row.get("demand", demand_table.get(node_id))
            nodes.append(
                Node(
                    id=node_id,
                    x=row["x"],
                    y=row["y"],
                    label=row.get("label"),
                    demand=None if demand is None else float(demand),
                )
            )

        capacity = payload.get("capacity")
        return cls(
            kind=kind,
            nodes=tuple(nodes),
            edges=tuple(_edge_from_payload(row) for row in payload.get("edges") or ()),
            start=payload.get("start"),
            end=payload.get("end"),
            objective=Objective.from_dict(payload, default_metric=base_metric),
            base_metric=base_metric,
            modifiers=tuple(modifiers),
            capacity=None if capacity is None else float(capacity),
            flow=FlowInstance.from_dict(payload) if kind.is_flow else None,
            scenario_id=str(payload.get("id", "")),
            title=str(payload.get("title", "")),
        )


def _weight_from_payload(raw: Any) -> EdgeWeight:
    if isinstance(raw, MetricVector):
        return raw
    if isinstance(raw, Mapping):
        return MetricVector.from_mapping(raw)
    return float(raw)


def _edge_from_payload(row: Any) -> Edge:
    if isinstance(row, Edge):
        return row
    if isinstance(row, Mapping):
        raw = row.get("weight", row.get("metrics"))
        return Edge(
            source=str(row.get("source", row.get("u"))),
            target=str(row.get("target", row.get("v"))),
            weight=_weight_from_payload(raw),
            mode=str(row.get("mode") or "truck"),
        )
    source, target, raw, *rest = row
    mode = rest[0] if rest and rest[0] else "truck"
    return Edge(str(source), str(target), _weight_from_payload(raw), str(mode))
