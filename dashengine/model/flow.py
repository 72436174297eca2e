"""Transportation and transshipment instances.

A ``FlowInstance`` lists supply entities, demand entities, optional hubs and
the arcs learners may ship along. Construction validates identifiers and
signs; supply/demand balance is deliberately *not* enforced here because an
unbalanced instance is a teaching outcome the solver reports, not an input
error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from dashengine.types.base import INF, ArcKey


def parse_arc_key(key: Any) -> ArcKey:
    """Normalize an arc key given as ``(u, v)`` or ``"u>v"``.

    Raises:
        ValueError: If the key has neither shape.
    """
    if isinstance(key, str):
        parts = key.split(">")
        if len(parts) == 2 and all(parts):
            return parts[0].strip(), parts[1].strip()
    elif isinstance(key, tuple) and len(key) == 2:
        return str(key[0]), str(key[1])
    raise ValueError(f"Invalid arc key {key!r}; expected ('u', 'v') or 'u>v'.")


def _check_quantity(kind: str, entity_id: str, quantity: float) -> None:
    if not isinstance(quantity, (int, float)) or math.isnan(quantity):
        raise ValueError(f"{kind} '{entity_id}' has non-numeric quantity {quantity!r}")
    if quantity < 0:
        raise ValueError(f"{kind} '{entity_id}' has negative quantity {quantity}")


@dataclass(frozen=True)
class Supply:
    id: str
    quantity: float

    def __post_init__(self) -> None:
        _check_quantity("Supply", self.id, self.quantity)


@dataclass(frozen=True)
class Demand:
    id: str
    quantity: float

    def __post_init__(self) -> None:
        _check_quantity("Demand", self.id, self.quantity)


@dataclass(frozen=True)
class Hub:
    """Transshipment node; ``capacity`` caps total throughput when set."""

    id: str
    capacity: Optional[float] = None

    def __post_init__(self) -> None:
        if self.capacity is not None:
            _check_quantity("Hub", self.id, self.capacity)


@dataclass(frozen=True)
class Arc:
    """Allowed shipping lane with a per-unit cost and optional capacity."""

    source: str
    target: str
    cost: float
    capacity: float = INF

    def __post_init__(self) -> None:
        if not isinstance(self.cost, (int, float)) or not math.isfinite(self.cost):
            raise ValueError(
                f"Arc {self.source}>{self.target} has invalid cost {self.cost!r}"
            )
        if self.cost < 0:
            raise ValueError(
                f"Arc {self.source}>{self.target} has negative cost {self.cost}"
            )
        if self.capacity < 0:
            raise ValueError(
                f"Arc {self.source}>{self.target} has negative capacity {self.capacity}"
            )

    @property
    def key(self) -> ArcKey:
        return self.source, self.target


@dataclass(frozen=True)
class FlowInstance:
    """Supply, demand and hub entities plus the arcs allowed between them.

    Attributes:
        supplies: Supply entities with the quantity each must ship.
        demands: Demand entities with the quantity each must receive.
        hubs: Optional transshipment hubs.
        arcs: Allowed arcs; at most one arc per ordered pair.
    """

    supplies: Tuple[Supply, ...]
    demands: Tuple[Demand, ...]
    hubs: Tuple[Hub, ...] = ()
    arcs: Tuple[Arc, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "supplies", tuple(self.supplies))
        object.__setattr__(self, "demands", tuple(self.demands))
        object.__setattr__(self, "hubs", tuple(self.hubs))
        object.__setattr__(self, "arcs", tuple(self.arcs))

        seen: set = set()
        for entity in (*self.supplies, *self.demands, *self.hubs):
            if not entity.id:
                raise ValueError("Flow entities must have a non-empty id.")
            if entity.id in seen:
                raise ValueError(f"Duplicate flow entity id '{entity.id}'.")
            seen.add(entity.id)

        arc_keys: set = set()
        for arc in self.arcs:
            if arc.source not in seen:
                raise ValueError(f"Arc {arc.source}>{arc.target}: unknown source '{arc.source}'.")
            if arc.target not in seen:
                raise ValueError(f"Arc {arc.source}>{arc.target}: unknown target '{arc.target}'.")
            if arc.source == arc.target:
                raise ValueError(f"Arc {arc.source}>{arc.target} is a self-loop.")
            if arc.key in arc_keys:
                raise ValueError(f"Duplicate arc {arc.source}>{arc.target}.")
            arc_keys.add(arc.key)

    @property
    def total_supply(self) -> float:
        return sum(s.quantity for s in self.supplies)

    @property
    def total_demand(self) -> float:
        return sum(d.quantity for d in self.demands)

    @cached_property
    def arc_map(self) -> Dict[ArcKey, Arc]:
        return {arc.key: arc for arc in self.arcs}

    @cached_property
    def supply_map(self) -> Dict[str, float]:
        return {s.id: s.quantity for s in self.supplies}

    @cached_property
    def demand_map(self) -> Dict[str, float]:
        return {d.id: d.quantity for d in self.demands}

    @cached_property
    def hub_map(self) -> Dict[str, Hub]:
        return {h.id: h for h in self.hubs}

    @classmethod
    def transportation(
        cls,
        supplies: Mapping[str, float],
        demands: Mapping[str, float],
        cost_table: Mapping[Any, float],
    ) -> "FlowInstance":
        """Build a bipartite instance from a ``{(s, d): cost}`` table.

        Pairs missing from ``cost_table`` (or mapped to ``None``) are not
        allowed arcs. Keys may be tuples or ``"s>d"`` strings.
        """
        table = {
            parse_arc_key(k): c for k, c in cost_table.items() if c is not None
        }
        arcs = [
            Arc(s, d, float(table[(s, d)]))
            for s in supplies
            for d in demands
            if (s, d) in table
        ]
        return cls(
            supplies=tuple(Supply(s, float(q)) for s, q in supplies.items()),
            demands=tuple(Demand(d, float(q)) for d, q in demands.items()),
            arcs=tuple(arcs),
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "FlowInstance":
        """Build an instance from a round payload.

        Understands ``supplies`` (``[{id, supply}]``), ``demands``
        (``[{id, demand}]``), ``hubs`` (``[{id, cap}]``) and either ``arcs``
        (``[{u, v, cost, cap}]``) or a transportation ``cost`` table keyed by
        ``"s>d"``.
        """
        supplies = {
            str(s["id"]): float(s.get("supply", s.get("quantity", 0)) or 0)
            for s in payload.get("supplies") or ()
        }
        demands = {
            str(d["id"]): float(d.get("demand", d.get("quantity", 0)) or 0)
            for d in payload.get("demands") or ()
        }
        if payload.get("arcs") is None and payload.get("cost") is not None:
            return cls.transportation(supplies, demands, payload["cost"])

        hubs = tuple(
            Hub(str(h["id"]), _optional_float(h.get("cap", h.get("capacity"))))
            for h in payload.get("hubs") or ()
        )
        return cls(
            supplies=tuple(Supply(k, q) for k, q in supplies.items()),
            demands=tuple(Demand(k, q) for k, q in demands.items()),
            hubs=hubs,
            arcs=tuple(_arcs_from_payload(payload.get("arcs") or ())),
        )


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _arcs_from_payload(rows: Iterable[Mapping[str, Any]]) -> Iterable[Arc]:
    for row in rows:
        cap = _optional_float(row.get("cap", row.get("capacity")))
        yield Arc(
            source=str(row.get("u", row.get("source"))),
            target=str(row.get("v", row.get("target"))),
            cost=float(row["cost"]),
            capacity=INF if cap is None else cap,
        )
