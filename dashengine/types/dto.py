"""Result containers returned by solvers and the evaluator.

Both containers are frozen; ``to_dict`` produces the plain mapping shape the
surrounding application stores and renders (arc keys become ``"u>v"``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from dashengine.types.base import INF, ArcKey, Cost, SolveMethod


def arc_label(arc: ArcKey) -> str:
    """Render an arc key as ``"source>target"``."""
    return f"{arc[0]}>{arc[1]}"


@dataclass(frozen=True)
class OptimumResult:
    """Reference solution for a scenario.

    Attributes:
        cost: Total cost; ``INF`` when unreachable or infeasible.
        path: Node id sequence (shortest path, tour or flattened route set).
        flows: Quantity per allowed arc for flow problems (zero flows omitted).
        feasible: False when the instance has no valid solution.
        method: Whether the result is exact or heuristic.
        algorithm: Name of the algorithm that produced the result.
        reason: Human-readable explanation when ``feasible`` is False.
    """

    cost: Cost
    path: Tuple[str, ...] = ()
    flows: Dict[ArcKey, float] = field(default_factory=dict)
    feasible: bool = True
    method: SolveMethod = SolveMethod.EXACT
    algorithm: str = ""
    reason: Optional[str] = None

    @property
    def is_optimal(self) -> bool:
        """True only for feasible results produced by an exact method."""
        return self.feasible and self.method == SolveMethod.EXACT

    @classmethod
    def infeasible(
        cls,
        reason: str,
        method: SolveMethod = SolveMethod.EXACT,
        algorithm: str = "",
    ) -> "OptimumResult":
        return cls(
            cost=INF,
            feasible=False,
            method=method,
            algorithm=algorithm,
            reason=reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cost": self.cost,
            "path": list(self.path),
            "flows": {arc_label(k): v for k, v in self.flows.items()},
            "feasible": self.feasible,
            "method": self.method.name.lower(),
            "algorithm": self.algorithm,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Evaluation:
    """Cost and constraint check of a submitted candidate solution.

    Attributes:
        cost: Cost of the submission under the scenario's rules; ``INF`` when
            a step cannot be costed (missing edge, unknown node).
        violations: Every violated constraint, in discovery order.
    """

    cost: Cost
    violations: Tuple[str, ...] = ()

    @property
    def feasible(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cost": self.cost,
            "feasible": self.feasible,
            "violations": list(self.violations),
        }


@dataclass(frozen=True)
class Grade:
    """A submission's evaluation next to the round optimum and its score."""

    evaluation: Evaluation
    optimum: OptimumResult
    score: int

    @property
    def gap(self) -> float:
        """Relative excess cost over the optimum (0.0 means optimal)."""
        best = self.optimum.cost
        if not self.evaluation.feasible or best == INF or best <= 0:
            return INF
        return max(0.0, self.evaluation.cost / best - 1.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.evaluation.to_dict(),
            "optimum": self.optimum.cost,
            "score": self.score,
            "gap": self.gap,
        }
