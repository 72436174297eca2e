"""Round analysis API.

Usage:
    from dashengine import analyze

    ctx = analyze(scenario)
    best = ctx.optimum()            # computed once, then reused
    grade = ctx.grade(["A", "B", "C", "Z"])

A `RoundContext` resolves shortest-path edge weights once and shares them
between the solver and the evaluator, so a submission and the optimum are
always costed by the same weights. Contexts for the same round may share an
`OptimumCache`; the optimum for each ``(scenario, objective, config)`` is
then computed at most once even when many players submit concurrently.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Optional, Tuple

from dashengine.config import DEFAULT_CONFIG, SolverConfig
from dashengine.evaluate import Solution, evaluate
from dashengine.logging import get_logger
from dashengine.model.scenario import Objective, Scenario
from dashengine.scoring import score
from dashengine.solver import solve, solve_shortest_path
from dashengine.types.base import ProblemKind
from dashengine.types.dto import Evaluation, Grade, OptimumResult
from dashengine.weights import ResolvedEdge, resolve_edges

LOGGER = get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "result")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.result: Optional[OptimumResult] = None


class OptimumCache:
    """Thread-safe memo of optima keyed by round.

    Scenarios hash by identity, so two equal-looking scenario objects are
    distinct rounds. A failed computation is not cached and is retried on
    the next request.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, _Entry] = {}

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for e in self._entries.values() if e.result is not None)

    @staticmethod
    def key(
        scenario: Scenario,
        objective: Optional[Objective] = None,
        config: SolverConfig = DEFAULT_CONFIG,
    ) -> Tuple[Scenario, Optional[Objective], SolverConfig]:
        if scenario.kind == ProblemKind.SHORTEST_PATH:
            objective = objective or scenario.objective
        else:
            objective = None
        return (scenario, objective, config)

    def get_or_compute(
        self, key: Hashable, compute: Callable[[], OptimumResult]
    ) -> OptimumResult:
        """Return the cached result for ``key``, computing it at most once."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
        with entry.lock:
            if entry.result is None:
                entry.result = compute()
            else:
                LOGGER.debug("Optimum cache hit")
            return entry.result

    def optimum(
        self,
        scenario: Scenario,
        objective: Optional[Objective] = None,
        config: SolverConfig = DEFAULT_CONFIG,
    ) -> OptimumResult:
        return self.get_or_compute(
            self.key(scenario, objective, config),
            lambda: solve(scenario, objective, config),
        )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


@dataclass
class RoundContext:
    """Prepared state for solving and grading one round.

    Attributes:
        scenario: The round's problem instance.
        objective: Effective shortest-path objective (scenario default when
            not overridden).
        config: Solver configuration.
        resolved: Resolved edges for shortest-path rounds, else None.
    """

    scenario: Scenario
    objective: Objective
    config: SolverConfig = DEFAULT_CONFIG
    resolved: Optional[Tuple[ResolvedEdge, ...]] = None
    _cache: OptimumCache = field(default_factory=OptimumCache, repr=False)

    def optimum(self) -> OptimumResult:
        """Reference solution for the round (computed at most once)."""
        key = OptimumCache.key(self.scenario, self.objective, self.config)
        return self._cache.get_or_compute(key, self._compute)

    def _compute(self) -> OptimumResult:
        if self.scenario.kind == ProblemKind.SHORTEST_PATH:
            return solve_shortest_path(
                self.scenario, self.objective, self.config, self.resolved
            )
        return solve(self.scenario, self.objective, self.config)

    def evaluate(self, solution: Solution) -> Evaluation:
        return evaluate(
            self.scenario, solution, self.objective, self.config, self.resolved
        )

    def grade(self, solution: Solution) -> Grade:
        """Evaluate ``solution`` and score it against the optimum."""
        evaluation = self.evaluate(solution)
        best = self.optimum()
        points = score(best.cost, evaluation.cost, evaluation.feasible)
        LOGGER.debug(
            "Graded %s submission: cost=%s optimum=%s score=%d",
            self.scenario.kind.name,
            evaluation.cost,
            best.cost,
            points,
        )
        return Grade(evaluation=evaluation, optimum=best, score=points)


def analyze(
    scenario: Scenario,
    objective: Optional[Objective] = None,
    config: SolverConfig = DEFAULT_CONFIG,
    cache: Optional[OptimumCache] = None,
) -> RoundContext:
    """Create a `RoundContext` for ``scenario``.

    Args:
        scenario: Problem instance.
        objective: Override of the scenario's shortest-path objective.
        config: Solver configuration.
        cache: Shared optimum cache; a private one is used when omitted.
    """
    objective = objective or scenario.objective
    resolved = None
    if scenario.kind == ProblemKind.SHORTEST_PATH:
        resolved = resolve_edges(scenario, objective, config)
    return RoundContext(
        scenario=scenario,
        objective=objective,
        config=config,
        resolved=resolved,
        _cache=cache if cache is not None else OptimumCache(),
    )
