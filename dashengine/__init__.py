"""dashengine: operations-research engine for classroom logistics rounds.

dashengine computes reference optima for routing and flow exercises and
grades learner submissions against them.

Primary API:
    solve() - Optimum (or heuristic best) solution of a scenario
    evaluate() - Cost and constraint violations of a submitted solution
    analyze() - Round context that solves once and grades many submissions
    Scenario, Node, Edge, Objective, Modifier - Problem model
    FlowInstance - Supply/demand data for transportation and transshipment

Example:
    from dashengine import Edge, Node, ProblemKind, Scenario, analyze

    scenario = Scenario(
        kind=ProblemKind.SHORTEST_PATH,
        nodes=(Node("A", 0, 0), Node("B", 1, 0), Node("Z", 2, 0)),
        edges=(Edge("A", "B", 7), Edge("B", "Z", 12)),
        start="A",
        end="Z",
    )
    ctx = analyze(scenario)
    best = ctx.optimum()                 # cost 19, path A-B-Z
    grade = ctx.grade(["A", "B", "Z"])   # score 1000
"""

from __future__ import annotations

from dashengine import logging
from dashengine._version import __version__
from dashengine.analysis import OptimumCache, RoundContext, analyze
from dashengine.config import DEFAULT_CONFIG, SolverConfig
from dashengine.evaluate import evaluate
from dashengine.generators import (
    make_network_scenario,
    make_picking_scenario,
    make_routing_scenario,
    make_tour_scenario,
)
from dashengine.model.flow import Arc, Demand, FlowInstance, Hub, Supply
from dashengine.model.scenario import (
    Edge,
    MetricVector,
    Modifier,
    Node,
    Objective,
    Scenario,
)
from dashengine.scoring import PlayerResult, Standing, compute_standings, score
from dashengine.solver import solve, solve_transportation, solve_transshipment
from dashengine.types.base import INF, ProblemKind, SolveMethod
from dashengine.types.dto import Evaluation, Grade, OptimumResult

__all__ = [
    # Version
    "__version__",
    # Model
    "Scenario",
    "Node",
    "Edge",
    "MetricVector",
    "Objective",
    "Modifier",
    "FlowInstance",
    "Supply",
    "Demand",
    "Hub",
    "Arc",
    # Solving and grading (primary API)
    "solve",
    "solve_transportation",
    "solve_transshipment",
    "evaluate",
    "analyze",
    "RoundContext",
    "OptimumCache",
    # Scoring
    "score",
    "compute_standings",
    "PlayerResult",
    "Standing",
    # Generators
    "make_network_scenario",
    "make_tour_scenario",
    "make_routing_scenario",
    "make_picking_scenario",
    # Types
    "ProblemKind",
    "SolveMethod",
    "INF",
    "OptimumResult",
    "Evaluation",
    "Grade",
    # Configuration
    "SolverConfig",
    "DEFAULT_CONFIG",
    # Utilities
    "logging",
]
