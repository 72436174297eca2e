"""Tests for shared enums and result containers."""

import pytest

from dashengine.types.base import INF, ProblemKind, SolveMethod
from dashengine.types.dto import Evaluation, Grade, OptimumResult, arc_label


@pytest.mark.parametrize(
    "text,expected",
    [
        ("sp", ProblemKind.SHORTEST_PATH),
        ("TSP", ProblemKind.TOUR),
        ("pick", ProblemKind.PICKING),
        ("vrp", ProblemKind.ROUTING),
        ("tp", ProblemKind.TRANSPORTATION),
        ("ts", ProblemKind.TRANSSHIPMENT),
        ("routing", ProblemKind.ROUTING),
        (" Shortest_Path ", ProblemKind.SHORTEST_PATH),
    ],
)
def test_problem_kind_from_string(text, expected):
    assert ProblemKind.from_string(text) is expected


def test_problem_kind_from_string_invalid():
    with pytest.raises(ValueError, match="Invalid problem kind"):
        ProblemKind.from_string("knapsack")


def test_problem_kind_properties():
    assert ProblemKind.TRANSPORTATION.is_flow
    assert ProblemKind.TRANSSHIPMENT.is_flow
    assert not ProblemKind.TOUR.is_flow
    assert ProblemKind.ROUTING.is_closed_tour
    assert ProblemKind.PICKING.is_closed_tour
    assert not ProblemKind.SHORTEST_PATH.is_closed_tour


def test_optimum_result_infeasible_and_to_dict():
    result = OptimumResult.infeasible("no way", SolveMethod.HEURISTIC, "polar_sweep")
    assert result.cost == INF
    assert not result.feasible
    assert not result.is_optimal
    as_dict = result.to_dict()
    assert as_dict["method"] == "heuristic"
    assert as_dict["reason"] == "no way"


def test_optimum_result_flows_serialize_with_arc_labels():
    result = OptimumResult(cost=10.0, flows={("S1", "D1"): 5.0})
    assert result.is_optimal
    assert result.to_dict()["flows"] == {"S1>D1": 5.0}
    assert arc_label(("a", "b")) == "a>b"


def test_evaluation_feasible_tracks_violations():
    assert Evaluation(3.0).feasible
    bad = Evaluation(3.0, ("Node X not visited.",))
    assert not bad.feasible
    assert bad.to_dict()["violations"] == ["Node X not visited."]


def test_grade_gap():
    optimum = OptimumResult(cost=20.0)
    assert Grade(Evaluation(25.0), optimum, 800).gap == pytest.approx(0.25)
    assert Grade(Evaluation(25.0, ("x",)), optimum, 0).gap == INF
    assert Grade(Evaluation(20.0), optimum, 1000).to_dict()["gap"] == 0.0
