"""Tests for submission evaluation across every problem kind."""

import pytest

from dashengine.evaluate import (
    evaluate,
    evaluate_flow,
    evaluate_path,
    evaluate_routing,
    evaluate_tour,
)
from dashengine.model.flow import FlowInstance, Hub
from dashengine.model.scenario import Modifier, Node, Objective, Scenario
from dashengine.solver import solve
from dashengine.types.base import INF, ProblemKind


@pytest.fixture
def routing_scenario():
    return Scenario(
        kind=ProblemKind.ROUTING,
        nodes=(
            Node("S", 0, 0),
            Node("C1", 3, 0, demand=3),
            Node("C2", 3, 4, demand=3),
            Node("C3", 0, 4, demand=3),
        ),
        start="S",
        capacity=6,
    )


class TestShortestPath:
    def test_optimal_path(self, abcz_scenario):
        evaluation = evaluate_path(abcz_scenario, ["A", "B", "C", "Z"])
        assert evaluation.cost == 25
        assert evaluation.feasible

    def test_suboptimal_path(self, abcz_scenario):
        assert evaluate_path(abcz_scenario, ["A", "D", "C", "Z"]).cost == 27

    def test_missing_edge(self, abcz_scenario):
        evaluation = evaluate_path(abcz_scenario, ["A", "C", "Z"])
        assert evaluation.cost == INF
        assert evaluation.violations == ("Edge A>C does not exist.",)

    def test_wrong_endpoints_and_unknown_node(self, abcz_scenario):
        evaluation = evaluate_path(abcz_scenario, ["Q", "B", "C"])
        assert "Unknown node 'Q'." in evaluation.violations
        assert "Path must start at A (starts at Q)." in evaluation.violations
        assert "Path must end at Z (ends at C)." in evaluation.violations

    def test_empty_path(self, abcz_scenario):
        evaluation = evaluate_path(abcz_scenario, [])
        assert evaluation.cost == INF
        assert not evaluation.feasible

    def test_objective_and_modifiers_apply(self, abcz_scenario):
        scenario = Scenario(
            kind=abcz_scenario.kind,
            nodes=abcz_scenario.nodes,
            edges=abcz_scenario.edges,
            start="A",
            end="Z",
            modifiers=(Modifier.for_arc("jam", "B", "C", 2.0),),
        )
        assert evaluate_path(scenario, ["A", "B", "C", "Z"]).cost == 31
        cost_objective = Objective.single("cost")
        # scalar weights are times; truck cost is 85 per unit of time
        assert evaluate_path(scenario, ["A", "B", "C", "Z"], objective=cost_objective).cost == (
            595 + 2 * 510 + 1020
        )


class TestTour:
    def test_perimeter(self, square_tour):
        evaluation = evaluate_tour(square_tour, ["S", "B", "C", "D", "A", "S"])
        assert evaluation.cost == pytest.approx(4.0)
        assert evaluation.feasible

    def test_missing_and_repeated_nodes(self, square_tour):
        evaluation = evaluate_tour(square_tour, ["S", "B", "C", "B", "A", "S"])
        assert "Node B visited 2 times." in evaluation.violations
        assert "Node D not visited." in evaluation.violations

    def test_open_tour_and_mid_tour_start(self, square_tour):
        evaluation = evaluate_tour(square_tour, ["S", "A", "S", "B", "C", "D"])
        assert "Path must end at S (ends at D)." in evaluation.violations
        assert "Tour revisits S before the end." in evaluation.violations

    def test_unknown_node_cost_is_infinite(self, square_tour):
        evaluation = evaluate_tour(square_tour, ["S", "A", "B", "C", "D", "X", "S"])
        assert evaluation.cost == INF
        assert "Unknown node 'X'." in evaluation.violations

    def test_picking_uses_manhattan(self):
        scenario = Scenario(
            kind=ProblemKind.PICKING,
            nodes=(Node("S", 0, 0), Node("P1", 3, 4)),
            start="S",
        )
        assert evaluate_tour(scenario, ["S", "P1", "S"]).cost == 14.0


class TestRouting:
    def test_feasible_routes(self, routing_scenario):
        evaluation = evaluate_routing(routing_scenario, ["S", "C1", "C2", "S", "C3", "S"])
        assert evaluation.feasible
        assert evaluation.cost == pytest.approx(3 + 4 + 5 + 4 + 4)

    def test_overloaded_route(self, routing_scenario):
        evaluation = evaluate_routing(routing_scenario, ["S", "C1", "C2", "C3", "S"])
        assert evaluation.violations == ("Route 1 (C1-C2-C3) load 9 exceeds capacity 6.",)
        assert evaluation.cost == pytest.approx(3 + 4 + 3 + 4)

    def test_unserved_and_duplicate_customers(self, routing_scenario):
        evaluation = evaluate_routing(routing_scenario, ["S", "C1", "S", "C1", "S"])
        assert "Customer C1 served 2 times." in evaluation.violations
        assert "Customer C2 not served." in evaluation.violations
        assert "Customer C3 not served." in evaluation.violations

    def test_route_must_close_at_depot(self, routing_scenario):
        evaluation = evaluate_routing(routing_scenario, ["S", "C1", "C2", "S", "C3"])
        assert "Path must end at S (ends at C3)." in evaluation.violations


class TestFlow:
    def test_optimal_plan(self, transport_instance):
        plan = {"S1>D1": 50, "S1>D2": 10, ("S2", "D2"): 40}
        evaluation = evaluate_flow(transport_instance, plan)
        assert evaluation.feasible
        assert evaluation.cost == 380

    def test_supply_and_demand_mismatch(self, transport_instance):
        evaluation = evaluate_flow(transport_instance, {"S1>D1": 50, "S2>D2": 40})
        assert "Supply S1: sent 50 != 60" in evaluation.violations
        assert "Demand D2: recv 40 != 50" in evaluation.violations

    def test_disallowed_and_negative_arcs(self):
        instance = FlowInstance.transportation({"S1": 5}, {"D1": 5, "D2": 0}, {"S1>D1": 2})
        evaluation = evaluate_flow(instance, {"S1>D2": 1, "S1>D1": -1, "D1>S1": 0, "bogus": 3})
        assert "Arc S1>D2 not allowed." in evaluation.violations
        assert "Arc S1>D1: negative quantity -1." in evaluation.violations
        assert any("Invalid arc key" in v for v in evaluation.violations)
        assert not any("D1>S1" in v for v in evaluation.violations)

    def test_hub_balance_and_cap(self, hub_instance):
        capped = FlowInstance(
            hub_instance.supplies,
            hub_instance.demands,
            (Hub("H1", 35), Hub("H2")),
            hub_instance.arcs,
        )
        plan = {"S1>H1": 30, "S2>H1": 20, "H1>D1": 45}
        evaluation = evaluate_flow(capped, plan)
        assert "Hub H1: inflow 50 != outflow 45" in evaluation.violations
        assert "Hub H1: throughput 50 exceeds cap 35" in evaluation.violations
        assert "Demand D1: recv 45 != 50" in evaluation.violations

    def test_arc_capacity(self):
        from dashengine.model.flow import Arc, Demand, Supply

        instance = FlowInstance(
            supplies=(Supply("S1", 10),),
            demands=(Demand("D1", 10),),
            arcs=(Arc("S1", "D1", 1, capacity=4),),
        )
        evaluation = evaluate_flow(instance, {"S1>D1": 10})
        assert evaluation.violations == ("Arc S1>D1: 10 exceeds capacity 4.",)


class TestDispatch:
    def test_flow_requires_mapping(self, transport_instance):
        scenario = Scenario(kind=ProblemKind.TRANSPORTATION, flow=transport_instance)
        with pytest.raises(ValueError, match="must map arc keys"):
            evaluate(scenario, ["S1", "D1"])

    def test_sequence_kinds_reject_mapping(self, square_tour):
        with pytest.raises(ValueError, match="node id sequences"):
            evaluate(square_tour, {"S>A": 1})

    @pytest.mark.parametrize("fixture", ["abcz_scenario", "square_tour", "routing_scenario"])
    def test_solver_optimum_round_trips(self, fixture, request):
        scenario = request.getfixturevalue(fixture)
        best = solve(scenario)
        evaluation = evaluate(scenario, best.path)
        assert evaluation.feasible
        assert evaluation.cost == best.cost

    def test_flow_optimum_round_trips(self, transport_instance, hub_instance):
        for kind, instance in (
            (ProblemKind.TRANSPORTATION, transport_instance),
            (ProblemKind.TRANSSHIPMENT, hub_instance),
        ):
            scenario = Scenario(kind=kind, flow=instance)
            best = solve(scenario)
            evaluation = evaluate(scenario, best.flows)
            assert evaluation.feasible
            assert evaluation.cost == pytest.approx(best.cost)
