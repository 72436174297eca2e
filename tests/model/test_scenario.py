"""Tests for the scenario model: validation, defaults and payload parsing."""

import math

import pytest

from dashengine.model.scenario import Edge, MetricVector, Modifier, Node, Objective, Scenario
from dashengine.types.base import ProblemKind


class TestNode:
    def test_valid_node(self):
        node = Node("A", 1.5, -2, label="Alpha", demand=3)
        assert node.id == "A"
        assert node.demand == 3

    def test_rejects_empty_id(self):
        with pytest.raises(ValueError, match="non-empty"):
            Node("", 0, 0)

    def test_rejects_non_finite_coordinates(self):
        with pytest.raises(ValueError, match="non-finite"):
            Node("A", math.inf, 0)

    @pytest.mark.parametrize("demand", [-1, math.nan, math.inf, "3", True])
    def test_rejects_malformed_demand(self, demand):
        with pytest.raises(ValueError, match="Node 'A' demand"):
            Node("A", 0, 0, demand=demand)


class TestEdge:
    def test_mode_aliases_are_normalized(self):
        assert Edge("A", "B", 1, "🚂").mode == "rail"
        assert Edge("A", "B", 1, "✈️").mode == "air"
        assert Edge("A", "B", 1, "barge").mode == "barge"

    def test_rejects_negative_weight(self):
        with pytest.raises(ValueError, match="negative"):
            Edge("A", "B", -1)

    @pytest.mark.parametrize("weight", [math.inf, math.nan])
    def test_rejects_non_finite_weight(self, weight):
        with pytest.raises(ValueError, match="finite and non-negative"):
            Edge("A", "B", weight)

    def test_rejects_non_numeric_weight(self):
        with pytest.raises(ValueError, match="must be a number"):
            Edge("A", "B", "7")  # type: ignore[arg-type]

    def test_metric_vector_weight(self):
        edge = Edge("A", "B", MetricVector(time=3))
        assert edge.weight.present() == ("time",)

    def test_metric_vector_rejects_negative(self):
        with pytest.raises(ValueError, match="non-negative"):
            MetricVector(cost=-5)

    def test_metric_vector_rejects_infinite(self):
        with pytest.raises(ValueError, match="Metric 'time' must be finite"):
            MetricVector(time=math.inf)
        with pytest.raises(ValueError, match="Metric 'co2' must be finite"):
            MetricVector.from_mapping({"co2": "inf"})

    def test_metric_vector_from_mapping_rejects_unknown(self):
        with pytest.raises(ValueError, match="Unknown metric"):
            MetricVector.from_mapping({"time": 1, "fuel": 2})


class TestObjective:
    def test_defaults_to_single_time(self):
        objective = Objective()
        assert objective.kind == "single"
        assert objective.metric_a == "time"
        assert objective.describe() == "time"

    def test_dual_describe(self):
        assert Objective.dual("time", "cost", 0.25).describe() == "0.25*time+0.75*cost"

    @pytest.mark.parametrize("alpha", [-0.1, 1.5])
    def test_alpha_out_of_range(self, alpha):
        with pytest.raises(ValueError, match="alpha"):
            Objective.dual("time", "cost", alpha)

    def test_unknown_metric(self):
        with pytest.raises(ValueError, match="Unknown metric 'speed'"):
            Objective.single("speed")

    def test_dual_requires_distinct_metrics(self):
        with pytest.raises(ValueError, match="differ"):
            Objective.dual("cost", "cost")

    def test_from_dict_pairs_default_second_metric(self):
        assert Objective.from_dict({"objectiveMode": "dual", "objA": "time"}).metric_b == "cost"
        assert Objective.from_dict({"objectiveMode": "dual", "objA": "cost"}).metric_b == "co2"
        single = Objective.from_dict({}, default_metric="co2")
        assert single == Objective.single("co2")


class TestModifier:
    def test_factories(self):
        truck = Edge("A", "B", 1, "truck")
        rail = Edge("B", "C", 1, "rail")
        assert Modifier.uniform("all", 2.0).factor(truck) == 2.0
        assert Modifier.for_mode("rail-strike", "rail", 3.0).factor(rail) == 3.0
        assert Modifier.for_mode("rail-strike", "rail", 3.0).factor(truck) == 1.0
        assert Modifier.for_arc("jam", "A", "B", 1.5).factor(truck) == 1.5
        assert Modifier.for_arc("jam", "A", "B", 1.5).factor(rail) == 1.0
        assert Modifier.for_sources("promo", ["B"], 0.5).factor(rail) == 0.5
        assert Modifier.uniform("all", 2.0).label == "all"


class TestScenario:
    def test_closed_tour_end_defaults_to_start(self, square_tour):
        assert square_tour.end == "S"
        assert square_tour.visit_ids == ("A", "B", "C", "D")

    def test_closed_tour_end_must_match_start(self):
        with pytest.raises(ValueError, match="must end where it starts"):
            Scenario(
                kind=ProblemKind.TOUR,
                nodes=(Node("S", 0, 0), Node("A", 1, 0)),
                start="S",
                end="A",
            )

    def test_missing_start(self):
        with pytest.raises(ValueError, match="requires a start node"):
            Scenario(kind=ProblemKind.TOUR, nodes=(Node("S", 0, 0),))

    def test_unknown_start(self):
        with pytest.raises(ValueError, match="Start node 'X' not found"):
            Scenario(kind=ProblemKind.TOUR, nodes=(Node("S", 0, 0),), start="X")

    def test_shortest_path_requires_end(self):
        with pytest.raises(ValueError, match="requires an end node"):
            Scenario(kind=ProblemKind.SHORTEST_PATH, nodes=(Node("S", 0, 0),), start="S")

    def test_duplicate_node_ids(self):
        with pytest.raises(ValueError, match="Duplicate node id 'S'"):
            Scenario(
                kind=ProblemKind.TOUR,
                nodes=(Node("S", 0, 0), Node("S", 1, 1)),
                start="S",
            )

    def test_edge_to_unknown_node(self):
        with pytest.raises(ValueError, match="Edge target 'Q' not found"):
            Scenario(
                kind=ProblemKind.SHORTEST_PATH,
                nodes=(Node("A", 0, 0), Node("Z", 1, 0)),
                edges=(Edge("A", "Q", 1),),
                start="A",
                end="Z",
            )

    @pytest.mark.parametrize("capacity", [0, math.inf, math.nan])
    def test_capacity_must_be_finite_and_positive(self, capacity):
        with pytest.raises(ValueError, match="capacity must be finite and positive"):
            Scenario(
                kind=ProblemKind.ROUTING,
                nodes=(Node("S", 0, 0), Node("C1", 1, 0)),
                start="S",
                capacity=capacity,
            )

    def test_flow_kind_requires_instance(self):
        with pytest.raises(ValueError, match="requires a flow instance"):
            Scenario(kind=ProblemKind.TRANSPORTATION)

    def test_transportation_rejects_hubs(self, hub_instance):
        with pytest.raises(ValueError, match="cannot have hubs"):
            Scenario(kind=ProblemKind.TRANSPORTATION, flow=hub_instance)

    def test_scenarios_hash_by_identity(self, square_tour):
        twin = Scenario(
            kind=ProblemKind.TOUR, nodes=square_tour.nodes, start=square_tour.start
        )
        assert twin != square_tour
        assert len({square_tour, twin, square_tour}) == 2

    def test_demand_of_defaults(self):
        scenario = Scenario(
            kind=ProblemKind.ROUTING,
            nodes=(Node("S", 0, 0), Node("C1", 1, 0, demand=3), Node("C2", 2, 0)),
            start="S",
        )
        assert scenario.demand_of("C1") == 3
        assert scenario.demand_of("C2") == 1
        assert scenario.demand_of("C2", default=2) == 2

    def test_distance_depends_on_kind(self):
        nodes = (Node("S", 0, 0), Node("A", 3, 4))
        tour = Scenario(kind=ProblemKind.TOUR, nodes=nodes, start="S")
        pick = Scenario(kind=ProblemKind.PICKING, nodes=nodes, start="S")
        assert tour.distance(*nodes) == 5.0
        assert pick.distance(*nodes) == 7.0


class TestScenarioFromDict:
    def test_shortest_path_payload(self):
        payload = {
            "id": "r1",
            "title": "Round 1",
            "gameMode": "sp",
            "objective": "cost",
            "nodes": [
                {"id": "A", "x": 0, "y": 0},
                {"id": "B", "x": 1, "y": 0},
            ],
            "edges": [
                ["A", "B", {"time": 3, "cost": 120}, "🚂"],
                {"source": "B", "target": "A", "weight": 4},
            ],
            "start": "A",
            "end": "B",
        }
        scenario = Scenario.from_dict(payload)
        assert scenario.kind is ProblemKind.SHORTEST_PATH
        assert scenario.base_metric == "cost"
        assert scenario.objective == Objective.single("cost")
        assert scenario.edges[0].mode == "rail"
        assert scenario.edges[0].weight == MetricVector(time=3, cost=120)
        assert scenario.edges[1].weight == 4.0
        assert scenario.scenario_id == "r1"

    def test_routing_payload_reads_demand_table(self):
        payload = {
            "gameMode": "vrp",
            "nodes": [
                {"id": "S", "x": 0, "y": 0},
                {"id": "C1", "x": 1, "y": 0},
                {"id": "C2", "x": 0, "y": 1, "demand": 2},
            ],
            "start": "S",
            "end": "S",
            "capacity": 5,
            "demand": {"C1": 4},
        }
        scenario = Scenario.from_dict(payload)
        assert scenario.capacity == 5.0
        assert scenario.demand_of("C1") == 4.0
        assert scenario.demand_of("C2") == 2.0

    def test_payload_rejects_infinite_edge_weight(self):
        payload = {
            "gameMode": "sp",
            "nodes": [{"id": "A", "x": 0, "y": 0}, {"id": "B", "x": 1, "y": 0}],
            "edges": [["A", "B", "inf"]],
            "start": "A",
            "end": "B",
        }
        with pytest.raises(ValueError, match="Edge A>B weight must be finite"):
            Scenario.from_dict(payload)

    def test_routing_payload_rejects_nan_demand(self):
        payload = {
            "gameMode": "vrp",
            "nodes": [{"id": "S", "x": 0, "y": 0}, {"id": "C1", "x": 1, "y": 0}],
            "start": "S",
            "demand": {"C1": "nan"},
        }
        with pytest.raises(ValueError, match="Node 'C1' demand must be finite"):
            Scenario.from_dict(payload)

    def test_flow_payload(self):
        payload = {
            "gameMode": "tp",
            "supplies": [{"id": "S1", "supply": 10}],
            "demands": [{"id": "D1", "demand": 10}],
            "cost": {"S1>D1": 7},
        }
        scenario = Scenario.from_dict(payload)
        assert scenario.flow is not None
        assert scenario.flow.arc_map[("S1", "D1")].cost == 7.0

    def test_missing_kind(self):
        with pytest.raises(ValueError, match="requires 'kind' or 'gameMode'"):
            Scenario.from_dict({"nodes": []})
