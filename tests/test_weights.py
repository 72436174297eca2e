"""Tests for the weighted-graph resolver."""

import pytest

from dashengine.config import SolverConfig
from dashengine.model.scenario import Edge, MetricVector, Modifier, Objective
from dashengine.weights import (
    ResolvedEdge,
    build_graph,
    edge_metrics,
    effective_weight,
    metrics_from_distance,
    resolve_edges,
    weight_table,
)


class TestMetricsFromDistance:
    def test_truck(self):
        assert metrics_from_distance(10, "truck") == MetricVector(time=10, cost=850, co2=12)

    def test_floors_apply(self):
        assert metrics_from_distance(1, "air") == MetricVector(time=2, cost=140, co2=5)

    def test_unknown_mode_uses_default_factors(self):
        assert metrics_from_distance(10, "barge") == MetricVector(time=10, cost=900, co2=10)


class TestEdgeMetrics:
    def test_complete_vector_is_returned_unchanged(self):
        vector = MetricVector(time=1, cost=2, co2=3)
        assert edge_metrics(Edge("A", "B", vector)) is vector

    def test_scalar_weight_is_read_as_base_metric(self):
        metrics = edge_metrics(Edge("A", "B", 20, "truck"), base_metric="time")
        assert metrics == MetricVector(time=20, cost=1700, co2=24)

    def test_missing_metrics_derived_from_first_present(self):
        metrics = edge_metrics(Edge("A", "B", MetricVector(cost=850), "truck"), "time")
        assert metrics == MetricVector(time=10, cost=850, co2=12)

    def test_present_metrics_are_kept(self):
        metrics = edge_metrics(Edge("A", "B", MetricVector(time=10, co2=99), "truck"))
        assert metrics.co2 == 99
        assert metrics.cost == 850

    def test_empty_vector_rejected(self):
        with pytest.raises(ValueError, match="empty metric vector"):
            edge_metrics(Edge("A", "B", MetricVector()))


class TestEffectiveWeight:
    vector_edge = Edge("A", "B", MetricVector(time=10, cost=850, co2=12), "truck")

    def test_single_metric(self):
        assert effective_weight(self.vector_edge, Objective.single("cost")) == 850
        assert effective_weight(self.vector_edge, Objective.single("co2")) == 12

    def test_dual_blend(self):
        objective = Objective.dual("time", "cost", 0.5)
        assert effective_weight(self.vector_edge, objective) == pytest.approx(430.0)

    def test_scalar_weight_under_other_metric(self):
        edge = Edge("A", "B", 20, "truck")
        assert effective_weight(edge, Objective.single("cost"), base_metric="time") == 1700

    def test_modifiers_multiply_and_round_half_up(self):
        edge = Edge("A", "B", 1.25)
        assert effective_weight(edge, Objective(), modifiers=[Modifier.uniform("m", 1.0)]) == 1.3
        assert effective_weight(
            self.vector_edge,
            Objective(),
            modifiers=[Modifier.uniform("a", 2.0), Modifier.for_mode("b", "truck", 0.75)],
        ) == 15.0

    def test_modifier_for_other_mode_is_neutral(self):
        weight = effective_weight(
            self.vector_edge, Objective(), modifiers=[Modifier.for_mode("r", "rail", 3.0)]
        )
        assert weight == 10

    def test_weight_floor(self):
        assert effective_weight(Edge("A", "B", 0), Objective()) == 0.1
        config = SolverConfig(weight_epsilon=0.5)
        assert effective_weight(Edge("A", "B", 0.2), Objective(), config=config) == 0.5

    def test_invalid_modifier_factor(self):
        bad = Modifier("bad", "bad", lambda edge: -1.0)
        with pytest.raises(ValueError, match="invalid factor"):
            effective_weight(self.vector_edge, Objective(), modifiers=[bad])


def test_resolve_edges_uses_scenario_objective(abcz_scenario):
    resolved = resolve_edges(abcz_scenario)
    assert [e.weight for e in resolved] == [7, 10, 6, 5, 12]
    assert all(isinstance(e, ResolvedEdge) for e in resolved)


def test_build_graph_and_weight_table_keep_cheapest_parallel_edge():
    edges = [ResolvedEdge("A", "B", 5.0), ResolvedEdge("A", "B", 3.0, "rail")]
    graph = build_graph(["A", "B"], edges)
    assert graph.number_of_edges() == 2
    assert graph.min_edge_attr("A", "B") == 3.0
    assert weight_table(edges) == {("A", "B"): 3.0}
