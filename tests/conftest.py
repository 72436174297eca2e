"""Shared fixtures: the small scenarios most test modules exercise."""

from __future__ import annotations

import pytest

from dashengine.model.flow import Arc, Demand, FlowInstance, Hub, Supply
from dashengine.model.scenario import Edge, Node, Scenario
from dashengine.types.base import ProblemKind


@pytest.fixture
def abcz_scenario() -> Scenario:
    """A->B(7), A->D(10), B->C(6), D->C(5), C->Z(12); best A-B-C-Z costs 25."""
    return Scenario(
        kind=ProblemKind.SHORTEST_PATH,
        nodes=(
            Node("A", 0, 0),
            Node("B", 1, 1),
            Node("C", 2, 0),
            Node("D", 1, -1),
            Node("Z", 3, 0),
        ),
        edges=(
            Edge("A", "B", 7),
            Edge("A", "D", 10),
            Edge("B", "C", 6),
            Edge("D", "C", 5),
            Edge("C", "Z", 12),
        ),
        start="A",
        end="Z",
    )


@pytest.fixture
def square_tour() -> Scenario:
    """Depot S on the bottom edge of a unit square, customers on its corners."""
    return Scenario(
        kind=ProblemKind.TOUR,
        nodes=(
            Node("S", 0.5, 0),
            Node("A", 0, 0),
            Node("B", 1, 0),
            Node("C", 1, 1),
            Node("D", 0, 1),
        ),
        start="S",
    )


@pytest.fixture
def transport_instance() -> FlowInstance:
    """Supplies 60/40, demands 50/50; optimum ships S1>D1 50, S1>D2 10, S2>D2 40 for 380."""
    return FlowInstance.transportation(
        {"S1": 60, "S2": 40},
        {"D1": 50, "D2": 50},
        {("S1", "D1"): 4, ("S1", "D2"): 6, ("S2", "D1"): 5, ("S2", "D2"): 3},
    )


@pytest.fixture
def hub_instance() -> FlowInstance:
    """Two supplies reaching one demand through a cheap hub H1 or a dear hub H2."""
    return FlowInstance(
        supplies=(Supply("S1", 30), Supply("S2", 20)),
        demands=(Demand("D1", 50),),
        hubs=(Hub("H1"), Hub("H2")),
        arcs=(
            Arc("S1", "H1", 1),
            Arc("S2", "H1", 2),
            Arc("S1", "H2", 3),
            Arc("S2", "H2", 3),
            Arc("H1", "D1", 1),
            Arc("H2", "D1", 2),
        ),
    )
