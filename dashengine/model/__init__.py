"""Scenario data model."""

from dashengine.model.flow import Arc, Demand, FlowInstance, Hub, Supply, parse_arc_key
from dashengine.model.scenario import (
    Edge,
    EdgeWeight,
    MetricVector,
    Modifier,
    Node,
    Objective,
    Scenario,
)

__all__ = [
    "Arc",
    "Demand",
    "Edge",
    "EdgeWeight",
    "FlowInstance",
    "Hub",
    "MetricVector",
    "Modifier",
    "Node",
    "Objective",
    "Scenario",
    "Supply",
    "parse_arc_key",
]
