"""Graph primitives.

This package provides the strict multi-directed graph type `StrictMultiDiGraph`
shared by the shortest-path and minimum-cost flow solvers.
"""

from dashengine.graph.strict_multidigraph import StrictMultiDiGraph

__all__ = ["StrictMultiDiGraph"]
