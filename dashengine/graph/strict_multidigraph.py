"""Strict multi-directed graph used by the shortest-path and flow solvers.

`StrictMultiDiGraph` extends `networkx.MultiDiGraph` so that solver inputs are
explicit: nodes must exist before edges reference them, node ids are never
silently merged, and every edge gets a unique integer key that the flow solver
uses to pair forward and reverse residual edges.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, List, Optional, Tuple

import networkx as nx

NodeID = Hashable
EdgeID = int
AttrDict = Dict[str, Any]
EdgeTuple = Tuple[NodeID, NodeID, EdgeID, AttrDict]


class StrictMultiDiGraph(nx.MultiDiGraph):
    """Multi-directed graph with strict node management and integer edge keys.

    This class enforces:
      - No automatic creation of missing nodes when adding an edge.
      - No duplicate nodes (raises ValueError on duplicates).
      - Edge keys are unique monotonically increasing integers.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._edges: Dict[EdgeID, EdgeTuple] = {}
        self._next_edge_id: int = 0

    def new_edge_key(self, u: NodeID, v: NodeID, key: Optional[int] = None) -> int:  # type: ignore[override]
        """Return the next unused edge key (signature matches NetworkX)."""
        next_edge_id = self._next_edge_id
        self._next_edge_id += 1
        return next_edge_id

    def add_node(self, node_for_adding: NodeID, **attr: Any) -> None:
        """Add a node, disallowing duplicates.

        Raises:
            ValueError: If the node already exists in the graph.
        """
        if node_for_adding in self:
            raise ValueError(f"Node '{node_for_adding}' already exists in this graph.")
        super().add_node(node_for_adding, **attr)

    def add_edge(  # pyright: ignore[reportIncompatibleMethodOverride]
        self,
        u_for_edge: NodeID,
        v_for_edge: NodeID,
        key: Optional[EdgeID] = None,
        **attr: Any,
    ) -> EdgeID:
        """Add a directed edge between two existing nodes.

        When ``key`` is omitted the next integer key is assigned. An explicit
        integer key advances the counter so later auto keys never collide.

        Returns:
            The key of the new edge.

        Raises:
            ValueError: If either endpoint does not exist or the key is taken.
        """
        if u_for_edge not in self:
            raise ValueError(f"Source node '{u_for_edge}' does not exist.")
        if v_for_edge not in self:
            raise ValueError(f"Target node '{v_for_edge}' does not exist.")

        if key is None:
            key = self.new_edge_key(u_for_edge, v_for_edge)
        else:
            if key in self._edges:
                raise ValueError(f"Edge with id '{key}' already exists.")
            if isinstance(key, int) and key >= self._next_edge_id:
                self._next_edge_id = key + 1

        super().add_edge(u_for_edge, v_for_edge, key=key, **attr)
        self._edges[key] = (
            u_for_edge,
            v_for_edge,
            key,
            self[u_for_edge][v_for_edge][key],  # pyright: ignore[reportArgumentType]
        )
        return key

    def get_edges(self) -> Dict[EdgeID, EdgeTuple]:
        """Map edge key to ``(source, target, key, attributes)``."""
        return self._edges

    def get_edge_attr(self, key: EdgeID) -> AttrDict:
        """Attribute dict of an edge (mutable, shared with the graph).

        Raises:
            ValueError: If no edge with this key exists.
        """
        if key not in self._edges:
            raise ValueError(f"Edge with id='{key}' not found.")
        return self._edges[key][3]

    def edges_between(self, u: NodeID, v: NodeID) -> List[EdgeID]:
        """Keys of all edges from ``u`` to ``v`` (empty when none)."""
        if u not in self.succ or v not in self.succ[u]:
            return []
        return list(self.succ[u][v].keys())

    def min_edge_attr(self, u: NodeID, v: NodeID, attr: str = "cost") -> Optional[float]:
        """Smallest ``attr`` over parallel edges ``u -> v``, or None if no edge."""
        edge_ids = self.edges_between(u, v)
        if not edge_ids:
            return None
        return min(self._edges[e_id][3][attr] for e_id in edge_ids)
