"""Random classroom scenario generators.

Every generator takes an optional ``seed``; the same seed and arguments always
produce the same scenario. Sizes are clamped to the ranges a round can
display: network 6..30 nodes, tours 6..18 nodes, routing 6..30 customers,
picking grids 3..12 rows by 4..18 columns.

Nodes are placed in a 1200 x 640 layout box with a minimum spacing; when the
box is too crowded to honour the spacing, the remaining points are placed
without it. Generated coordinates are whole numbers.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional, Sequence, Tuple

from dashengine.logging import get_logger
from dashengine.model.scenario import Edge, Node, Objective, Scenario
from dashengine.seed_manager import SeedManager
from dashengine.types.base import ProblemKind
from dashengine.weights import metrics_from_distance

LOGGER = get_logger(__name__)

BOX_W = 1200
BOX_H = 640
PAD = 60

#: Transport modes drawn for generated network edges.
NETWORK_MODES: Tuple[str, ...] = ("truck", "rail", "air")

#: Layout units per unit of edge distance in generated networks.
NETWORK_DISTANCE_SCALE = 10

PICK_CELL = 50
PICK_PAD = 80
PICK_JITTER = 6

Point = Tuple[float, float]


def _clamp(value: float, low: int, high: int) -> int:
    return max(low, min(high, int(math.floor(value))))


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def _sample_points(
    rng: random.Random,
    count: int,
    min_dist: float,
    avoid: Sequence[Point],
    max_attempts: int,
    box: Tuple[float, float, float, float] = (PAD, BOX_W - PAD, PAD, BOX_H - PAD),
) -> List[Point]:
    """Rejection-sample ``count`` points at least ``min_dist`` apart."""
    x0, x1, y0, y1 = box
    points: List[Point] = []
    attempts = 0
    while len(points) < count and attempts < max_attempts:
        attempts += 1
        x = x0 + rng.random() * (x1 - x0)
        y = y0 + rng.random() * (y1 - y0)
        if any(math.hypot(x - ax, y - ay) < min_dist for ax, ay in avoid):
            continue
        if any(math.hypot(x - px, y - py) < min_dist for px, py in points):
            continue
        points.append((x, y))

    if len(points) < count:
        LOGGER.debug(
            "Placed %d of %d points with spacing %s; relaxing spacing",
            len(points),
            count,
            min_dist,
        )
    while len(points) < count:
        points.append((x0 + rng.random() * (x1 - x0), y0 + rng.random() * (y1 - y0)))

    points.sort(key=lambda p: p[0])
    return points


def _network_edge(rng: random.Random, u: Node, v: Node, mode: Optional[str] = None) -> Edge:
    distance = math.hypot(v.x - u.x, v.y - u.y) / NETWORK_DISTANCE_SCALE
    mode = mode or rng.choice(NETWORK_MODES)
    return Edge(u.id, v.id, metrics_from_distance(distance, mode), mode)


def make_network_scenario(
    n: int = 12,
    objective: str = "time",
    min_dist: float = 76,
    density: int = 2,
    seed: Optional[int] = None,
) -> Scenario:
    """Directed shortest-path network from ``S`` (left) to ``T`` (right).

    Intermediate nodes ``N1..`` are sorted left to right and each node links
    to up to ``density + 1`` nodes at most ``density + 3`` steps ahead, so
    every edge points rightwards and the graph is acyclic. Each edge carries
    a full ``{time, cost, co2}`` vector for a random mode. ``S`` always has an
    outgoing edge and ``T`` an incoming one.

    Args:
        n: Total node count including ``S`` and ``T`` (clamped to 6..30).
        objective: Metric the round optimizes.
        min_dist: Node spacing in layout units (clamped to 40..110).
        density: Edges per node (clamped to 1..3).
        seed: Round seed.
    """
    n = _clamp(n, 6, 30)
    min_dist = max(40.0, min(110.0, float(min_dist)))
    density = _clamp(density, 1, 3)
    rng = SeedManager(seed).create_random_state("network", n, objective, min_dist, density)

    x0, x1, y0, y1 = PAD, BOX_W - PAD, PAD, BOX_H - PAD
    start = Node("S", x0, y0 + 80, label="Start")
    target = Node("T", x1, y1 - 80, label="Target")
    points = _sample_points(
        rng, n - 2, min_dist, [(start.x, start.y), (target.x, target.y)], 6000
    )
    nodes = [start]
    nodes.extend(
        Node(f"N{i}", _round(x), _round(y), label=f"N{i}")
        for i, (x, y) in enumerate(points, start=1)
    )
    nodes.append(target)

    edges: List[Edge] = []
    seen = set()
    last = len(nodes) - 1
    for i in range(last):
        for _ in range(density + 1):
            j = min(last, i + 1 + rng.randint(0, 2 + density))
            if (i, j) in seen:
                continue
            seen.add((i, j))
            edges.append(_network_edge(rng, nodes[i], nodes[j]))

    if not any(e.source == start.id for e in edges):
        edges.append(_network_edge(rng, start, nodes[1], "truck"))
    if not any(e.target == target.id for e in edges):
        edges.append(_network_edge(rng, nodes[-2], target, "truck"))

    LOGGER.debug("Generated network: %d nodes, %d edges (seed=%s)", len(nodes), len(edges), seed)
    return Scenario(
        kind=ProblemKind.SHORTEST_PATH,
        nodes=tuple(nodes),
        edges=tuple(edges),
        start=start.id,
        end=target.id,
        objective=Objective.single(objective),
        base_metric=objective,
        scenario_id="custom",
        title=f"Custom Network ({n} nodes)",
    )


def make_tour_scenario(n: int = 10, seed: Optional[int] = None) -> Scenario:
    """Euclidean tour over ``S`` and ``n - 1`` random nodes (``n`` clamped to 6..18)."""
    n = _clamp(n, 6, 18)
    rng = SeedManager(seed).create_random_state("tour", n)
    start = Node("S", PAD, PAD + 60, label="S")
    points = _sample_points(rng, n - 1, 70, [(start.x, start.y)], 5000)
    nodes = [start]
    nodes.extend(
        Node(f"N{i}", _round(x), _round(y), label=f"N{i}")
        for i, (x, y) in enumerate(points, start=1)
    )
    return Scenario(
        kind=ProblemKind.TOUR,
        nodes=tuple(nodes),
        start=start.id,
        scenario_id="tsp",
        title=f"TSP ({n} nodes)",
    )


def make_routing_scenario(
    customers: int = 12, capacity: float = 8, seed: Optional[int] = None
) -> Scenario:
    """Depot ``S`` and ``C1..`` customers with demands 1..4 (customers clamped to 6..30)."""
    customers = _clamp(customers, 6, 30)
    rng = SeedManager(seed).create_random_state("routing", customers, capacity)
    depot = Node("S", PAD, PAD + 60, label="Depot")
    points = _sample_points(rng, customers, 60, [(depot.x, depot.y)], 6000)
    nodes = [depot]
    for i, (x, y) in enumerate(points, start=1):
        nodes.append(
            Node(f"C{i}", _round(x), _round(y), label=f"C{i}", demand=rng.randint(1, 4))
        )
    return Scenario(
        kind=ProblemKind.ROUTING,
        nodes=tuple(nodes),
        start=depot.id,
        capacity=float(capacity),
        scenario_id="vrp",
        title=f"VRP ({customers} customers)",
    )


def make_picking_scenario(
    rows: int = 5, cols: int = 8, picks: int = 10, seed: Optional[int] = None
) -> Scenario:
    """Warehouse picking on a jittered ``rows x cols`` shelf grid.

    The dock ``S`` sits at the grid origin; ``picks`` distinct cells become
    ``P1..`` (at most every cell). Tours are costed with Manhattan distance.
    """
    rows = _clamp(rows, 3, 12)
    cols = _clamp(cols, 4, 18)
    rng = SeedManager(seed).create_random_state("picking", rows, cols, picks)

    cells = [
        (
            PICK_PAD + c * PICK_CELL + (rng.random() - 0.5) * PICK_JITTER,
            PICK_PAD + r * PICK_CELL + (rng.random() - 0.5) * PICK_JITTER,
        )
        for r in range(rows)
        for c in range(cols)
    ]
    chosen = rng.sample(cells, max(0, min(int(picks), len(cells))))

    nodes = [Node("S", PICK_PAD, PICK_PAD, label="Dock")]
    nodes.extend(
        Node(f"P{i}", _round(x), _round(y), label=f"P{i}")
        for i, (x, y) in enumerate(chosen, start=1)
    )
    return Scenario(
        kind=ProblemKind.PICKING,
        nodes=tuple(nodes),
        start="S",
        scenario_id="pick",
        title=f"Warehouse Picking ({len(chosen)} picks)",
    )
