"""Round scoring and leaderboard standings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List

from dashengine.types.base import Cost

#: Score of a submission matching the optimum.
MAX_SCORE = 1000

#: League points for first place; each lower rank earns one point less.
FIRST_PLACE_POINTS = 24


def score(optimum_cost: Cost, submitted_cost: Cost, feasible: bool = True) -> int:
    """Score a submission against the optimum on a 0..1000 scale.

    ``1000 * optimum / max(submitted, optimum)`` rounded half up, so beating
    the reference (possible against a heuristic optimum) caps at 1000.
    Infeasible submissions and rounds without a finite positive optimum
    score 0.
    """
    if not feasible:
        return 0
    if not math.isfinite(optimum_cost) or optimum_cost <= 0:
        return 0
    if not math.isfinite(submitted_cost):
        return 0
    ratio = optimum_cost / max(submitted_cost, optimum_cost)
    return max(0, math.floor(MAX_SCORE * ratio + 0.5))


@dataclass(frozen=True)
class PlayerResult:
    """One player's outcome for a round."""

    name: str
    score: int
    time_sec: float = 0.0


@dataclass(frozen=True)
class Standing:
    rank: int
    name: str
    score: int
    time_sec: float
    points: int


def compute_standings(players: Iterable[PlayerResult]) -> List[Standing]:
    """Rank players by score (descending), then time (ascending).

    Ranks start at 1 and tied players still get distinct consecutive ranks in
    sort order; insertion order breaks exact ties.
    """
    ordered = sorted(players, key=lambda p: (-p.score, p.time_sec))
    return [
        Standing(
            rank=rank,
            name=player.name,
            score=player.score,
            time_sec=player.time_sec,
            points=max(0, FIRST_PLACE_POINTS - rank),
        )
        for rank, player in enumerate(ordered, start=1)
    ]
