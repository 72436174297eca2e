"""Tests for scoring and standings."""

import pytest

from dashengine.scoring import PlayerResult, compute_standings, score
from dashengine.types.base import INF


@pytest.mark.parametrize(
    "optimum,submitted,expected",
    [
        (25, 25, 1000),
        (25, 27, 926),
        (100, 200, 500),
        (100, 80, 1000),
        (3, 1999, 2),
        (3, 10**7, 0),
    ],
)
def test_score(optimum, submitted, expected):
    assert score(optimum, submitted) == expected


def test_score_half_rounds_up():
    # 1000 * 3 / 2000 == 1.5
    assert score(3, 2000) == 2


@pytest.mark.parametrize("optimum", [0, -1, INF])
def test_score_without_usable_optimum(optimum):
    assert score(optimum, 10) == 0


def test_score_infeasible_or_uncostable_submission():
    assert score(10, 10, feasible=False) == 0
    assert score(10, INF) == 0


def test_compute_standings_orders_by_score_then_time():
    players = [
        PlayerResult("ana", 900, 30.0),
        PlayerResult("ben", 1000, 45.0),
        PlayerResult("cy", 900, 12.5),
        PlayerResult("dee", 0, 5.0),
    ]
    standings = compute_standings(players)
    assert [s.name for s in standings] == ["ben", "cy", "ana", "dee"]
    assert [s.rank for s in standings] == [1, 2, 3, 4]
    assert [s.points for s in standings] == [23, 22, 21, 20]


def test_points_never_negative():
    standings = compute_standings(PlayerResult(f"p{i}", 10, float(i)) for i in range(30))
    assert standings[-1].rank == 30
    assert standings[-1].points == 0
    assert min(s.points for s in standings) == 0


def test_empty_standings():
    assert compute_standings([]) == []
