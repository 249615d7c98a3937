from __future__ import annotations

import random

import pytest
from pygame.math import Vector2

from flocking.sim.core.agent import Agent
from flocking.sim.systems.neighbors import BruteForceQuery, SpatialGrid, make_query


def _agents(positions) -> list[Agent]:
    return [Agent(id=idx, position=Vector2(pos), velocity=Vector2()) for idx, pos in enumerate(positions)]


def test_neighbors_use_strict_less_than_and_exclude_self():
    agents = _agents([(0, 0), (3, 0), (2.999, 0), (0, -1)])
    query = BruteForceQuery()

    assert query.neighbors_within(agents, 0, 3.0) == [2, 3]


def test_zero_radius_has_no_neighbors_even_with_self_included():
    agents = _agents([(0, 0), (0, 0)])
    query = BruteForceQuery()

    assert query.neighbors_within(agents, 0, 0.0) == []
    assert query.neighbors_within(agents, 0, 0.0, include_self=True) == []


def test_include_self_adds_acting_agent():
    agents = _agents([(0, 0), (1, 0), (50, 0)])
    query = BruteForceQuery()

    assert query.neighbors_within(agents, 1, 5.0, include_self=True) == [0, 1]


def test_brute_force_counts_checks_and_resets_on_rebuild():
    agents = _agents([(0, 0), (1, 0), (2, 0)])
    query = BruteForceQuery()
    query.rebuild(agents)
    query.neighbors_within(agents, 0, 10.0)
    query.neighbors_within(agents, 1, 10.0)
    assert query.checks == 4
    query.rebuild(agents)
    assert query.checks == 0


def test_grid_neighbor_query_matches_bruteforce():
    rng = random.Random(17)
    agents = _agents([(rng.uniform(-20, 220), rng.uniform(-20, 220)) for _ in range(120)])
    grid = SpatialGrid(cell_size=25.0)
    grid.rebuild(agents)
    brute = BruteForceQuery()

    for index in range(len(agents)):
        for radius in (0.0, 10.0, 30.0, 75.0):
            assert grid.neighbors_within(agents, index, radius) == brute.neighbors_within(agents, index, radius)
            assert grid.neighbors_within(agents, index, radius, include_self=True) == brute.neighbors_within(
                agents, index, radius, include_self=True
            )


def test_grid_rebuild_forgets_previous_positions():
    agents = _agents([(0, 0), (1, 1)])
    grid = SpatialGrid(cell_size=2.0)
    grid.rebuild(agents)
    assert grid.neighbors_within(agents, 0, 3.0) == [1]

    agents[1].position.update(100.0, 100.0)
    grid.rebuild(agents)
    assert grid.neighbors_within(agents, 0, 3.0) == []


@pytest.mark.parametrize("kind, expected", [("brute", BruteForceQuery), ("grid", SpatialGrid)])
def test_make_query(kind, expected):
    assert isinstance(make_query(kind, 10.0), expected)
