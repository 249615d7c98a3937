from __future__ import annotations

import pytest
from pygame.math import Vector2

from flocking.sim.systems.boundary import BoundaryPolicy


@pytest.mark.parametrize(
    "start, expected",
    [
        ((800.0, 10.0), (0.0, 10.0)),
        ((801.5, 10.0), (0.0, 10.0)),
        ((-5.0, 10.0), (800.0, 10.0)),
        ((10.0, 600.0), (10.0, 0.0)),
        ((10.0, -0.1), (10.0, 600.0)),
        ((-1.0, 700.0), (800.0, 0.0)),
    ],
)
def test_wrap_teleports_to_opposite_edge(start, expected):
    boundary = BoundaryPolicy(800.0, 600.0)
    position = Vector2(start)
    boundary.wrap(position)
    assert (position.x, position.y) == expected


def test_wrap_is_identity_inside_domain():
    boundary = BoundaryPolicy(800.0, 600.0)
    for point in [(0.0, 0.0), (400.0, 300.0), (799.999, 599.999)]:
        position = Vector2(point)
        boundary.wrap(position)
        assert (position.x, position.y) == point


def test_resize_moves_the_edges():
    boundary = BoundaryPolicy(800.0, 600.0)
    boundary.resize(200.0, 100.0)
    position = Vector2(500.0, 50.0)
    boundary.wrap(position)
    assert (position.x, position.y) == (0.0, 50.0)
