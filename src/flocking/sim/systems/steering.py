from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence, Tuple

from pygame.math import Vector2

from ..core.agent import Agent, Obstacle
from ..utils.math2d import (
    _add,
    _clamp_length,
    _dot,
    _length,
    _safe_normalize,
    _scale,
    _set_length,
    _sub,
)

if TYPE_CHECKING:
    from .neighbors import BruteForceQuery, SpatialGrid

_MIN_DISTANCE_SQ = 1e-18


@dataclass(frozen=True, slots=True)
class SteeringForces:
    """Raw (unweighted) steering vectors for one agent, computed from the pre-tick state."""

    cohesion: Vector2 = field(default_factory=Vector2)
    avoidance: Vector2 = field(default_factory=Vector2)
    following: Vector2 = field(default_factory=Vector2)
    obstacle: Vector2 = field(default_factory=Vector2)
    noise: Vector2 = field(default_factory=Vector2)


def steer(desired: Vector2, velocity: Vector2, max_speed: float, max_force: float) -> Vector2:
    """Seek primitive: head for ``desired`` at full speed, limited to ``max_force``.

    A zero ``desired`` means no steer at all, not "brake to a stop". Any other
    ``desired``, however short, is rescaled to ``max_speed``.
    """
    if desired.x == 0.0 and desired.y == 0.0:
        return Vector2()
    return _clamp_length(_sub(_set_length(desired, max_speed), velocity), max_force)


def cohesion(agents: Sequence[Agent], index: int, query: "BruteForceQuery | SpatialGrid") -> Vector2:
    agent = agents[index]
    params = agent.params
    # The acting agent counts towards its own centre of mass.
    neighbors = query.neighbors_within(agents, index, params.follow_radius, include_self=True)
    if not neighbors:
        return Vector2()
    total = Vector2()
    for other_index in neighbors:
        total = _add(total, agents[other_index].position)
    desired = _sub(_scale(total, 1.0 / len(neighbors)), agent.position)
    return steer(desired, agent.velocity, params.max_speed, params.max_force)


def avoidance(agents: Sequence[Agent], index: int, query: "BruteForceQuery | SpatialGrid") -> Vector2:
    agent = agents[index]
    params = agent.params
    push = Vector2()
    for other_index in query.neighbors_within(agents, index, params.avoid_radius):
        offset = _sub(agents[other_index].position, agent.position)
        dist_sq = _dot(offset, offset)
        if dist_sq <= _MIN_DISTANCE_SQ:
            # Coincident agents give no direction to flee in.
            continue
        # normalize(offset) / |offset| == offset / |offset|^2
        push = _sub(push, _scale(offset, 1.0 / dist_sq))
    return steer(push, agent.velocity, params.max_speed, params.max_force)


def following(agents: Sequence[Agent], index: int, query: "BruteForceQuery | SpatialGrid") -> Vector2:
    agent = agents[index]
    params = agent.params
    neighbors = query.neighbors_within(agents, index, params.follow_radius)
    if not neighbors:
        return Vector2()
    total = Vector2()
    for other_index in neighbors:
        total = _add(total, agents[other_index].velocity)
    desired = _scale(total, 1.0 / len(neighbors))
    return steer(desired, agent.velocity, params.max_speed, params.max_force)


def obstacle_avoidance(agent: Agent, obstacles: Sequence[Obstacle]) -> Vector2:
    """Unit deflection away from the closest obstacle lying near the agent's line of travel.

    The line is infinite in both directions, so obstacles behind the agent count too.
    The result is not passed through :func:`steer`.
    """
    velocity = agent.velocity
    speed_sq = _dot(velocity, velocity)
    if speed_sq <= _MIN_DISTANCE_SQ or not obstacles:
        return Vector2()
    closest_dist_sq = math.inf
    perpendicular = Vector2()
    for obstacle in obstacles:
        displacement = _sub(obstacle.position, agent.position)
        offset = _sub(displacement, _scale(velocity, _dot(displacement, velocity) / speed_sq))
        if _length(offset) >= obstacle.affect_radius:
            continue
        dist_sq = _dot(displacement, displacement)
        if dist_sq < closest_dist_sq:
            closest_dist_sq = dist_sq
            perpendicular = offset
    return _safe_normalize(_scale(perpendicular, -1.0))


def compute_forces(
    agents: Sequence[Agent],
    index: int,
    obstacles: Sequence[Obstacle],
    query: "BruteForceQuery | SpatialGrid",
    noise: Vector2 | None = None,
) -> SteeringForces:
    """Read-only pass over the snapshot; nothing in ``agents`` is modified."""
    return SteeringForces(
        cohesion=cohesion(agents, index, query),
        avoidance=avoidance(agents, index, query),
        following=following(agents, index, query),
        obstacle=obstacle_avoidance(agents[index], obstacles),
        noise=Vector2() if noise is None else Vector2(noise),
    )


def compute_all_forces(
    agents: Sequence[Agent],
    obstacles: Sequence[Obstacle],
    query: "BruteForceQuery | SpatialGrid",
    noise: Sequence[Vector2] | None = None,
) -> Tuple[SteeringForces, ...]:
    return tuple(
        compute_forces(agents, index, obstacles, query, None if noise is None else noise[index])
        for index in range(len(agents))
    )
