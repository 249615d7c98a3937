from __future__ import annotations

from pygame.math import Vector2

from ..core.agent import Agent, SteeringWeights
from ..utils.math2d import _clamp_length_xy_f
from .steering import SteeringForces


def combine(forces: SteeringForces, weights: SteeringWeights) -> Vector2:
    """Weighted sum of the four steering vectors plus the noise term."""
    return Vector2(
        weights.cohesion * forces.cohesion.x
        + weights.avoidance * forces.avoidance.x
        + weights.following * forces.following.x
        + weights.obstacle * forces.obstacle.x
        + forces.noise.x,
        weights.cohesion * forces.cohesion.y
        + weights.avoidance * forces.avoidance.y
        + weights.following * forces.following.y
        + weights.obstacle * forces.obstacle.y
        + forces.noise.y,
    )


def integrate(agent: Agent, forces: SteeringForces) -> None:
    """Apply one unit-time step to ``agent`` in place."""
    delta = combine(forces, agent.params.weights)
    vel_x, vel_y = _clamp_length_xy_f(
        agent.velocity.x + delta.x,
        agent.velocity.y + delta.y,
        agent.params.max_speed,
    )
    agent.velocity.update(vel_x, vel_y)
    agent.position.update(agent.position.x + vel_x, agent.position.y + vel_y)
