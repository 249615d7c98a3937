from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2


@dataclass(slots=True)
class SteeringWeights:
    cohesion: float = 1.0
    avoidance: float = 4.0
    following: float = 2.0
    obstacle: float = 0.4


@dataclass(slots=True)
class AgentParams:
    max_speed: float = 6.0
    max_force: float = 0.03
    follow_radius: float = 100.0
    avoid_radius: float = 30.0
    weights: SteeringWeights = field(default_factory=SteeringWeights)


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    velocity: Vector2
    params: AgentParams = field(default_factory=AgentParams)
    heading: float = 0.0


@dataclass(frozen=True, slots=True)
class Obstacle:
    x: float
    y: float
    affect_radius: float

    @property
    def position(self) -> Vector2:
        return Vector2(self.x, self.y)
