from __future__ import annotations

import logging
from dataclasses import replace
from time import perf_counter
from typing import Any, Dict, List, Sequence, Tuple

from pygame.math import Vector2

from .agent import Agent, AgentParams, Obstacle, SteeringWeights
from .config import SimulationConfig, _require_finite, _require_non_negative, _require_positive
from .rng import DeterministicRng
from ..systems import metrics as metrics_system
from ..systems.boundary import BoundaryPolicy
from ..systems.integrator import integrate
from ..systems.neighbors import make_query
from ..systems.steering import compute_all_forces
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotDomain, SnapshotMetadata
from ..utils.math2d import _heading_from_velocity, _hue_from_heading

logger = logging.getLogger(__name__)

_SPAWN_RNG_SALT = 0x5EED0B01D5A11CE5
_NOISE_RNG_SALT = 0xA0151E0F10CC0D35


def _derive_stream_seed(seed: int, salt: int) -> int:
    return (int(seed) ^ int(salt)) & 0xFFFFFFFFFFFFFFFF


class World:
    """Simulation context: owns the flock, the obstacle registry and the boundary.

    One call to :meth:`step` is one tick. All steering forces are computed from
    the pre-tick state before any agent is moved.
    """

    def __init__(self, config: SimulationConfig):
        self._configure(config)
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def obstacles(self) -> Tuple[Obstacle, ...]:
        return tuple(self._obstacles)

    @property
    def pending_obstacles(self) -> Tuple[Obstacle, ...]:
        return tuple(self._pending_obstacles)

    @property
    def boundary(self) -> BoundaryPolicy:
        return self._boundary

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self, config: SimulationConfig | None = None) -> None:
        """Rebuild the whole simulation, optionally with a new configuration."""
        self._configure(self._config if config is None else config)
        self._bootstrap_population()
        logger.info("Simulation reset with %d boids", len(self._agents))

    def advance(self) -> None:
        self.step(self._tick)

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        self._apply_pending_obstacles()
        agents = self._agents
        obstacles = self._obstacles
        query = self._query
        query.rebuild(agents)

        noise_amplitude = self._config.noise_amplitude
        noise = [self._noise_rng.next_square(noise_amplitude) for _ in agents]

        # Phase 1: read-only over the pre-tick state.
        forces = compute_all_forces(agents, obstacles, query, noise)

        # Phase 2: each agent mutates only itself.
        boundary = self._boundary
        for agent, agent_forces in zip(agents, forces):
            integrate(agent, agent_forces)
            boundary.wrap(agent.position)
            self._update_heading(agent)

        self._tick = tick + 1
        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(tick, agents, len(obstacles), query.checks, elapsed_ms)
        self._metrics = metrics
        logger.debug("tick %d: %d agents, %d neighbor checks", tick, len(agents), query.checks)
        return metrics

    def add_obstacle(self, position: Sequence[float] | Vector2, affect_radius: float | None = None) -> Obstacle:
        """Queue an obstacle; it joins the registry at the start of the next tick."""
        radius = self._config.obstacle_affect_radius if affect_radius is None else float(affect_radius)
        _require_non_negative("affect_radius", radius)
        x = float(position[0])
        y = float(position[1])
        _require_finite("obstacle.x", x)
        _require_finite("obstacle.y", y)
        obstacle = Obstacle(x=x, y=y, affect_radius=radius)
        self._pending_obstacles.append(obstacle)
        logger.info("Obstacle queued at (%.1f, %.1f) r=%.1f", x, y, radius)
        return obstacle

    def set_domain_size(self, width: float, height: float) -> None:
        """Move the wrap edges; agents are left where they are until their next wrap.

        The new size is kept in the configuration, so a later :meth:`reset` spawns into it.
        """
        width = float(width)
        height = float(height)
        _require_positive("domain_size.width", width)
        _require_positive("domain_size.height", height)
        self._boundary.resize(width, height)
        self._config = replace(self._config, domain_size=(width, height))
        logger.info("Domain resized to %.1fx%.1f", width, height)

    def snapshot(self, tick: int | None = None) -> Snapshot:
        tick = self._tick if tick is None else tick
        metrics = self._metrics if self._metrics is not None else self._snapshot_metrics_from_state(tick)
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for agent in self._agents],
            obstacles=[
                {"x": obstacle.x, "y": obstacle.y, "affect_radius": obstacle.affect_radius}
                for obstacle in self._obstacles
            ],
            domain=SnapshotDomain(width=self._boundary.width, height=self._boundary.height),
            metadata=SnapshotMetadata(
                frame_interval=self._config.frame_interval,
                seed=self._config.seed,
                config_version=self._config.config_version,
            ),
        )

    def _configure(self, config: SimulationConfig) -> None:
        self._config = config.validate()
        self._spawn_rng = DeterministicRng(_derive_stream_seed(config.seed, _SPAWN_RNG_SALT))
        self._noise_rng = DeterministicRng(_derive_stream_seed(config.seed, _NOISE_RNG_SALT))
        width, height = config.domain_size
        self._boundary = BoundaryPolicy(float(width), float(height))
        self._query = make_query(config.neighbor_query, config.cell_size)
        self._agents: List[Agent] = []
        self._obstacles: List[Obstacle] = []
        self._pending_obstacles: List[Obstacle] = []
        self._metrics: TickMetrics | None = None
        self._tick = 0

    def _agent_params(self) -> AgentParams:
        config = self._config
        weights = config.weights
        return AgentParams(
            max_speed=config.max_speed,
            max_force=config.max_force,
            follow_radius=config.perception.follow_radius,
            avoid_radius=config.perception.avoid_radius,
            weights=SteeringWeights(
                cohesion=weights.cohesion,
                avoidance=weights.avoidance,
                following=weights.following,
                obstacle=weights.obstacle,
            ),
        )

    def _bootstrap_population(self) -> None:
        width = self._boundary.width
        height = self._boundary.height
        for agent_id in range(self._config.num_boids):
            position = Vector2(self._spawn_rng.next_float() * width, self._spawn_rng.next_float() * height)
            velocity = self._spawn_rng.next_unit_circle() * self._config.initial_speed
            self._agents.append(
                Agent(
                    id=agent_id,
                    position=position,
                    velocity=velocity,
                    params=self._agent_params(),
                    heading=_heading_from_velocity(velocity),
                )
            )

    def _apply_pending_obstacles(self) -> None:
        if self._pending_obstacles:
            self._obstacles.extend(self._pending_obstacles)
            self._pending_obstacles.clear()

    def _update_heading(self, agent: Agent) -> None:
        if agent.velocity.length_squared() > 1e-8:
            agent.heading = _heading_from_velocity(agent.velocity)

    def _agent_snapshot(self, agent: Agent) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "speed": agent.velocity.length(),
            "heading": agent.heading,
            "hue": _hue_from_heading(agent.heading),
        }

    def _snapshot_metrics_from_state(self, tick: int) -> TickMetrics:
        return metrics_system.create_metrics(tick, self._agents, len(self._obstacles), 0, 0.0)


def init_simulation(config: SimulationConfig) -> World:
    return World(config)
