from __future__ import annotations

from .sim.core.agent import Agent, AgentParams, Obstacle, SteeringWeights
from .sim.core.config import ConfigError, PerceptionConfig, SimulationConfig, WeightsConfig, load_config
from .sim.core.world import World, init_simulation

__all__ = [
    "Agent",
    "AgentParams",
    "ConfigError",
    "Obstacle",
    "PerceptionConfig",
    "SimulationConfig",
    "SteeringWeights",
    "WeightsConfig",
    "World",
    "init_simulation",
    "load_config",
]
