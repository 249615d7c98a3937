from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

NEIGHBOR_QUERIES = ("brute", "grid")


class ConfigError(ValueError):
    """Raised when a simulation configuration violates its contract."""


@dataclass
class WeightsConfig:
    cohesion: float = 1.0
    avoidance: float = 4.0
    following: float = 2.0
    obstacle: float = 0.4


@dataclass
class PerceptionConfig:
    follow_radius: float = 100.0
    avoid_radius: float = 30.0


@dataclass
class SimulationConfig:
    num_boids: int = 70
    max_speed: float = 6.0
    max_force: float = 0.03
    obstacle_affect_radius: float = 100.0
    initial_speed: float = 3.0
    noise_amplitude: float = 0.1
    domain_size: tuple[float, float] = (800.0, 600.0)
    seed: int = 42
    neighbor_query: str = "brute"
    cell_size: float = 100.0
    frame_interval: float = 1.0 / 60.0
    config_version: str = "v1"
    weights: WeightsConfig = field(default_factory=WeightsConfig)
    perception: PerceptionConfig = field(default_factory=PerceptionConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def validate(self) -> "SimulationConfig":
        if isinstance(self.num_boids, bool) or not isinstance(self.num_boids, int):
            raise ConfigError(f"num_boids must be an integer, got {self.num_boids!r}")
        if self.num_boids < 0:
            raise ConfigError(f"num_boids must be >= 0, got {self.num_boids}")
        for name in ("max_speed", "max_force", "obstacle_affect_radius", "initial_speed", "noise_amplitude"):
            _require_non_negative(name, getattr(self, name))
        _require_non_negative("perception.follow_radius", self.perception.follow_radius)
        _require_non_negative("perception.avoid_radius", self.perception.avoid_radius)
        for name in ("cohesion", "avoidance", "following", "obstacle"):
            _require_finite(f"weights.{name}", getattr(self.weights, name))
        width, height = _domain_pair(self.domain_size)
        _require_positive("domain_size.width", width)
        _require_positive("domain_size.height", height)
        _require_positive("cell_size", self.cell_size)
        _require_positive("frame_interval", self.frame_interval)
        if self.neighbor_query not in NEIGHBOR_QUERIES:
            raise ConfigError(
                f"neighbor_query must be one of {', '.join(NEIGHBOR_QUERIES)}, got {self.neighbor_query!r}"
            )
        return self


def load_config(raw: Dict[str, Any]) -> SimulationConfig:
    try:
        weights = WeightsConfig(**raw.get("weights", {}))
        perception = PerceptionConfig(**raw.get("perception", {}))
        sim_values = {k: v for k, v in raw.items() if k not in {"weights", "perception"}}
        if "domain_size" in sim_values:
            sim_values["domain_size"] = _domain_pair(sim_values["domain_size"])
        config = SimulationConfig(weights=weights, perception=perception, **sim_values)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc
    return config.validate()


_PARAMETER_DOCS: Dict[str, str] = {
    "num_boids": "The number of boids to simulate.",
    "max_speed": "The maximum speed of each boid.",
    "max_force": "The maximum steering force each boid can produce. This should be low for natural behavior.",
    "obstacle_affect_radius": "How far boids will try to stay away from obstacles.",
    "weights.cohesion": "Causes boids to fly towards other boids within follow_radius.",
    "weights.avoidance": "Causes boids to fly away from nearby boids within avoid_radius.",
    "weights.following": "Causes boids to match velocities with other boids within follow_radius.",
    "weights.obstacle": "Causes boids to avoid obstacles they see ahead.",
    "perception.follow_radius": "Boids fly towards and match velocities with other boids within this distance.",
    "perception.avoid_radius": "Boids fly away from boids within this distance.",
}


def parameter_docs(config: SimulationConfig) -> Dict[str, Dict[str, Any]]:
    """Describe each tunable parameter with its current value, keyed by dotted name."""
    described: Dict[str, Dict[str, Any]] = {}
    for name, doc in _PARAMETER_DOCS.items():
        value: Any = config
        for part in name.split("."):
            value = getattr(value, part)
        described[name] = {"doc": doc, "value": value}
    return described


def _domain_pair(value: Any) -> tuple[float, float]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    raise ConfigError(f"domain_size must be a (width, height) pair, got {value!r}")


def _require_finite(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigError(f"{name} must be a finite number, got {value!r}")


def _require_non_negative(name: str, value: float) -> None:
    _require_finite(name, value)
    if value < 0:
        raise ConfigError(f"{name} must be >= 0, got {value}")


def _require_positive(name: str, value: float) -> None:
    _require_finite(name, value)
    if value <= 0:
        raise ConfigError(f"{name} must be > 0, got {value}")
