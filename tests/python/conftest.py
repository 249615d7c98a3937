import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from flocking.sim.core.config import PerceptionConfig, SimulationConfig, WeightsConfig  # noqa: E402


@pytest.fixture
def quiet_config() -> SimulationConfig:
    """Noise-free, single-boid configuration that individual tests reshape."""
    return SimulationConfig(
        num_boids=1,
        seed=11,
        noise_amplitude=0.0,
        domain_size=(800.0, 600.0),
        weights=WeightsConfig(cohesion=0.0, avoidance=0.0, following=0.0, obstacle=0.0),
        perception=PerceptionConfig(follow_radius=100.0, avoid_radius=30.0),
    )
