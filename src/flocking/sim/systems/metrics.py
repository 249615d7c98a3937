from __future__ import annotations

import math
from typing import Sequence

from ..core.agent import Agent
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    agents: Sequence[Agent],
    obstacle_count: int,
    neighbor_checks: int,
    duration_ms: float,
) -> TickMetrics:
    average_speed, polarization = flock_stats(agents)
    return TickMetrics(
        tick=tick,
        population=len(agents),
        obstacles=obstacle_count,
        neighbor_checks=neighbor_checks,
        average_speed=average_speed,
        polarization=polarization,
        tick_duration_ms=duration_ms,
    )


def flock_stats(agents: Sequence[Agent]) -> tuple[float, float]:
    """Mean speed and polarization (length of the mean unit heading, 0..1)."""
    if not agents:
        return 0.0, 0.0
    speed_sum = 0.0
    heading_x = 0.0
    heading_y = 0.0
    for agent in agents:
        speed = agent.velocity.length()
        speed_sum += speed
        if speed > 1e-9:
            heading_x += agent.velocity.x / speed
            heading_y += agent.velocity.y / speed
    count = len(agents)
    return speed_sum / count, math.hypot(heading_x, heading_y) / count
