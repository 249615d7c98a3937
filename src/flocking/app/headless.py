from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional, Sequence

from ..sim.core.config import ConfigError, SimulationConfig
from ..sim.core.world import World

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "obstacles",
    "neighbor_checks",
    "avg_speed",
    "polarization",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "obstacles",
    "neighbor_checks",
    "avg_speed",
    "polarization",
    "tick_ms",
    "min_speed",
    "max_speed",
    "speed_limit_ratio",
    "centroid_x",
    "centroid_y",
    "occupied_cells",
    "max_cell_occupancy",
    "neighbor_checks_per_agent",
    "tick_ms_per_agent",
]


def _format_basic_row(metrics: object, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.obstacles,
        metrics.neighbor_checks,
        f"{metrics.average_speed:.4f}",
        f"{metrics.polarization:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: object, tick_ms: float) -> list[object]:
    population = metrics.population
    config = world.config
    if population <= 0:
        min_speed = 0.0
        max_speed = 0.0
        speed_limit_ratio = 0.0
        centroid_x = 0.0
        centroid_y = 0.0
        occupied_cells = 0
        max_cell_occupancy = 0
        neighbor_checks_per_agent = 0.0
        tick_ms_per_agent = 0.0
    else:
        speeds = [agent.velocity.length() for agent in world.agents]
        min_speed = min(speeds)
        max_speed = max(speeds)
        speed_limit_ratio = 0.0 if config.max_speed <= 0 else max_speed / config.max_speed
        centroid_x = sum(agent.position.x for agent in world.agents) / population
        centroid_y = sum(agent.position.y for agent in world.agents) / population

        cell_size = config.cell_size
        cell_counts: dict[tuple[int, int], int] = {}
        for agent in world.agents:
            cell_key = (int(agent.position.x // cell_size), int(agent.position.y // cell_size))
            cell_counts[cell_key] = cell_counts.get(cell_key, 0) + 1
        occupied_cells = len(cell_counts)
        max_cell_occupancy = max(cell_counts.values())

        neighbor_checks_per_agent = metrics.neighbor_checks / population
        tick_ms_per_agent = tick_ms / population

    return _format_basic_row(metrics, tick_ms) + [
        f"{min_speed:.4f}",
        f"{max_speed:.4f}",
        f"{speed_limit_ratio:.4f}",
        f"{centroid_x:.4f}",
        f"{centroid_y:.4f}",
        occupied_cells,
        max_cell_occupancy,
        f"{neighbor_checks_per_agent:.4f}",
        f"{tick_ms_per_agent:.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def _parse_point(text: str) -> tuple[float, float]:
    try:
        x_text, y_text = text.split(",")
        return float(x_text), float(y_text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected X,Y but got {text!r}") from exc


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 1000,
    config_path: Optional[Path] = None,
    obstacles: Sequence[tuple[float, float]] = (),
) -> World:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    world = World(config)
    for point in obstacles:
        world.add_obstacle(point)

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    speed_series: list[float] = []
    polarization_series: list[float] = []
    max_tick_ms = (-1.0, -1)
    max_polarization = (-1.0, -1)

    logger.info("Running %d ticks with %d boids (seed=%d)", steps, config.num_boids, config.seed)
    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                speed_series.append(metrics.average_speed)
                polarization_series.append(metrics.polarization)
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, tick)
                if metrics.polarization > max_polarization[0]:
                    max_polarization = (metrics.polarization, tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "num_boids": config.num_boids,
            "obstacles": len(world.obstacles),
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "avg_speed": _summary_stats(speed_series),
            "polarization": _summary_stats(polarization_series),
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
                "polarization": {"value": float(max_polarization[0]), "tick": max_polarization[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "avg_speed": _summary_stats(speed_series[tail_slice]),
                "polarization": _summary_stats(polarization_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless flocking simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=1000,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument(
        "--obstacle",
        type=_parse_point,
        action="append",
        default=[],
        metavar="X,Y",
        help="Place an obstacle before the first tick (repeatable).",
    )
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        run_headless(
            args.steps,
            args.seed,
            args.log,
            deterministic_log=args.deterministic_log,
            log_format=args.log_format,
            summary_path=args.summary,
            summary_window=args.summary_window,
            config_path=args.config,
            obstacles=args.obstacle,
        )
    except ConfigError as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    main()
