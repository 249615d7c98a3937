from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    obstacles: List[Dict[str, float]]
    domain: "SnapshotDomain"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotDomain:
    width: float
    height: float


@dataclass(slots=True)
class SnapshotMetadata:
    frame_interval: float
    seed: int
    config_version: str
