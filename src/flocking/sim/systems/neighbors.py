from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

from pygame.math import Vector2

if TYPE_CHECKING:
    from ..core.agent import Agent


class BruteForceQuery:
    """Linear scan over every agent; O(n) per query, O(n^2) per tick."""

    def __init__(self) -> None:
        self.checks = 0

    def rebuild(self, agents: Sequence["Agent"]) -> None:
        self.checks = 0

    def neighbors_within(
        self,
        agents: Sequence["Agent"],
        index: int,
        radius: float,
        include_self: bool = False,
    ) -> List[int]:
        """Indices of agents strictly closer than ``radius`` to ``agents[index]``, ascending.

        ``include_self`` keeps the acting agent in the result whenever ``radius > 0``,
        since its own displacement is zero.
        """
        found: List[int] = []
        if radius <= 0:
            return found
        origin = agents[index].position
        pos_x = origin.x
        pos_y = origin.y
        radius_sq = radius * radius
        for other_index, other in enumerate(agents):
            if other_index == index:
                if include_self:
                    found.append(other_index)
                continue
            self.checks += 1
            pos = other.position
            offset_x = pos.x - pos_x
            offset_y = pos.y - pos_y
            if offset_x * offset_x + offset_y * offset_y < radius_sq:
                found.append(other_index)
        return found


class SpatialGrid:
    """Uniform bucket grid over agent indices, rebuilt from the pre-tick positions."""

    def __init__(self, cell_size: float) -> None:
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List[int]] = {}
        self._active_keys: List[Tuple[int, int]] = []
        self.checks = 0

    def clear(self) -> None:
        for key in self._active_keys:
            bucket = self._cells.get(key)
            if bucket:
                bucket.clear()
        self._active_keys.clear()

    def rebuild(self, agents: Sequence["Agent"]) -> None:
        self.clear()
        self.checks = 0
        for index, agent in enumerate(agents):
            self.insert(index, agent.position)

    def insert(self, index: int, position: Vector2) -> None:
        key = self._cell_key(position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
            self._active_keys.append(key)
        elif not bucket:
            # Bucket exists but was cleared on the last rebuild; mark it active again.
            self._active_keys.append(key)
        bucket.append(index)

    def neighbors_within(
        self,
        agents: Sequence["Agent"],
        index: int,
        radius: float,
        include_self: bool = False,
    ) -> List[int]:
        found: List[int] = []
        if radius <= 0:
            return found
        origin = agents[index].position
        pos_x = origin.x
        pos_y = origin.y
        base_key = self._cell_key(origin)
        cell_range = int(math.ceil(radius / self._cell_size))
        radius_sq = radius * radius
        cells = self._cells

        for dx in range(-cell_range, cell_range + 1):
            for dy in range(-cell_range, cell_range + 1):
                bucket = cells.get((base_key[0] + dx, base_key[1] + dy))
                if not bucket:
                    continue
                for other_index in bucket:
                    if other_index == index:
                        if include_self:
                            found.append(other_index)
                        continue
                    self.checks += 1
                    pos = agents[other_index].position
                    offset_x = pos.x - pos_x
                    offset_y = pos.y - pos_y
                    if offset_x * offset_x + offset_y * offset_y < radius_sq:
                        found.append(other_index)
        found.sort()
        return found

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(position.x // self._cell_size), int(position.y // self._cell_size))


def make_query(kind: str, cell_size: float) -> BruteForceQuery | SpatialGrid:
    if kind == "grid":
        return SpatialGrid(cell_size)
    return BruteForceQuery()
