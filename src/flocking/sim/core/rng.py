from __future__ import annotations

import math
import random

from pygame.math import Vector2


class DeterministicRng:
    def __init__(self, seed: int):
        self._random = random.Random(seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_unit_circle(self) -> Vector2:
        angle = self._random.uniform(0, 2 * math.pi)
        vector = Vector2()
        vector.from_polar((1, math.degrees(angle)))
        return vector

    def next_square(self, half_extent: float) -> Vector2:
        """Uniform, zero-mean sample from ``[-half_extent, half_extent]`` on both axes."""
        if half_extent <= 0:
            return Vector2()
        return Vector2(
            (self._random.random() - 0.5) * 2.0 * half_extent,
            (self._random.random() - 0.5) * 2.0 * half_extent,
        )
