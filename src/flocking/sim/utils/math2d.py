from __future__ import annotations

import math

from pygame.math import Vector2

_EPSILON_SQ = 1e-18


def _add(a: Vector2, b: Vector2) -> Vector2:
    return Vector2(a.x + b.x, a.y + b.y)


def _sub(a: Vector2, b: Vector2) -> Vector2:
    return Vector2(a.x - b.x, a.y - b.y)


def _scale(vector: Vector2, k: float) -> Vector2:
    return Vector2(vector.x * k, vector.y * k)


def _dot(a: Vector2, b: Vector2) -> float:
    return a.x * b.x + a.y * b.y


def _length(vector: Vector2) -> float:
    return math.hypot(vector.x, vector.y)


def _safe_normalize(vector: Vector2) -> Vector2:
    return _safe_normalize_xy(vector.x, vector.y)


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq <= _EPSILON_SQ:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _set_length(vector: Vector2, length: float) -> Vector2:
    """Rescale to ``length``; only an exactly zero vector stays zero."""
    magnitude = math.hypot(vector.x, vector.y)
    if magnitude == 0.0:
        return Vector2()
    return Vector2(vector.x / magnitude * length, vector.y / magnitude * length)


def _clamp_length(vector: Vector2, max_length: float) -> Vector2:
    return Vector2(*_clamp_length_xy_f(vector.x, vector.y, max_length))


def _clamp_length_xy_f(x: float, y: float, max_length: float) -> tuple[float, float]:
    if max_length <= 0.0:
        return 0.0, 0.0
    magnitude_sq = x * x + y * y
    max_sq = max_length * max_length
    if magnitude_sq <= max_sq:
        return x, y
    inv = max_length / math.sqrt(magnitude_sq)
    x *= inv
    y *= inv
    # Rounding in the rescale can land one ulp past the limit.
    while x * x + y * y > max_sq:
        x = math.nextafter(x, 0.0)
        y = math.nextafter(y, 0.0)
    return x, y


def _heading_from_velocity(vector: Vector2) -> float:
    if vector.length_squared() < 1e-12:
        return 0.0
    return math.atan2(vector.y, vector.x)


def _hue_from_heading(heading: float) -> float:
    hue = math.degrees(heading) % 360.0
    # tiny negative angles round up to exactly 360.0
    return 0.0 if hue >= 360.0 else hue
