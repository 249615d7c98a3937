from __future__ import annotations

import math
import random

from pygame.math import Vector2
from pytest import approx

from flocking.sim.utils.math2d import (
    _add,
    _clamp_length,
    _clamp_length_xy_f,
    _dot,
    _heading_from_velocity,
    _hue_from_heading,
    _length,
    _safe_normalize,
    _scale,
    _set_length,
    _sub,
)


def test_basic_arithmetic():
    a = Vector2(1.0, 2.0)
    b = Vector2(3.0, -4.0)
    assert _add(a, b) == Vector2(4.0, -2.0)
    assert _sub(a, b) == Vector2(-2.0, 6.0)
    assert _scale(a, -2.0) == Vector2(-2.0, -4.0)
    assert _dot(a, b) == approx(-5.0)
    assert _length(b) == approx(5.0)


def test_zero_vector_normalize_and_set_length_return_zero():
    assert _safe_normalize(Vector2()) == Vector2()
    assert _set_length(Vector2(), 5.0) == Vector2()


def test_set_length_rescales():
    result = _set_length(Vector2(3.0, 4.0), 10.0)
    assert result.x == approx(6.0)
    assert result.y == approx(8.0)


def test_clamp_length_is_noop_within_bound_and_returns_copy():
    original = Vector2(1.0, 1.0)
    clamped = _clamp_length(original, 5.0)
    assert clamped == original
    assert clamped is not original


def test_clamp_length_limits_long_vectors():
    clamped = _clamp_length(Vector2(30.0, 40.0), 5.0)
    assert clamped.length() == approx(5.0)
    assert clamped.x == approx(3.0)


def test_clamp_length_to_zero():
    assert _clamp_length(Vector2(3.0, 4.0), 0.0) == Vector2()
    assert _clamp_length_xy_f(3.0, 4.0, 0.0) == (0.0, 0.0)


def test_heading_and_hue():
    assert _heading_from_velocity(Vector2()) == 0.0
    assert _heading_from_velocity(Vector2(0.0, 2.0)) == approx(math.pi / 2)
    assert _hue_from_heading(math.pi / 2) == approx(90.0)
    assert _hue_from_heading(-math.pi / 2) == approx(270.0)
    assert 0.0 <= _hue_from_heading(-1e-20) < 360.0


def test_set_length_scales_tiny_nonzero_vectors():
    result = _set_length(Vector2(1e-10, 0.0), 6.0)
    assert result.x == approx(6.0)
    assert result.y == 0.0


def test_clamped_length_never_exceeds_limit():
    rng = random.Random(5)
    for _ in range(5000):
        limit = rng.uniform(0.1, 10.0)
        x = rng.uniform(-50.0, 50.0)
        y = rng.uniform(-50.0, 50.0)
        clamped_x, clamped_y = _clamp_length_xy_f(x, y, limit)
        assert clamped_x * clamped_x + clamped_y * clamped_y <= limit * limit
        assert Vector2(clamped_x, clamped_y).length() <= limit
        assert _clamp_length(Vector2(x, y), limit).length() <= limit
