import math

import numpy as np
import pytest

from hand_rom.geometry import (
    add,
    angle_between,
    angle_between_vectors,
    as_vector,
    average_points,
    cross,
    distance,
    dot,
    magnitude,
    normalize,
    scale,
    subtract,
)
from hand_rom.models import Landmark


def test_as_vector_accepts_common_landmark_formats():
    expected = [0.1, 0.2, 0.3]
    assert as_vector(Landmark(x=0.1, y=0.2, z=0.3)).tolist() == expected
    assert as_vector({"x": 0.1, "y": 0.2, "z": 0.3}).tolist() == expected
    assert as_vector((0.1, 0.2, 0.3)).tolist() == expected
    assert as_vector(np.array([0.1, 0.2, 0.3])).tolist() == expected


def test_as_vector_rejects_unknown_format():
    with pytest.raises(ValueError):
        as_vector("not a point")


def test_basic_vector_arithmetic():
    a = (1.0, 2.0, 3.0)
    b = (0.5, 0.5, 0.5)
    assert subtract(a, b).tolist() == [0.5, 1.5, 2.5]
    assert add(a, b).tolist() == [1.5, 2.5, 3.5]
    assert scale(a, 2).tolist() == [2.0, 4.0, 6.0]
    assert dot(a, b) == pytest.approx(3.0)
    assert cross((1, 0, 0), (0, 1, 0)).tolist() == [0.0, 0.0, 1.0]
    assert magnitude((3, 4, 0)) == pytest.approx(5.0)
    assert distance((0, 0, 0), (0, 3, 4)) == pytest.approx(5.0)


def test_normalize_zero_vector_is_zero():
    assert normalize((0, 0, 0)).tolist() == [0.0, 0.0, 0.0]
    assert magnitude(normalize((2, 0, 0))) == pytest.approx(1.0)


def test_average_points():
    assert average_points([(0, 0, 0), (1, 1, 1)]).tolist() == [0.5, 0.5, 0.5]


def test_angle_between_right_and_straight_angles():
    assert angle_between((1, 0, 0), (0, 0, 0), (0, 1, 0)) == pytest.approx(90.0)
    assert angle_between((-1, 0, 0), (0, 0, 0), (1, 0, 0)) == pytest.approx(180.0)
    assert angle_between((1, 0, 0), (0, 0, 0), (2, 0, 0)) == pytest.approx(0.0)


def test_angle_between_degenerate_is_zero_not_nan():
    assert angle_between((0.5, 0.5, 0), (0.5, 0.5, 0), (0.7, 0.5, 0)) == 0.0
    assert angle_between_vectors((0, 0, 0), (0, 0, 0)) == 0.0


def test_angle_between_stays_in_range_for_random_triplets():
    rng = np.random.default_rng(7)
    for _ in range(200):
        a, b, c = rng.random((3, 3))
        angle = angle_between(a, b, c)
        assert math.isfinite(angle)
        assert 0.0 <= angle <= 180.0
