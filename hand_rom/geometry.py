"""
3D vector helpers shared by every angle calculator.

Points may be `Landmark` models, objects exposing x/y/z, dicts or 3-sequences.
Vector operations return numpy arrays; scalar operations return plain floats.
"""

import numpy as np
from typing import Iterable, Sequence

EPSILON = 1e-9


def as_vector(point) -> np.ndarray:
    """Return a float64 array (x, y, z) for any supported landmark format."""
    if isinstance(point, np.ndarray):
        return point.astype(np.float64)[:3]
    if hasattr(point, "x") and hasattr(point, "y"):
        return np.array([point.x, point.y, getattr(point, "z", 0.0)], dtype=np.float64)
    if isinstance(point, dict):
        return np.array([point.get("x", 0.0), point.get("y", 0.0), point.get("z", 0.0)], dtype=np.float64)
    if isinstance(point, (list, tuple)) and len(point) >= 3:
        return np.array(point[:3], dtype=np.float64)
    raise ValueError("Unsupported landmark format; expected object with x, y, z or a sequence of 3 values.")


def subtract(a, b) -> np.ndarray:
    return as_vector(a) - as_vector(b)


def add(a, b) -> np.ndarray:
    return as_vector(a) + as_vector(b)


def scale(v, factor: float) -> np.ndarray:
    return as_vector(v) * factor


def dot(a, b) -> float:
    return float(np.dot(as_vector(a), as_vector(b)))


def cross(a, b) -> np.ndarray:
    return np.cross(as_vector(a), as_vector(b))


def magnitude(v) -> float:
    return float(np.linalg.norm(as_vector(v)))


def normalize(v) -> np.ndarray:
    v = as_vector(v)
    length = np.linalg.norm(v)
    if length < EPSILON:
        return np.zeros(3)
    return v / length


def distance(a, b) -> float:
    """Euclidean distance between two points in normalized coordinates."""
    return magnitude(subtract(a, b))


def average_points(points: Iterable) -> np.ndarray:
    return np.mean([as_vector(p) for p in points], axis=0)


def angle_between_vectors(v1, v2) -> float:
    """Unsigned angle in degrees between two vectors; 0 if either is degenerate."""
    v1 = as_vector(v1)
    v2 = as_vector(v2)
    mag1 = np.linalg.norm(v1)
    mag2 = np.linalg.norm(v2)
    if mag1 < EPSILON or mag2 < EPSILON:
        return 0.0
    cos_angle = np.dot(v1, v2) / (mag1 * mag2)
    if not np.isfinite(cos_angle):
        return 0.0
    return float(np.degrees(np.arccos(np.clip(cos_angle, -1.0, 1.0))))


def angle_between(a, b, c) -> float:
    """Return angle ABC (in degrees) at vertex b between rays to a and c."""
    return angle_between_vectors(subtract(a, b), subtract(c, b))


def all_present(landmarks: Sequence, indices: Iterable[int]) -> bool:
    if not landmarks:
        return False
    return all(0 <= i < len(landmarks) and landmarks[i] is not None for i in indices)
