"""
pose_utils.py - Shared geometry utilities for joint angles, lengths and alignment.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

_EPSILON = 1e-9


@dataclass(frozen=True)
class AngleMeasurement:
    """An angle in degrees; degenerate when one of its vectors had zero length."""
    degrees: float
    degenerate: bool = False


# --- Math & Geometry Utilities ---
def angle_at(a: Sequence[float], b: Sequence[float], c: Sequence[float], full_range: bool = False) -> AngleMeasurement:
    """
    Calculate the angle at point b between vectors ba and bc.

    Point ordering convention:
    - a: First point (e.g., shoulder for elbow angle)
    - b: Middle point (e.g., elbow for elbow angle)
    - c: Last point (e.g., wrist for elbow angle)

    Args:
        a: First point (x, y)
        b: Vertex (x, y) - angle is calculated here
        c: Last point (x, y)
        full_range: If True, clockwise turns from ba to bc map to 360 - angle
    Returns:
        AngleMeasurement in [0, 180] (or [0, 360) with full_range). A zero-length
        vector yields 0.0 flagged as degenerate; callers must not trust it.
    """
    ba = np.array([a[0] - b[0], a[1] - b[1]], dtype=float)
    bc = np.array([c[0] - b[0], c[1] - b[1]], dtype=float)
    norm_ba = np.linalg.norm(ba)
    norm_bc = np.linalg.norm(bc)
    if norm_ba < _EPSILON or norm_bc < _EPSILON:
        return AngleMeasurement(0.0, degenerate=True)
    cosine_angle = np.dot(ba, bc) / (norm_ba * norm_bc)
    cosine_angle = np.clip(cosine_angle, -1.0, 1.0)
    angle = float(np.degrees(np.arccos(cosine_angle)))
    if full_range:
        cross = ba[0] * bc[1] - ba[1] * bc[0]
        if cross < 0 and angle > 0.0:
            angle = 360.0 - angle
    return AngleMeasurement(angle)


def calculate_length(a: Sequence[float], b: Sequence[float]) -> float:
    """Calculate Euclidean distance between two points."""
    return float(np.linalg.norm(np.array(a[:2], dtype=float) - np.array(b[:2], dtype=float)))


def point_line_distance(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    """Perpendicular distance of p from the line through a and b."""
    ab = np.array([b[0] - a[0], b[1] - a[1]], dtype=float)
    ap = np.array([p[0] - a[0], p[1] - a[1]], dtype=float)
    length = np.linalg.norm(ab)
    if length < _EPSILON:
        return float(np.linalg.norm(ap))
    return float(abs(ab[0] * ap[1] - ab[1] * ap[0]) / length)


def horizontal_reference(vertex: Sequence[float], away_from: Sequence[float]) -> tuple:
    """
    Virtual point one unit from the vertex along the image x axis, on the side
    opposite to `away_from`. Used to measure a segment against the floor
    independently of which way the body faces.
    """
    direction = 1.0 if vertex[0] >= away_from[0] else -1.0
    return (vertex[0] + direction, vertex[1])


def mean_angle(measurements: Iterable[AngleMeasurement]) -> Optional[float]:
    """Average of the non-degenerate measurements, or None if there are none."""
    values = [m.degrees for m in measurements if not m.degenerate]
    return float(np.mean(values)) if values else None
