"""
Stateless geometric helpers over normalized landmark points.

All distances are measured in the x/y image plane; depth is ignored.
"""

import math
from typing import Sequence

import numpy as np

from ..detection.landmarks import Landmark, LandmarkFrame


def distance(p1, p2) -> float:
    """Euclidean distance between two points in normalized coordinates."""
    return float(np.hypot(p2.x - p1.x, p2.y - p1.y))


def angle(p1, p2, p3) -> float:
    """Absolute angle in degrees at p2 between the rays to p1 and p3.

    Computed as the difference of the two atan2 headings, so the result
    can exceed 180 degrees for reflex configurations.
    """
    radians = (math.atan2(p3.y - p2.y, p3.x - p2.x)
               - math.atan2(p1.y - p2.y, p1.x - p2.x))
    return abs(math.degrees(radians))


def y_offset(base, tip) -> float:
    """How far tip sits above base. Positive means raised (y grows downward)."""
    return base.y - tip.y


def midpoint(p1, p2) -> Landmark:
    """Point halfway between p1 and p2."""
    return Landmark((p1.x + p2.x) / 2.0, (p1.y + p2.y) / 2.0,
                    (getattr(p1, "z", 0.0) + getattr(p2, "z", 0.0)) / 2.0)


def distances_from(frame: LandmarkFrame, anchor: int, indices: Sequence[int]) -> np.ndarray:
    """Vectorized x/y distances from landmark `anchor` to each of `indices`."""
    points = frame.to_numpy()[:, :2]
    return np.linalg.norm(points[list(indices)] - points[anchor], axis=1)


def pairwise_distances(frame: LandmarkFrame, from_indices: Sequence[int],
                       to_indices: Sequence[int]) -> np.ndarray:
    """Element-wise x/y distances between two equally long index lists."""
    points = frame.to_numpy()[:, :2]
    return np.linalg.norm(points[list(from_indices)] - points[list(to_indices)], axis=1)
