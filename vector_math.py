# vector_math.py

"""
Plain 2D vector helpers used for distance and overlap tests.

Vectors are length-2 NumPy arrays (or anything NumPy can turn into one).
"""

import numpy as np


def subtract(a, b) -> np.ndarray:
    """Component-wise a - b."""
    return np.asarray(a, dtype=float) - np.asarray(b, dtype=float)


def magnitude(v) -> float:
    """Euclidean norm, sqrt(x^2 + y^2)."""
    x, y = v[0], v[1]
    return float(np.sqrt(x * x + y * y))


def overlap(a, b) -> bool:
    """
    Circle-circle intersection test between two particles.
    Touching circles (distance == sum of radii) count as overlapping.
    """
    return magnitude(subtract(a.location, b.location)) <= a.radius + b.radius
