"""Vector similarity helpers."""
from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Return the cosine similarity of two equal-length vectors.

    The result is ``nan`` when either vector has zero norm.
    """

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError("Vectors must be of the same dimension")

    norm_product = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if norm_product == 0.0:
        return math.nan
    return float(np.dot(a, b)) / norm_product


def has_usable_norm(vector: Sequence[float]) -> bool:
    """Whether *vector* is non-empty, finite and has a non-zero norm."""

    values = np.asarray(vector, dtype=np.float64)
    if values.ndim != 1 or values.size == 0:
        return False
    if not np.all(np.isfinite(values)):
        return False
    return float(np.linalg.norm(values)) > 0.0


__all__ = ["cosine_similarity", "has_usable_norm"]
