"""Vector helpers for preference centroids.

Functions:
    mean_vector(vectors): Coordinate-wise mean, or None when there is nothing to average.
    normalize_vector(vector): Scale to unit L2 norm; zero vectors are returned unchanged.
    cosine_similarity(a, b): Cosine of the angle between two equal-length vectors.
    pack_vector(vector) / unpack_vector(blob, dim): float32 blob codec for persistence.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from jobfilter.core.errors import DimensionMismatchError

VECTOR_DTYPE = "float32"

ArrayLike = Sequence[float] | np.ndarray


def _as_array(vector: ArrayLike) -> np.ndarray:
    return np.asarray(vector, dtype=np.float64)


def mean_vector(vectors: Sequence[ArrayLike]) -> np.ndarray | None:
    if len(vectors) == 0:
        return None
    dimension = len(vectors[0])
    if dimension == 0:
        return None
    total = np.zeros(dimension, dtype=np.float64)
    for vector in vectors:
        if len(vector) != dimension:
            raise DimensionMismatchError()
        total += _as_array(vector)
    return total / len(vectors)


def normalize_vector(vector: ArrayLike) -> np.ndarray:
    arr = _as_array(vector)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return arr
    return arr / norm


def cosine_similarity(a: ArrayLike, b: ArrayLike) -> float:
    if len(a) != len(b):
        raise DimensionMismatchError()
    left = _as_array(a)
    right = _as_array(b)
    norm_left = float(np.linalg.norm(left))
    norm_right = float(np.linalg.norm(right))
    if norm_left == 0.0 or norm_right == 0.0:
        return 0.0
    return float(np.dot(left, right) / (norm_left * norm_right))


def pack_vector(vector: ArrayLike) -> bytes:
    return np.asarray(vector, dtype=np.float32).tobytes()


def unpack_vector(blob: bytes | None, dim: int | None = None) -> np.ndarray | None:
    if blob is None:
        return None
    arr = np.frombuffer(blob, dtype=np.float32)
    if dim is not None and arr.size != dim:
        raise DimensionMismatchError(
            f"Stored vector has {arr.size} components, expected {dim}"
        )
    return arr.astype(np.float64)
