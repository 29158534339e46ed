"""
Vector math for embedding comparison.

Cosine similarity is the dot product of two vectors divided by the product
of their magnitudes. It ranges from -1 (opposite) to 1 (identical direction).
"""

import numpy as np

from shared.exceptions import DimensionMismatchError, NumericError


def _as_vector(vector) -> np.ndarray:
    return np.asarray(vector, dtype=np.float64).ravel()


def check_dimensions(a, b) -> None:
    """Raise DimensionMismatchError unless a and b have the same length."""
    if len(a) != len(b):
        raise DimensionMismatchError(expected=len(a), actual=len(b))


def dot(a, b) -> float:
    """Dot product of two equal-length vectors."""
    check_dimensions(a, b)
    return float(np.dot(_as_vector(a), _as_vector(b)))


def l2_norm(vector) -> float:
    """Euclidean length of a vector."""
    return float(np.linalg.norm(_as_vector(vector)))


def cosine_similarity(a, b) -> float:
    """
    Cosine similarity between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Similarity in [-1, 1]

    Raises:
        DimensionMismatchError: If the vectors differ in length
        NumericError: If either vector has zero norm
    """
    check_dimensions(a, b)
    a = _as_vector(a)
    b = _as_vector(b)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        raise NumericError("Cosine similarity is undefined for a zero-norm vector")

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    # Rounding can push identical vectors slightly past 1
    return max(-1.0, min(1.0, similarity))
