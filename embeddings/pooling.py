"""
Pooling and aggregation of per-token vectors.

Pooling reduces one partition's [seq_len, dim] matrix to a single vector.
Aggregation combines the pooled partition vectors into one, weighted by
partition token count, and normalizes the result to unit length.
"""

from enum import Enum
from typing import Sequence

import numpy as np

from shared.exceptions import NumericError


class PoolingMode(Enum):
    """Pooling strategies."""

    CLS = "cls"  # First-token vector
    MEAN = "mean"  # Element-wise mean over all tokens

    @classmethod
    def from_name(cls, name: str) -> "PoolingMode":
        return cls(name.lower())


def cls_pool(token_vectors: np.ndarray) -> np.ndarray:
    """Return the vector at position 0 unchanged."""
    return np.array(token_vectors[0], dtype=np.float32)


def mean_pool(token_vectors: np.ndarray) -> np.ndarray:
    """Return the element-wise mean across all token vectors."""
    return np.mean(token_vectors, axis=0, dtype=np.float64).astype(np.float32)


def pool(token_vectors: np.ndarray, mode: PoolingMode) -> np.ndarray:
    """
    Reduce a [seq_len, dim] matrix to a [dim] vector.

    Args:
        token_vectors: Per-token vectors for one partition
        mode: Pooling strategy

    Returns:
        Unnormalized pooled vector
    """
    token_vectors = np.asarray(token_vectors)
    if token_vectors.ndim != 2 or token_vectors.shape[0] == 0:
        raise ValueError(f"Expected a non-empty [seq_len, dim] matrix, got shape {token_vectors.shape}")

    if mode == PoolingMode.CLS:
        return cls_pool(token_vectors)
    return mean_pool(token_vectors)


def weighted_average(vectors: Sequence[np.ndarray], weights: Sequence[int]) -> np.ndarray:
    """
    Element-wise weighted average of equal-length vectors.

    Args:
        vectors: Pooled partition vectors
        weights: Token count of each partition

    Returns:
        Combined vector of the same dimension
    """
    if not vectors:
        raise ValueError("Cannot average an empty list of vectors")
    if len(vectors) != len(weights):
        raise ValueError(f"Got {len(vectors)} vectors but {len(weights)} weights")

    matrix = np.vstack([np.asarray(v, dtype=np.float64) for v in vectors])
    weights = np.asarray(weights, dtype=np.float64)
    total = weights.sum()
    if total <= 0:
        raise NumericError("Partition weights must sum to a positive value")

    return (weights @ matrix / total).astype(np.float32)


def normalize(vector: np.ndarray) -> np.ndarray:
    """
    Scale a vector to unit L2 norm.

    Raises:
        NumericError: If the vector has zero norm
    """
    vector = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(vector)
    if norm == 0.0 or not np.isfinite(norm):
        raise NumericError(f"Cannot normalize a vector with norm {norm}")
    return (vector / norm).astype(np.float32)
