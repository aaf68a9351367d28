"""
Distance and density primitives shared by every clustering algorithm.

All functions are pure: they never modify their arguments and keep no state.
"""

from __future__ import annotations

import math
from typing import Sequence, Union

import numpy as np

from ..exceptions import DimensionMismatchError, EmptyDatasetError, InvalidParameterError

Array2D = np.ndarray
Vector = Union[np.ndarray, Sequence[float]]
MatrixLike = Union[np.ndarray, Sequence[Sequence[float]]]

# Replacement for non-positive variances in the Gaussian kernel.
VARIANCE_FLOOR = 1.0


def as_matrix(X: MatrixLike) -> Array2D:
    """
    Validate an observation matrix and return a private float64 copy.

    Args:
        X: Rectangular numeric data, shape (n_samples, n_features)

    Returns:
        New array of shape (n_samples, n_features). A zero-row input yields
        shape (0, d) (or (0, 0) for an empty list).

    Raises:
        DimensionMismatchError: If rows have different lengths or X is not 2-D
        InvalidParameterError: If a rectangular X holds non-numeric entries
    """
    try:
        M = np.array(X, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as e:
        # ragged rows collapse to a 1-D object array
        if np.array(X, dtype=object).ndim == 2:
            raise InvalidParameterError(
                f"Observation matrix must be numeric: {e}"
            ) from e
        raise DimensionMismatchError(
            f"Observation matrix must be rectangular: {e}"
        ) from e
    if M.ndim == 1 and M.size == 0:
        return M.reshape(0, 0)
    if M.ndim != 2:
        raise DimensionMismatchError(
            f"Observation matrix must be 2-D, got shape {M.shape}"
        )
    return M


def _as_vector(v: Vector) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).ravel()


def _check_same_length(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatchError(
            f"Vectors must have equal length, got {a.shape[0]} and {b.shape[0]}"
        )


def squared_distance(a: Vector, b: Vector) -> float:
    """Squared Euclidean distance between two vectors."""
    a, b = _as_vector(a), _as_vector(b)
    _check_same_length(a, b)
    diff = a - b
    return float(diff @ diff)


def distance(a: Vector, b: Vector) -> float:
    """
    Euclidean distance between two vectors.

    Raises:
        DimensionMismatchError: If ``len(a) != len(b)``
    """
    return math.sqrt(squared_distance(a, b))


def mean(vectors: MatrixLike) -> np.ndarray:
    """
    Element-wise arithmetic mean of a sequence of vectors.

    Raises:
        EmptyDatasetError: If the sequence is empty
    """
    V = as_matrix(vectors)
    if V.shape[0] == 0:
        raise EmptyDatasetError("Cannot compute the mean of zero vectors")
    return V.mean(axis=0)


def variance(vectors: MatrixLike) -> np.ndarray:
    """
    Per-dimension population variance of a sequence of vectors.

    Raises:
        EmptyDatasetError: If the sequence is empty
    """
    V = as_matrix(vectors)
    if V.shape[0] == 0:
        raise EmptyDatasetError("Cannot compute the variance of zero vectors")
    return V.var(axis=0)


def covariance_diagonal(vectors: MatrixLike) -> np.ndarray:
    """Diagonal of the (population) covariance matrix; equal to ``variance``."""
    return variance(vectors)


def floor_variances(variance_diagonal: Vector) -> np.ndarray:
    """Replace non-positive variance entries with ``VARIANCE_FLOOR``."""
    var = _as_vector(variance_diagonal).copy()
    var[~(var > 0)] = VARIANCE_FLOOR
    return var


def log_gaussian_density(x: Vector, mean: Vector, variance_diagonal: Vector) -> float:
    """Log of ``gaussian_density``; same arguments and variance floor."""
    x, mu = _as_vector(x), _as_vector(mean)
    _check_same_length(x, mu)
    var = floor_variances(variance_diagonal)
    _check_same_length(x, var)
    diff = x - mu
    d = x.shape[0]
    return float(
        -0.5 * (d * math.log(2.0 * math.pi) + np.sum(np.log(var)) + np.sum(diff * diff / var))
    )


def gaussian_density(x: Vector, mean: Vector, variance_diagonal: Vector) -> float:
    """
    Diagonal-covariance multivariate normal density at ``x``.

    Variance entries that are not strictly positive are replaced by
    ``VARIANCE_FLOOR`` (1.0). A zero-variance dimension would otherwise divide
    by zero; the floor turns it into a unit-variance dimension instead.

    Args:
        x: Point of length d
        mean: Component mean of length d
        variance_diagonal: Per-dimension variances of length d

    Returns:
        Density value (>= 0)

    Raises:
        DimensionMismatchError: If the three vectors differ in length
    """
    return math.exp(log_gaussian_density(x, mean, variance_diagonal))


def log_gaussian_density_matrix(
    X: Array2D, mean: np.ndarray, variance_diagonal: np.ndarray
) -> np.ndarray:
    """Vectorised ``log_gaussian_density`` for every row of ``X``."""
    var = floor_variances(variance_diagonal)
    d = X.shape[1]
    diff = X - mean[None, :]
    return -0.5 * (
        d * math.log(2.0 * math.pi)
        + np.sum(np.log(var))
        + np.sum(diff * diff / var[None, :], axis=1)
    )


def pairwise_squared_distances(X: Array2D, Y: Array2D | None = None) -> Array2D:
    """
    Dense matrix of squared Euclidean distances, shape (len(X), len(Y)).

    Computed one row at a time from explicit differences, so the result is
    exactly symmetric and equal distances compare equal (tie-breaking in the
    O(n²) algorithms depends on that).
    """
    Y = X if Y is None else Y
    if X.shape[1] != Y.shape[1]:
        raise DimensionMismatchError(
            f"Feature counts differ: {X.shape[1]} and {Y.shape[1]}"
        )
    D2 = np.empty((X.shape[0], Y.shape[0]), dtype=np.float64)
    for i in range(X.shape[0]):
        diff = Y - X[i]
        D2[i] = np.einsum("md,md->m", diff, diff)
    return D2


def pairwise_distances(X: Array2D, Y: Array2D | None = None) -> Array2D:
    """Dense matrix of Euclidean distances, shape (len(X), len(Y))."""
    return np.sqrt(pairwise_squared_distances(X, Y))
