"""
Centroid-based partitioning: K-Means with K-Means++ seeding.

The assignment and update helpers are public because the spectral clusterer,
mean shift and the evaluator reuse them.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..exceptions import EmptyDatasetError, InvalidKError, InvalidParameterError
from ..utils.logging_config import get_logger
from .kernel import Array2D, MatrixLike, as_matrix, pairwise_squared_distances
from .results import ClusteringResult

logger = get_logger(__name__)


def validate_k(K: int, n: int) -> None:
    """Raise ``InvalidKError`` unless ``1 <= K <= n``."""
    if K < 1:
        raise InvalidKError(f"K must be >= 1, got {K}")
    if K > n:
        raise InvalidKError(f"K ({K}) cannot exceed number of samples ({n})")


def require_rows(X: Array2D) -> None:
    """Raise ``EmptyDatasetError`` for a zero-row matrix."""
    if X.shape[0] == 0:
        raise EmptyDatasetError("Observation matrix has no rows")


# ------------------------------------------------------------------
# K-means++ initialisation & assignment helpers
# ------------------------------------------------------------------

def kmeanspp_init(X: Array2D, K: int, rng: np.random.Generator) -> np.ndarray:
    """
    Return (K, d) initial centroids chosen by the k-means++ rule.

    The first centroid is a uniformly random row; each further centroid is a
    row drawn with probability proportional to its squared distance to the
    nearest centroid chosen so far. When every row coincides with a chosen
    centroid the draw falls back to a uniform pick among unchosen rows.
    """
    n, d = X.shape
    centroids = np.empty((K, d), dtype=np.float64)
    chosen = [int(rng.integers(0, n))]
    centroids[0] = X[chosen[0]]

    min_sq = pairwise_squared_distances(X, centroids[:1])[:, 0]
    for k in range(1, K):
        total = min_sq.sum()
        if total == 0.0:
            remaining = np.setdiff1d(np.arange(n), chosen)
            idx = int(rng.choice(remaining)) if len(remaining) else int(rng.integers(0, n))
        else:
            idx = int(rng.choice(n, p=min_sq / total))
        chosen.append(idx)
        centroids[k] = X[idx]
        diff = X - centroids[k]
        min_sq = np.minimum(min_sq, np.einsum("nd,nd->n", diff, diff))
    return centroids


def assign_to_nearest(X: Array2D, centroids: np.ndarray) -> np.ndarray:
    """
    Assign each row of *X* to its nearest centroid.

    Ties go to the lowest centroid index.

    Returns:
        (n,) array of cluster assignments
    """
    d2 = pairwise_squared_distances(X, centroids)   # (n, K)
    return np.argmin(d2, axis=1).astype(int)


def update_centroids(X: Array2D, labels: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """
    Recompute each centroid as the mean of its points.

    A centroid with no assigned points keeps its previous position.
    """
    new_centroids = centroids.copy()
    for j in range(centroids.shape[0]):
        cluster_idx = np.where(labels == j)[0]
        if len(cluster_idx) == 0:
            logger.debug("Cluster %d is empty; keeping previous centroid", j)
            continue
        new_centroids[j] = X[cluster_idx].mean(axis=0)
    return new_centroids


def compute_inertia(X: Array2D, labels: np.ndarray, centroids: np.ndarray) -> float:
    """Sum of squared distances from each point to its assigned centroid."""
    diffs = X - centroids[labels]
    return float(np.sum(diffs ** 2))


# ------------------------------------------------------------------
# K-means
# ------------------------------------------------------------------

def kmeans(
    X: MatrixLike,
    K: int,
    *,
    max_iter: int = 100,
    tol: float = 1e-6,
    seed: Optional[int] = None,
) -> ClusteringResult:
    """
    K-means clustering with k-means++ seeding.

    Alternates nearest-centroid assignment and mean updates until no label
    changes, the inertia improves by less than *tol*, or *max_iter* update
    steps have run.

    Args:
        X: Input data of shape (n_samples, n_features)
        K: Number of clusters
        max_iter: Maximum number of update/assign iterations
        tol: Convergence threshold on the change in inertia
        seed: Random seed for the k-means++ draw

    Returns:
        ClusteringResult with labels, centroids, inertia, n_iter, converged
        and ``metadata["inertia_history"]`` (initial assignment first).

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidKError: If K < 1 or K > n_samples
        InvalidParameterError: If max_iter < 1 or tol < 0
    """
    X = as_matrix(X)
    require_rows(X)
    n = X.shape[0]
    validate_k(K, n)
    if max_iter < 1:
        raise InvalidParameterError(f"max_iter must be >= 1, got {max_iter}")
    if tol < 0:
        raise InvalidParameterError(f"tol must be >= 0, got {tol}")

    rng = np.random.default_rng(seed)
    centroids = kmeanspp_init(X, K, rng)
    labels = assign_to_nearest(X, centroids)
    inertia = compute_inertia(X, labels, centroids)
    history = [inertia]

    n_iter = 0
    converged = False
    for t in range(1, max_iter + 1):
        n_iter = t
        centroids = update_centroids(X, labels, centroids)
        new_labels = assign_to_nearest(X, centroids)
        new_inertia = compute_inertia(X, new_labels, centroids)
        history.append(new_inertia)

        unchanged = np.array_equal(new_labels, labels)
        delta = abs(inertia - new_inertia)
        labels, inertia = new_labels, new_inertia
        if unchanged or delta < tol:
            converged = True
            break

    if not converged:
        logger.warning("K-means did not converge within %d iterations (K=%d)", max_iter, K)
    logger.info("K-means complete: K=%d, n_iter=%d, inertia=%.4f", K, n_iter, inertia)

    return ClusteringResult(
        labels=labels,
        algorithm="kmeans",
        parameters={"k": K, "max_iter": max_iter, "tol": tol, "seed": seed},
        centroids=centroids,
        inertia=inertia,
        n_iter=n_iter,
        converged=converged,
        metadata={"inertia_history": history},
    )
